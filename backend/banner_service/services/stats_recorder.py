import logging
from datetime import date
from typing import Callable, List, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from banner_service.core.clock import utc_today
from banner_service.core.errors import StorageError
from banner_service.db.upsert import upsert
from banner_service.models.banner import Banner
from banner_service.models.daily_statistic import DailyStatistic

logger = logging.getLogger(__name__)

COUNTERS = ("impressions", "clicks")


def ctr(impressions: int, clicks: int) -> float:
    """Click-through rate in percent, two decimals; 0 without impressions."""
    if impressions <= 0:
        return 0.0
    return round(clicks / impressions * 100, 2)


def _format_row(row: DailyStatistic) -> dict:
    impressions = int(row.impressions or 0)
    clicks = int(row.clicks or 0)
    return {
        "id": row.id,
        "banner_id": row.banner_id,
        "placement_id": row.placement_id,
        "stat_date": row.stat_date.isoformat(),
        "impressions": impressions,
        "clicks": clicks,
        "ctr": ctr(impressions, clicks),
    }


def _totals(rows: List[dict]) -> dict:
    impressions = sum(r["impressions"] for r in rows)
    clicks = sum(r["clicks"] for r in rows)
    return {"impressions": impressions, "clicks": clicks, "ctr": ctr(impressions, clicks)}


class StatsRecorder:
    """Daily impression/click counters per (banner, placement).

    Increments are one ``INSERT .. ON CONFLICT DO UPDATE`` statement, so
    concurrent requests for the same key never lose an update.
    """

    def __init__(self, db: Session, today: Callable[[], date] = utc_today):
        self.db = db
        self._today = today

    def increment_impressions(self, banner_id: int, placement_id: int) -> None:
        self._increment(banner_id, placement_id, "impressions")

    def increment_clicks(self, banner_id: int, placement_id: int) -> None:
        self._increment(banner_id, placement_id, "clicks")

    def _increment(self, banner_id: int, placement_id: int, counter: str) -> None:
        if counter not in COUNTERS:
            raise ValueError(counter)
        values = {
            "banner_id": banner_id,
            "placement_id": placement_id,
            "stat_date": self._today(),
            "impressions": 1 if counter == "impressions" else 0,
            "clicks": 1 if counter == "clicks" else 0,
        }
        column = getattr(DailyStatistic, counter)
        try:
            result = upsert(
                self.db,
                DailyStatistic,
                values,
                ["banner_id", "placement_id", "stat_date"],
                {counter: column + 1},
            )
            if result.rowcount == 0:
                raise StorageError(f"Failed to record {counter}")
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Could not increment %s for banner %s / placement %s", counter, banner_id, placement_id)
            raise StorageError(f"Failed to record {counter}") from exc
        except StorageError:
            self.db.rollback()
            raise

    def _daily(self, *criteria, start_date: Optional[date], end_date: Optional[date]) -> List[dict]:
        stmt = select(DailyStatistic).where(*criteria)
        if start_date:
            stmt = stmt.where(DailyStatistic.stat_date >= start_date)
        if end_date:
            stmt = stmt.where(DailyStatistic.stat_date <= end_date)
        stmt = stmt.order_by(DailyStatistic.stat_date.desc(), DailyStatistic.id.asc())
        rows = self.db.execute(stmt).scalars().all()
        return [_format_row(r) for r in rows]

    def daily_for_banner(self, banner_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None) -> List[dict]:
        return self._daily(DailyStatistic.banner_id == banner_id, start_date=start_date, end_date=end_date)

    def daily_for_placement(self, placement_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None) -> List[dict]:
        return self._daily(DailyStatistic.placement_id == placement_id, start_date=start_date, end_date=end_date)

    def totals_for_banner(self, banner_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None) -> dict:
        stmt = select(
            func.coalesce(func.sum(DailyStatistic.impressions), 0),
            func.coalesce(func.sum(DailyStatistic.clicks), 0),
        ).where(DailyStatistic.banner_id == banner_id)
        if start_date:
            stmt = stmt.where(DailyStatistic.stat_date >= start_date)
        if end_date:
            stmt = stmt.where(DailyStatistic.stat_date <= end_date)
        impressions, clicks = self.db.execute(stmt).one()
        impressions, clicks = int(impressions), int(clicks)
        return {"impressions": impressions, "clicks": clicks, "ctr": ctr(impressions, clicks)}

    def totals_for_placement(self, placement_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None) -> dict:
        # Summed from the daily series so totals and rows can never disagree
        return _totals(self.daily_for_placement(placement_id, start_date, end_date))

    def get_for_day(self, banner_id: int, placement_id: int, day: Optional[date] = None) -> Optional[dict]:
        row = self.db.execute(
            select(DailyStatistic).where(
                DailyStatistic.banner_id == banner_id,
                DailyStatistic.placement_id == placement_id,
                DailyStatistic.stat_date == (day or self._today()),
            )
        ).scalar_one_or_none()
        return _format_row(row) if row else None

    def summary_for_all_banners(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> List[dict]:
        """Every banner with its totals in range; banners without traffic report zeros."""
        join_on = [Banner.id == DailyStatistic.banner_id]
        if start_date:
            join_on.append(DailyStatistic.stat_date >= start_date)
        if end_date:
            join_on.append(DailyStatistic.stat_date <= end_date)
        impressions = func.coalesce(func.sum(DailyStatistic.impressions), 0).label("impressions")
        clicks = func.coalesce(func.sum(DailyStatistic.clicks), 0).label("clicks")
        stmt = (
            select(Banner.id, Banner.title, Banner.status, impressions, clicks)
            .select_from(Banner)
            .outerjoin(DailyStatistic, and_(*join_on))
            .group_by(Banner.id, Banner.title, Banner.status)
            .order_by(impressions.desc(), Banner.id.asc())
        )
        result = []
        for banner_id, title, status, imp, clk in self.db.execute(stmt).all():
            imp, clk = int(imp), int(clk)
            result.append({
                "banner_id": banner_id,
                "banner_title": title,
                "banner_status": status,
                "impressions": imp,
                "clicks": clk,
                "ctr": ctr(imp, clk),
            })
        return result
