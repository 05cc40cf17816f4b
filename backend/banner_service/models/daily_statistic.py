from datetime import date

from sqlalchemy import BigInteger, Integer, Date, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from banner_service.models.base import Base

class DailyStatistic(Base):
    """Per-day counters for one (banner, placement) pair.

    No foreign keys: rows outlive deleted banners and placements and are only
    removed by an uninstall.
    """
    __tablename__ = "daily_statistics"
    __table_args__ = (UniqueConstraint("banner_id", "placement_id", "stat_date", name="uq_daily_statistics"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    banner_id: Mapped[int] = mapped_column(Integer, index=True)
    placement_id: Mapped[int] = mapped_column(Integer, index=True)
    stat_date: Mapped[date] = mapped_column(Date, index=True)
    impressions: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    clicks: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
