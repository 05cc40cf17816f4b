from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from banner_service.api.deps import get_stats_recorder, require_roles
from banner_service.api.routes.banners import get_banner_or_404
from banner_service.api.routes.placements import get_placement_or_404
from banner_service.core.errors import ValidationError
from banner_service.db.session import get_db
from banner_service.services.stats_recorder import StatsRecorder

router = APIRouter(dependencies=[Depends(require_roles("admin"))])


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise ValidationError('start_date must not be after end_date')


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


@router.get('', response_model=List[dict])
def all_banners(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    stats: StatsRecorder = Depends(get_stats_recorder),
):
    _check_range(start_date, end_date)
    return stats.summary_for_all_banners(start_date, end_date)


@router.get('/banners/{banner_id}', response_model=dict)
def banner_statistics(
    banner_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    stats: StatsRecorder = Depends(get_stats_recorder),
):
    _check_range(start_date, end_date)
    get_banner_or_404(db, banner_id)
    return {
        'banner_id': banner_id,
        'totals': stats.totals_for_banner(banner_id, start_date, end_date),
        'daily': stats.daily_for_banner(banner_id, start_date, end_date),
        'start_date': _iso(start_date),
        'end_date': _iso(end_date),
    }


@router.get('/placements/{placement_id}', response_model=dict)
def placement_statistics(
    placement_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    stats: StatsRecorder = Depends(get_stats_recorder),
):
    _check_range(start_date, end_date)
    get_placement_or_404(db, placement_id)
    daily = stats.daily_for_placement(placement_id, start_date, end_date)
    return {
        'placement_id': placement_id,
        'totals': stats.totals_for_placement(placement_id, start_date, end_date),
        'daily': daily,
        'start_date': _iso(start_date),
        'end_date': _iso(end_date),
    }
