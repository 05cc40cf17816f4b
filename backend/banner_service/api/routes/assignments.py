from typing import List
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
import logging

from banner_service.api.deps import get_media_resolver, require_roles
from banner_service.api.routes.banners import banner_to_dict, get_banner_or_404
from banner_service.api.routes.placements import get_placement_or_404
from banner_service.core.errors import NotFoundError, ValidationError
from banner_service.db.session import get_db
from banner_service.models.banner import Banner
from banner_service.models.banner_placement import BannerPlacement
from banner_service.schemas.placement import AssignmentCreate, AssignmentPosition, AssignmentSync
from banner_service.services.media import DbMediaResolver

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_roles("admin"))])


def _assigned(db: Session, placement_id: int, media: DbMediaResolver) -> List[dict]:
    rows = (
        db.query(Banner, BannerPlacement.position)
        .join(BannerPlacement, BannerPlacement.banner_id == Banner.id)
        .filter(BannerPlacement.placement_id == placement_id)
        .order_by(BannerPlacement.position.asc(), Banner.id.asc())
        .all()
    )
    return [banner_to_dict(b, media, position=position) for b, position in rows]


def _link(db: Session, placement_id: int, banner_id: int) -> BannerPlacement | None:
    return (
        db.query(BannerPlacement)
        .filter(BannerPlacement.placement_id == placement_id, BannerPlacement.banner_id == banner_id)
        .first()
    )


@router.get('/{placement_id}/banners', response_model=List[dict])
def list_assigned(placement_id: int, db: Session = Depends(get_db), media: DbMediaResolver = Depends(get_media_resolver)):
    get_placement_or_404(db, placement_id)
    return _assigned(db, placement_id, media)


@router.put('/{placement_id}/banners', response_model=List[dict])
def sync_assigned(
    placement_id: int,
    payload: AssignmentSync,
    db: Session = Depends(get_db),
    media: DbMediaResolver = Depends(get_media_resolver),
):
    """Replace the whole assignment list; list order becomes the rotation order."""
    get_placement_or_404(db, placement_id)
    ids = payload.normalized_ids()
    if ids:
        found = {row[0] for row in db.query(Banner.id).filter(Banner.id.in_(ids)).all()}
        missing = [i for i in ids if i not in found]
        if missing:
            raise ValidationError(f"Unknown banner ids: {', '.join(str(i) for i in missing)}")
    db.query(BannerPlacement).filter(BannerPlacement.placement_id == placement_id).delete(synchronize_session=False)
    for position, banner_id in enumerate(ids):
        db.add(BannerPlacement(banner_id=banner_id, placement_id=placement_id, position=position))
    db.commit()
    logger.info("Placement %s now rotates %d banners", placement_id, len(ids))
    return _assigned(db, placement_id, media)


@router.post('/{placement_id}/banners', response_model=List[dict], status_code=status.HTTP_201_CREATED)
def attach_banner(
    placement_id: int,
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    media: DbMediaResolver = Depends(get_media_resolver),
):
    get_placement_or_404(db, placement_id)
    get_banner_or_404(db, payload.banner_id)
    if _link(db, placement_id, payload.banner_id):
        raise ValidationError('Banner is already assigned to this placement.')
    db.add(BannerPlacement(banner_id=payload.banner_id, placement_id=placement_id, position=payload.position))
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent attach of the same pair
        db.rollback()
        raise ValidationError('Banner is already assigned to this placement.')
    return _assigned(db, placement_id, media)


@router.patch('/{placement_id}/banners/{banner_id}', response_model=List[dict])
def move_banner(
    placement_id: int,
    banner_id: int,
    payload: AssignmentPosition,
    db: Session = Depends(get_db),
    media: DbMediaResolver = Depends(get_media_resolver),
):
    get_placement_or_404(db, placement_id)
    link = _link(db, placement_id, banner_id)
    if not link:
        raise NotFoundError('Banner is not assigned to this placement.')
    link.position = payload.position
    db.commit()
    return _assigned(db, placement_id, media)


@router.delete('/{placement_id}/banners/{banner_id}', status_code=status.HTTP_204_NO_CONTENT)
def detach_banner(placement_id: int, banner_id: int, db: Session = Depends(get_db)):
    get_placement_or_404(db, placement_id)
    link = _link(db, placement_id, banner_id)
    if not link:
        raise ValidationError('Banner is not assigned to this placement.')
    db.delete(link)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
