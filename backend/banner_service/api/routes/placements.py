from typing import List
from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session
from sqlalchemy import asc, func
import logging

from banner_service.api.deps import require_roles
from banner_service.core.errors import NotFoundError, ValidationError
from banner_service.db.session import get_db
from banner_service.models.banner_placement import BannerPlacement
from banner_service.models.placement import Placement
from banner_service.schemas.placement import PlacementCreate, PlacementUpdate

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_roles("admin"))])


def placement_to_dict(p: Placement, banner_count: int | None = None) -> dict:
    data = {
        'id': p.id,
        'slug': p.slug,
        'name': p.name,
        'rotation_strategy': p.rotation_strategy,
        'created_at': p.created_at,
        'updated_at': p.updated_at,
    }
    if banner_count is not None:
        data['banner_count'] = banner_count
    return data


def get_placement_or_404(db: Session, placement_id: int) -> Placement:
    p = db.get(Placement, placement_id)
    if not p:
        raise NotFoundError('Placement not found.')
    return p


def _ensure_slug_free(db: Session, slug: str, exclude_id: int | None = None) -> None:
    q = db.query(Placement).filter(Placement.slug == slug)
    if exclude_id is not None:
        q = q.filter(Placement.id != exclude_id)
    if q.first():
        raise ValidationError(f"Placement slug '{slug}' already exists.")


@router.get('', response_model=List[dict])
def list_placements(db: Session = Depends(get_db)):
    placements = db.query(Placement).order_by(asc(Placement.name), asc(Placement.id)).all()
    counts = dict(
        db.query(BannerPlacement.placement_id, func.count(BannerPlacement.id))
        .group_by(BannerPlacement.placement_id)
        .all()
    )
    return [placement_to_dict(p, counts.get(p.id, 0)) for p in placements]


@router.get('/{placement_id}', response_model=dict)
def get_placement(placement_id: int, db: Session = Depends(get_db)):
    return placement_to_dict(get_placement_or_404(db, placement_id))


@router.post('', response_model=dict, status_code=status.HTTP_201_CREATED)
def create_placement(payload: PlacementCreate, request: Request, response: Response, db: Session = Depends(get_db)):
    _ensure_slug_free(db, payload.slug)
    p = Placement(slug=payload.slug, name=payload.name, rotation_strategy=payload.rotation_strategy)
    db.add(p)
    db.commit()
    db.refresh(p)
    logger.info("Created placement %s (%s)", p.id, p.slug)
    response.headers['Location'] = str(request.url_for('get_placement', placement_id=p.id))
    return placement_to_dict(p)


@router.put('/{placement_id}', response_model=dict)
def update_placement(placement_id: int, payload: PlacementUpdate, db: Session = Depends(get_db)):
    p = get_placement_or_404(db, placement_id)
    changes = payload.changes()
    if 'slug' in changes and changes['slug'] != p.slug:
        _ensure_slug_free(db, changes['slug'], exclude_id=p.id)
    for key, value in changes.items():
        setattr(p, key, value)
    db.commit()
    db.refresh(p)
    return placement_to_dict(p)


@router.delete('/{placement_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_placement(placement_id: int, db: Session = Depends(get_db)):
    p = get_placement_or_404(db, placement_id)
    db.query(BannerPlacement).filter(BannerPlacement.placement_id == placement_id).delete(synchronize_session=False)
    db.delete(p)
    db.commit()
    logger.info("Deleted placement %s", placement_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
