from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session
from sqlalchemy import asc, desc
import logging
import math

from banner_service.api.deps import get_media_resolver, require_roles
from banner_service.core.errors import NotFoundError, StorageError, ValidationError
from banner_service.db.session import get_db
from banner_service.models.banner import Banner
from banner_service.models.banner_placement import BannerPlacement
from banner_service.models.media import MediaAsset
from banner_service.models.placement import Placement
from banner_service.schemas.banner import BannerCreate, BannerUpdate
from banner_service.services.media import DbMediaResolver

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_roles("admin"))])

ORDERABLE = {"id", "title", "status", "weight", "start_date", "end_date", "created_at", "updated_at"}


def banner_to_dict(b: Banner, media: DbMediaResolver, position: Optional[int] = None) -> dict:
    data = {
        'id': b.id,
        'title': b.title,
        'desktop_image_id': b.desktop_image_id,
        'mobile_image_id': b.mobile_image_id,
        'desktop_url': b.desktop_url,
        'mobile_url': b.mobile_url,
        'start_date': b.start_date,
        'end_date': b.end_date,
        'status': b.status,
        'weight': b.weight,
        'created_at': b.created_at,
        'updated_at': b.updated_at,
    }
    if position is not None:
        data['position'] = position
    # Resolved image URLs for the admin preview
    if b.desktop_image_id:
        data['desktop_image_url'] = media.url_for(b.desktop_image_id)
    if b.mobile_image_id:
        data['mobile_image_url'] = media.url_for(b.mobile_image_id)
    return data


def _check_images(db: Session, values: dict) -> None:
    for field in ("desktop_image_id", "mobile_image_id"):
        image_id = values.get(field)
        if image_id and db.get(MediaAsset, image_id) is None:
            raise ValidationError(f"{field}: media asset {image_id} does not exist")


def get_banner_or_404(db: Session, banner_id: int) -> Banner:
    b = db.get(Banner, banner_id)
    if not b:
        raise NotFoundError('Banner not found.')
    return b


@router.get('', response_model=List[dict])
def list_banners(
    response: Response,
    db: Session = Depends(get_db),
    media: DbMediaResolver = Depends(get_media_resolver),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    status_filter: Optional[str] = Query(None, alias='status', pattern='^(active|paused|scheduled)$'),
    orderby: str = Query('created_at'),
    order: str = Query('DESC', pattern='^(?:ASC|DESC|asc|desc)$'),
):
    if orderby not in ORDERABLE:
        raise ValidationError(f"orderby must be one of {', '.join(sorted(ORDERABLE))}")
    q = db.query(Banner)
    if status_filter:
        q = q.filter(Banner.status == status_filter)
    total = q.count()
    column = getattr(Banner, orderby)
    direction = asc if order.upper() == 'ASC' else desc
    items = q.order_by(direction(column), direction(Banner.id)).offset((page - 1) * per_page).limit(per_page).all()
    response.headers['X-Total-Count'] = str(total)
    response.headers['X-Total-Pages'] = str(math.ceil(total / per_page))
    return [banner_to_dict(b, media) for b in items]


@router.get('/{banner_id}', response_model=dict)
def get_banner(banner_id: int, db: Session = Depends(get_db), media: DbMediaResolver = Depends(get_media_resolver)):
    return banner_to_dict(get_banner_or_404(db, banner_id), media)


@router.post('', response_model=dict, status_code=status.HTTP_201_CREATED)
def create_banner(
    payload: BannerCreate,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    media: DbMediaResolver = Depends(get_media_resolver),
):
    _check_images(db, payload.model_dump())
    b = Banner(**payload.model_dump())
    db.add(b)
    db.commit()
    db.refresh(b)
    if not b.id:
        raise StorageError('Failed to create banner.')
    logger.info("Created banner %s", b.id)
    response.headers['Location'] = str(request.url_for('get_banner', banner_id=b.id))
    return banner_to_dict(b, media)


@router.put('/{banner_id}', response_model=dict)
def update_banner(
    banner_id: int,
    payload: BannerUpdate,
    db: Session = Depends(get_db),
    media: DbMediaResolver = Depends(get_media_resolver),
):
    b = get_banner_or_404(db, banner_id)
    changes = payload.changes()
    start = changes.get('start_date', b.start_date)
    end = changes.get('end_date', b.end_date)
    if start and end and end < start:
        raise ValidationError('end_date must not be before start_date')
    _check_images(db, changes)
    for key, value in changes.items():
        setattr(b, key, value)
    db.commit()
    db.refresh(b)
    return banner_to_dict(b, media)


@router.delete('/{banner_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_banner(banner_id: int, db: Session = Depends(get_db)):
    b = get_banner_or_404(db, banner_id)
    db.query(BannerPlacement).filter(BannerPlacement.banner_id == banner_id).delete(synchronize_session=False)
    db.delete(b)
    db.commit()
    logger.info("Deleted banner %s", banner_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get('/{banner_id}/placements', response_model=List[dict])
def list_banner_placements(banner_id: int, db: Session = Depends(get_db)):
    get_banner_or_404(db, banner_id)
    rows = (
        db.query(Placement, BannerPlacement.position)
        .join(BannerPlacement, BannerPlacement.placement_id == Placement.id)
        .filter(BannerPlacement.banner_id == banner_id)
        .order_by(asc(Placement.name), asc(Placement.id))
        .all()
    )
    return [
        {
            'id': p.id,
            'slug': p.slug,
            'name': p.name,
            'rotation_strategy': p.rotation_strategy,
            'position': position,
            'created_at': p.created_at,
            'updated_at': p.updated_at,
        } for p, position in rows
    ]
