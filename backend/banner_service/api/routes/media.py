from typing import List
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from sqlalchemy import update

from banner_service.api.deps import require_roles
from banner_service.core.errors import NotFoundError
from banner_service.db.session import get_db
from banner_service.models.banner import Banner
from banner_service.models.media import MediaAsset
from banner_service.schemas.tracking import MediaCreate

router = APIRouter(dependencies=[Depends(require_roles("admin"))])


def media_to_dict(m: MediaAsset) -> dict:
    return {
        'id': m.id,
        'url': m.url,
        'alt_text': m.alt_text,
        'created_at': m.created_at,
    }


def _get_or_404(db: Session, media_id: int) -> MediaAsset:
    m = db.get(MediaAsset, media_id)
    if not m:
        raise NotFoundError('Media asset not found.')
    return m


@router.get('', response_model=List[dict])
def list_media(db: Session = Depends(get_db)):
    return [media_to_dict(m) for m in db.query(MediaAsset).order_by(MediaAsset.id.desc()).all()]


@router.get('/{media_id}', response_model=dict)
def get_media(media_id: int, db: Session = Depends(get_db)):
    return media_to_dict(_get_or_404(db, media_id))


@router.post('', response_model=dict, status_code=status.HTTP_201_CREATED)
def create_media(payload: MediaCreate, db: Session = Depends(get_db)):
    m = MediaAsset(url=payload.url, alt_text=payload.alt_text)
    db.add(m)
    db.commit()
    db.refresh(m)
    return media_to_dict(m)


@router.delete('/{media_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_media(media_id: int, db: Session = Depends(get_db)):
    m = _get_or_404(db, media_id)
    # Banners pointing at the asset fall back to "no image"
    db.execute(update(Banner).where(Banner.desktop_image_id == media_id).values(desktop_image_id=None))
    db.execute(update(Banner).where(Banner.mobile_image_id == media_id).values(mobile_image_id=None))
    db.delete(m)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
