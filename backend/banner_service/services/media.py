from dataclasses import dataclass
from typing import Dict, Optional, Protocol

from sqlalchemy.orm import Session

from banner_service.models.media import MediaAsset


@dataclass(frozen=True)
class MediaImage:
    url: str
    alt: str = ""


class MediaResolver(Protocol):
    def resolve(self, image_id: Optional[int]) -> Optional[MediaImage]: ...


class DbMediaResolver:
    """Resolves image references against the ``media_assets`` table, memoizing per instance."""

    def __init__(self, db: Session):
        self.db = db
        self._cache: Dict[int, Optional[MediaImage]] = {}

    def resolve(self, image_id: Optional[int]) -> Optional[MediaImage]:
        if not image_id:
            return None
        if image_id not in self._cache:
            asset = self.db.get(MediaAsset, image_id)
            if asset is None or not asset.url:
                self._cache[image_id] = None
            else:
                self._cache[image_id] = MediaImage(url=asset.url, alt=asset.alt_text or "")
        return self._cache[image_id]

    def url_for(self, image_id: Optional[int]) -> Optional[str]:
        image = self.resolve(image_id)
        return image.url if image else None
