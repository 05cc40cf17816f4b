"""Typed, validated views of banners and placements handed to the selection core."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from banner_service.core.clock import to_naive_utc
from banner_service.models.banner import BANNER_STATUSES


@dataclass(frozen=True)
class BannerRecord:
    id: int
    title: str
    desktop_url: str
    desktop_image_id: Optional[int] = None
    mobile_image_id: Optional[int] = None
    mobile_url: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: str = "active"
    weight: int = 1
    position: int = 0

    def __post_init__(self):
        if self.status not in BANNER_STATUSES:
            raise ValueError(f"unknown banner status: {self.status!r}")
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "weight", max(1, int(self.weight or 1)))
        object.__setattr__(self, "position", max(0, int(self.position or 0)))
        object.__setattr__(self, "start_date", to_naive_utc(self.start_date))
        object.__setattr__(self, "end_date", to_naive_utc(self.end_date))

    @property
    def has_image(self) -> bool:
        return bool(self.desktop_image_id or self.mobile_image_id)

    @classmethod
    def from_model(cls, banner, position: int = 0) -> "BannerRecord":
        return cls(
            id=banner.id,
            title=banner.title or "",
            desktop_url=banner.desktop_url or "",
            desktop_image_id=banner.desktop_image_id,
            mobile_image_id=banner.mobile_image_id,
            mobile_url=banner.mobile_url,
            start_date=banner.start_date,
            end_date=banner.end_date,
            status=banner.status,
            weight=banner.weight,
            position=position,
        )


@dataclass(frozen=True)
class PlacementRecord:
    id: int
    slug: str
    name: str = ""
    # Unknown strategies are kept as given; the selector falls back to random for them
    rotation_strategy: str = "random"

    @classmethod
    def from_model(cls, placement) -> "PlacementRecord":
        return cls(
            id=placement.id,
            slug=placement.slug,
            name=placement.name,
            rotation_strategy=placement.rotation_strategy or "random",
        )
