from datetime import datetime
from typing import Iterable, List

from banner_service.core.clock import to_naive_utc
from banner_service.services.records import BannerRecord


def is_eligible(banner: BannerRecord, now: datetime) -> bool:
    """Active, inside its (inclusive) schedule window, and carrying at least one image."""
    now = to_naive_utc(now)
    if banner.status != "active":
        return False
    if banner.start_date is not None and now < banner.start_date:
        return False
    if banner.end_date is not None and now > banner.end_date:
        return False
    return banner.has_image


def filter_eligible(banners: Iterable[BannerRecord], now: datetime) -> List[BannerRecord]:
    return [b for b in banners if is_eligible(b, now)]
