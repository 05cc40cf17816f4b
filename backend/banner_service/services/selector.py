import logging
import random
from datetime import datetime
from typing import List, Optional, Sequence

from banner_service.core.clock import utcnow
from banner_service.services.eligibility import filter_eligible
from banner_service.services.kv_store import KeyValueStore
from banner_service.services.records import BannerRecord

logger = logging.getLogger(__name__)

CURSOR_KEY = "seq_cursor:{placement_id}"
DEFAULT_CURSOR_TTL = 3600


class BannerSelector:
    """Picks one eligible banner for a placement.

    Strategies: ``random`` (uniform), ``weighted`` (probability proportional to
    weight) and ``sequential`` (round-robin by assignment position with a cursor
    kept in the key-value store). Any other name behaves as ``random``.
    """

    def __init__(self, store: KeyValueStore, rng: Optional[random.Random] = None, cursor_ttl: int = DEFAULT_CURSOR_TTL):
        self.store = store
        self.rng = rng or random.Random()
        self.cursor_ttl = cursor_ttl

    def select(self, banners: Sequence[BannerRecord], strategy: str, placement_id: int = 0, now: Optional[datetime] = None) -> Optional[BannerRecord]:
        eligible = filter_eligible(banners, now or utcnow())
        if not eligible:
            return None
        if strategy == "weighted":
            return self.select_weighted(eligible)
        if strategy == "sequential":
            return self.select_sequential(eligible, placement_id)
        if strategy != "random":
            logger.debug("Unknown rotation strategy %r for placement %s, using random", strategy, placement_id)
        return self.select_random(eligible)

    def select_random(self, banners: Sequence[BannerRecord]) -> Optional[BannerRecord]:
        if not banners:
            return None
        return self.rng.choice(list(banners))

    def select_weighted(self, banners: Sequence[BannerRecord]) -> Optional[BannerRecord]:
        if not banners:
            return None
        total = sum(max(1, b.weight) for b in banners)
        draw = self.rng.randint(1, total)
        cumulative = 0
        for banner in banners:
            cumulative += max(1, banner.weight)
            if draw <= cumulative:
                return banner
        return banners[-1]

    def select_sequential(self, banners: Sequence[BannerRecord], placement_id: int) -> Optional[BannerRecord]:
        if not banners:
            return None
        ordered: List[BannerRecord] = sorted(banners, key=lambda b: (b.position, b.id))
        key = CURSOR_KEY.format(placement_id=placement_id)
        index = self._read_cursor(key)
        if index >= len(ordered):
            index = 0
        # Last writer wins: concurrent renders may repeat or skip one slot
        self.store.set(key, str((index + 1) % len(ordered)), ttl=self.cursor_ttl)
        return ordered[index]

    def _read_cursor(self, key: str) -> int:
        raw = self.store.get(key)
        try:
            index = int(raw) if raw is not None else 0
        except ValueError:
            return 0
        return max(0, index)
