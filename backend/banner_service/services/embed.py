"""Site embedding: ``[banner placement="header"]`` tags and the per-slug fragment endpoint.

Every dead end (blank slug, unknown placement, nothing assigned, nothing
eligible, no image) renders as an empty string instead of broken markup.
"""
import re
from typing import Callable, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from banner_service.models.banner import Banner
from banner_service.models.banner_placement import BannerPlacement
from banner_service.models.placement import Placement
from banner_service.services.records import BannerRecord, PlacementRecord
from banner_service.services.renderer import BannerRenderer
from banner_service.services.selector import BannerSelector

BANNER_TAG_RE = re.compile(r"""\[banner\s+placement\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s\]]+))\s*\]""", re.IGNORECASE)


def banners_for_placement(db: Session, placement_id: int) -> List[BannerRecord]:
    rows = db.execute(
        select(Banner, BannerPlacement.position)
        .join(BannerPlacement, BannerPlacement.banner_id == Banner.id)
        .where(BannerPlacement.placement_id == placement_id)
        .order_by(BannerPlacement.position.asc(), Banner.id.asc())
    ).all()
    return [BannerRecord.from_model(banner, position) for banner, position in rows]


def render_placement(db: Session, slug: str, selector: BannerSelector, renderer: BannerRenderer) -> str:
    slug = (slug or "").strip()
    if not slug:
        return ""
    placement = db.execute(select(Placement).where(Placement.slug == slug)).scalar_one_or_none()
    if placement is None:
        return ""
    banners = banners_for_placement(db, placement.id)
    if not banners:
        return ""
    record = PlacementRecord.from_model(placement)
    selected = selector.select(banners, record.rotation_strategy, record.id)
    if selected is None:
        return ""
    return renderer.render(selected, record)


def expand_banner_tags(content: str, render: Callable[[str], str]) -> str:
    """Replace each banner tag in ``content`` with ``render(slug)``."""

    def _replace(match: re.Match) -> str:
        slug = next((g for g in match.groups() if g is not None), "")
        return render(slug)

    return BANNER_TAG_RE.sub(_replace, content or "")
