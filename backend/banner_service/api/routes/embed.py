from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from banner_service.api.deps import get_renderer, get_selector
from banner_service.db.session import get_db
from banner_service.schemas.tracking import EmbedContent
from banner_service.services.embed import expand_banner_tags, render_placement
from banner_service.services.renderer import BannerRenderer
from banner_service.services.selector import BannerSelector

router = APIRouter()


@router.get("/{slug}", response_class=HTMLResponse)
def embed_placement(
    slug: str,
    db: Session = Depends(get_db),
    selector: BannerSelector = Depends(get_selector),
    renderer: BannerRenderer = Depends(get_renderer),
):
    return HTMLResponse(render_placement(db, slug, selector, renderer))


@router.post("/expand")
def expand_content(
    payload: EmbedContent,
    db: Session = Depends(get_db),
    selector: BannerSelector = Depends(get_selector),
    renderer: BannerRenderer = Depends(get_renderer),
):
    """Replace ``[banner placement="..."]`` tags in a piece of page content."""
    content = expand_banner_tags(payload.content, lambda slug: render_placement(db, slug, selector, renderer))
    return {"content": content}
