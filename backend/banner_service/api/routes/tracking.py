from fastapi import APIRouter, Depends
import logging

from banner_service.api.deps import get_stats_recorder, get_token_signer
from banner_service.core.errors import InvalidTokenError
from banner_service.schemas.tracking import TrackEvent
from banner_service.services.stats_recorder import StatsRecorder
from banner_service.services.token_signer import TokenSigner

logger = logging.getLogger(__name__)

# Public: called by the browser tracker on visitor pages
router = APIRouter()


def _verify(event: TrackEvent, signer: TokenSigner) -> None:
    if not signer.validate(event.token, event.banner_id, event.placement_id):
        logger.debug("Rejected token for banner %s / placement %s", event.banner_id, event.placement_id)
        raise InvalidTokenError()


@router.post("/impression")
def track_impression(
    event: TrackEvent,
    signer: TokenSigner = Depends(get_token_signer),
    stats: StatsRecorder = Depends(get_stats_recorder),
):
    _verify(event, signer)
    stats.increment_impressions(event.banner_id, event.placement_id)
    return {"success": True}


@router.post("/click")
def track_click(
    event: TrackEvent,
    signer: TokenSigner = Depends(get_token_signer),
    stats: StatsRecorder = Depends(get_stats_recorder),
):
    _verify(event, signer)
    stats.increment_clicks(event.banner_id, event.placement_id)
    return {"success": True}
