"""Signed, date-bound tracking tokens.

A token is ``HMAC-SHA256(secret, "{banner_id}:{placement_id}:{YYYY-MM-DD}")`` as
lowercase hex, the date being the UTC calendar day. It is only valid on the day it
was minted: there is no grace window around midnight, so a banner rendered at
23:59 UTC and seen at 00:00 UTC goes uncounted.
"""
import hashlib
import hmac
import logging
import secrets
from datetime import date
from typing import Callable

from banner_service.core.clock import utc_today
from banner_service.core.errors import StorageError
from banner_service.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

SECRET_OPTION = "tracking_secret"
SECRET_BYTES = 32


def new_secret() -> str:
    return secrets.token_hex(SECRET_BYTES)


class TokenSigner:
    def __init__(self, store: KeyValueStore, today: Callable[[], date] = utc_today):
        self.store = store
        self._today = today

    def generate(self, banner_id: int, placement_id: int) -> str:
        return self._sign(banner_id, placement_id, self._today())

    def validate(self, token: str, banner_id: int, placement_id: int) -> bool:
        if not token or not isinstance(token, str):
            return False
        expected = self.generate(banner_id, placement_id)
        # Bytes, so non-ASCII input is a mismatch rather than a TypeError
        return hmac.compare_digest(expected.encode("ascii"), token.encode("utf-8", "surrogatepass"))

    def rotate_secret(self) -> None:
        """Replace the secret. Every token minted before this call stops validating."""
        self.store.set(SECRET_OPTION, new_secret())
        logger.info("Tracking secret rotated")

    def _sign(self, banner_id: int, placement_id: int, day: date) -> str:
        message = f"{banner_id}:{placement_id}:{day.isoformat()}".encode("utf-8")
        return hmac.new(self._secret().encode("utf-8"), message, hashlib.sha256).hexdigest()

    def _secret(self) -> str:
        secret = self.store.get(SECRET_OPTION)
        if secret:
            return secret
        # Insert-if-absent then re-read, so concurrent first uses agree on one value
        if self.store.add(SECRET_OPTION, new_secret()):
            logger.info("Generated new tracking secret")
        secret = self.store.get(SECRET_OPTION)
        if not secret:
            raise StorageError("Tracking secret could not be persisted")
        return secret
