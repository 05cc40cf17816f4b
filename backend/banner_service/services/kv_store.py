"""Small key-value store used for the tracking secret, the schema version and rotation cursors.

Two implementations: ``SqlKeyValueStore`` (the ``options`` table, shared by every
server process) and ``MemoryKeyValueStore`` (single process, tests).
A missing and an expired key look the same to callers.
"""
from __future__ import annotations

import time
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Protocol, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from banner_service.core.clock import utcnow
from banner_service.core.errors import StorageError
from banner_service.db.upsert import upsert
from banner_service.models.option import Option


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None: ...

    def add(self, key: str, value: str) -> bool: ...

    def delete(self, key: str) -> None: ...


class SqlKeyValueStore:
    def __init__(self, db: Session, now: Callable[[], datetime] = utcnow):
        self.db = db
        self._now = now

    def get(self, key: str) -> Optional[str]:
        row = self.db.get(Option, key, populate_existing=True)
        if row is None:
            return None
        if row.expires_at is not None and row.expires_at <= self._now():
            return None
        return row.value

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        expires_at = self._now() + timedelta(seconds=ttl) if ttl else None
        try:
            upsert(
                self.db,
                Option,
                {"name": key, "value": value, "expires_at": expires_at},
                ["name"],
                {"value": value, "expires_at": expires_at},
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Failed to store option '{key}'") from exc

    def add(self, key: str, value: str) -> bool:
        """Insert ``key`` only when it is absent or expired. Returns True if this call wrote it."""
        if self.get(key) is not None:
            return False
        try:
            # An expired row still occupies the key; clear it first
            self.db.query(Option).filter(Option.name == key, Option.expires_at <= self._now()).delete(synchronize_session=False)
            result = upsert(self.db, Option, {"name": key, "value": value, "expires_at": None}, ["name"], None)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Failed to store option '{key}'") from exc
        return bool(result.rowcount)

    def delete(self, key: str) -> None:
        try:
            self.db.query(Option).filter(Option.name == key).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Failed to delete option '{key}'") from exc


class MemoryKeyValueStore:
    """In-process TTL store. Not shared between processes."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}

    def get(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires = entry
        if expires is not None and self._clock() >= expires:
            self._data.pop(key, None)
            return None
        return value

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        self._data[key] = (value, self._clock() + ttl if ttl else None)

    def add(self, key: str, value: str) -> bool:
        if self.get(key) is not None:
            return False
        self._data[key] = (value, None)
        return True

    def delete(self, key: str) -> None:
        self._data.pop(key, None)
