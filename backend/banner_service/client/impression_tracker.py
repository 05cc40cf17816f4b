"""Impression tracker for clients that display rendered banners outside a browser.

Mirrors ``static/js/tracking.js``: a banner counts once it has been at least half
visible for one uninterrupted second, and each (banner, placement) pair is sent at
most once per session. Sending is fire-and-forget; failures are dropped, never
retried, never raised.

The host feeds visibility batches into :meth:`ImpressionTracker.on_visibility`,
the way an IntersectionObserver callback receives entries.
"""
from __future__ import annotations

import asyncio
import inspect
import json
import logging
from dataclasses import dataclass
from enum import Enum
from html.parser import HTMLParser
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Set, Tuple

import httpx

logger = logging.getLogger(__name__)

VISIBILITY_THRESHOLD = 0.5
DWELL_SECONDS = 1.0


class TrackerState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    FIRED = "fired"


@dataclass(frozen=True)
class TrackedBanner:
    banner_id: int
    placement_id: int
    token: str

    @property
    def key(self) -> str:
        return f"{self.banner_id}:{self.placement_id}"

    def payload(self) -> dict:
        return {"banner_id": self.banner_id, "placement_id": self.placement_id, "token": self.token}


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle: ...


class SessionStore(Protocol):
    def load(self) -> Set[str]: ...

    def save(self, keys: Set[str]) -> None: ...


class MemorySessionStore:
    def __init__(self):
        self._keys: Set[str] = set()

    def load(self) -> Set[str]:
        return set(self._keys)

    def save(self, keys: Set[str]) -> None:
        self._keys = set(keys)


class FileSessionStore:
    """Tracked keys in a JSON file, so a restarted client keeps its session."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Set[str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return set()
        return {str(k) for k in data} if isinstance(data, list) else set()

    def save(self, keys: Set[str]) -> None:
        try:
            self.path.write_text(json.dumps(sorted(keys)), encoding="utf-8")
        except OSError:
            # Read-only or full disk: the worst case is one more impression next session
            logger.debug("Could not persist tracked keys to %s", self.path)


class HttpImpressionSender:
    """POSTs impressions to ``{base_url}/track/impression``."""

    def __init__(self, base_url: str, client: Optional[httpx.AsyncClient] = None, timeout: float = 5.0):
        self.url = base_url.rstrip("/") + "/track/impression"
        self._client = client
        self._timeout = timeout

    async def __call__(self, payload: dict) -> None:
        if self._client is not None:
            await self._client.post(self.url, json=payload, timeout=self._timeout)
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            await client.post(self.url, json=payload)


class _LoopScheduler:
    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class ImpressionTracker:
    def __init__(
        self,
        send: Callable[[dict], Any],
        scheduler: Optional[Scheduler] = None,
        session: Optional[SessionStore] = None,
        threshold: float = VISIBILITY_THRESHOLD,
        dwell: float = DWELL_SECONDS,
    ):
        self._send = send
        self._scheduler = scheduler or _LoopScheduler()
        self._session = session or MemorySessionStore()
        self.threshold = threshold
        self.dwell = dwell
        self._tracked: Set[str] = self._session.load()
        self._timers: Dict[str, TimerHandle] = {}
        self._observed: Dict[str, TrackedBanner] = {}
        self._pending_sends: Set[asyncio.Future] = set()

    def observe(self, banner: TrackedBanner) -> None:
        if banner.token:
            self._observed[banner.key] = banner

    def state(self, banner: TrackedBanner) -> TrackerState:
        if banner.key in self._tracked:
            return TrackerState.FIRED
        if banner.key in self._timers:
            return TrackerState.PENDING
        return TrackerState.IDLE

    def on_visibility(self, entries: Iterable[Tuple[TrackedBanner, float]]) -> None:
        """Process one batch of (banner, visible ratio) changes."""
        for banner, ratio in entries:
            if banner.key not in self._observed:
                continue
            if ratio >= self.threshold:
                self._start_timer(banner)
            else:
                self._cancel_timer(banner)

    def _start_timer(self, banner: TrackedBanner) -> None:
        key = banner.key
        if key in self._tracked or key in self._timers:
            return
        self._timers[key] = self._scheduler.call_later(self.dwell, lambda: self._fire(banner))

    def _cancel_timer(self, banner: TrackedBanner) -> None:
        handle = self._timers.pop(banner.key, None)
        if handle is not None:
            handle.cancel()

    def _fire(self, banner: TrackedBanner) -> None:
        key = banner.key
        self._timers.pop(key, None)
        if key in self._tracked:
            return
        # Mark before sending so a slow or failing request can never double count
        self._tracked.add(key)
        self._session.save(self._tracked)
        try:
            result = self._send(banner.payload())
            if inspect.isawaitable(result):
                future = asyncio.ensure_future(result)
                self._pending_sends.add(future)
                future.add_done_callback(self._send_done)
        except Exception:
            logger.debug("Impression send failed for %s", key, exc_info=True)

    def _send_done(self, future: asyncio.Future) -> None:
        self._pending_sends.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.debug("Impression send failed", exc_info=future.exception())


class _BannerMarkupParser(HTMLParser):
    def __init__(self):
        super().__init__()
        self.banners: List[TrackedBanner] = []

    def handle_starttag(self, tag, attrs):
        data = dict(attrs)
        if "banner-slot" not in (data.get("class") or "").split():
            return
        token = data.get("data-track-token")
        try:
            banner_id = int(data.get("data-banner-id") or 0)
            placement_id = int(data.get("data-placement-id") or 0)
        except ValueError:
            return
        if token and banner_id > 0 and placement_id > 0:
            self.banners.append(TrackedBanner(banner_id, placement_id, token))


def banners_from_markup(html: str) -> List[TrackedBanner]:
    """Trackable banners found in rendered markup, in document order."""
    parser = _BannerMarkupParser()
    parser.feed(html or "")
    parser.close()
    return parser.banners
