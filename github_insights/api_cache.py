"""Time-bounded response cache in front of GitHub REST requests.

Entries are keyed by the full request URL (query string included). A fresh
entry is served without touching the network; an expired or missing entry
triggers a live request. When that request fails, any previously stored
payload for the key is served instead (stale fallback) and the failure is only
raised when nothing was ever cached.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from typing import Any
from typing import Literal

import httpx

from github_insights.settings import Settings


logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60.0

CacheSource = Literal["hit", "miss", "stale"]


class FetchError(Exception):
    """Raised when an upstream request fails and no cached payload exists."""

    def __init__(self, url: str, status_code: int | None, reason: str) -> None:
        self.url = url
        self.status_code = status_code
        self.reason = reason
        if status_code is None:
            message = f"API request failed: {reason}"
        else:
            message = f"API request failed: {status_code} {reason}"
        super().__init__(message)

    @property
    def not_found(self) -> bool:
        return self.status_code == 404


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: Any
    fetched_at: float


@dataclass(frozen=True)
class CacheResult:
    """Payload returned by a lookup together with where it came from."""

    payload: Any
    source: CacheSource

    @property
    def stale(self) -> bool:
        return self.source == "stale"


class ResponseCache:
    """Process-local cache of JSON responses keyed by request URL.

    The cache owns its key to entry mapping and is meant to be created once
    per process and passed to whatever issues requests. Replacing an entry is
    a single dict assignment, so concurrent lookups for one key end with the
    last completed response stored.

    With ``dedupe_in_flight`` enabled, a lookup that finds another request
    for the same key already running awaits that request instead of issuing
    its own.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        max_entries: int | None = None,
        dedupe_in_flight: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")

        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self.dedupe_in_flight = dedupe_in_flight
        self._client = client
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._in_flight: dict[str, asyncio.Task[CacheResult]] = {}

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "ResponseCache":
        client = httpx.AsyncClient(
            headers={
                "Accept": "application/vnd.github+json",
                "User-Agent": app_settings.user_agent,
            },
            timeout=app_settings.request_timeout_seconds,
            follow_redirects=True,
        )
        return cls(
            client,
            default_ttl=app_settings.cache_ttl_seconds,
            max_entries=app_settings.cache_max_entries,
            dedupe_in_flight=app_settings.cache_dedupe_in_flight,
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    async def fetch(self, key: str, ttl: float | None = None) -> Any:
        """Return the JSON payload for ``key``, from cache when fresh."""

        result = await self.lookup(key, ttl=ttl)
        return result.payload

    async def lookup(self, key: str, ttl: float | None = None) -> CacheResult:
        """Like :meth:`fetch` but also report hit, miss or stale fallback."""

        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()
        entry = self._entries.get(key)

        if entry is not None and now - entry.fetched_at < ttl:
            logger.debug("Cache hit for %s", key)
            return CacheResult(payload=entry.payload, source="hit")

        if not self.dedupe_in_flight:
            return await self._refresh(key, now)

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._refresh(key, now))
            self._in_flight[key] = task
            task.add_done_callback(partial(self._forget_in_flight, key))
        else:
            logger.debug("Joining in-flight request for %s", key)

        # One cancelled caller must not cancel the request for the others.
        return await asyncio.shield(task)

    def invalidate(self, key: str) -> bool:
        """Remove one entry. Returns whether anything was removed."""

        return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        """Remove every entry and return how many there were."""

        removed = len(self._entries)
        self._entries.clear()
        return removed

    async def aclose(self) -> None:
        await self._client.aclose()

    def _forget_in_flight(self, key: str, task: asyncio.Task[CacheResult]) -> None:
        self._in_flight.pop(key, None)
        # Waiters may all have been cancelled; the failure still counts as seen.
        if not task.cancelled():
            task.exception()

    async def _refresh(self, key: str, now: float) -> CacheResult:
        logger.debug("Cache miss for %s, fetching fresh data", key)
        try:
            payload = await self._request(key)
        except FetchError as exc:
            stale_entry = self._entries.get(key)
            if stale_entry is not None:
                logger.warning("Returning stale data for %s: %s", key, exc)
                return CacheResult(payload=stale_entry.payload, source="stale")
            logger.warning("Error fetching %s: %s", key, exc)
            raise

        self._store(CacheEntry(key=key, payload=payload, fetched_at=now))
        return CacheResult(payload=payload, source="miss")

    async def _request(self, url: str) -> Any:
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as exc:
            raise FetchError(url, None, "request timed out") from exc
        except httpx.HTTPError as exc:
            raise FetchError(url, None, str(exc) or type(exc).__name__) from exc

        # 202 means GitHub is still computing the resource; nothing to store yet.
        if not response.is_success or response.status_code == 202:
            raise FetchError(url, response.status_code, response.reason_phrase)

        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(
                url, response.status_code, "response body is not valid JSON"
            ) from exc

    def _store(self, entry: CacheEntry) -> None:
        self._entries[entry.key] = entry
        self._entries.move_to_end(entry.key)

        if self.max_entries is None:
            return
        while len(self._entries) > self.max_entries:
            evicted_key, _ = self._entries.popitem(last=False)
            logger.debug("Evicted %s from cache", evicted_key)
