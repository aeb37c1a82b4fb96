"""
Fetch-through snapshot cache for the full employee collection.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional

from shared.logging import get_logger
from ..domain.result import Result

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


DEFAULT_SNAPSHOT_TTL = 600.0


@dataclass(frozen=True)
class CacheEntry:
    """A cached envelope and the monotonic instant it stops being served."""

    result: Result
    expires_at: float


class SnapshotCache:
    """Single-slot cache keyed on "all employees".

    ``get_snapshot`` serves the live entry or fetches through ``loader``.
    Concurrent misses share one in-flight fetch. Failed fetches are cached
    like successes, for ``error_ttl_seconds`` when set and ``ttl_seconds``
    otherwise. Expired entries are removed by a timer and, should the timer
    lag, on the next read.
    """

    KEY = "allEmployees"

    def __init__(
        self,
        loader: Callable[[], Awaitable[Result]],
        *,
        ttl_seconds: float = DEFAULT_SNAPSHOT_TTL,
        error_ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        metrics: Optional["MetricsCollector"] = None,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if error_ttl_seconds is not None and error_ttl_seconds <= 0:
            raise ValueError("error_ttl_seconds must be positive")
        self._loader = loader
        self.ttl_seconds = ttl_seconds
        self.error_ttl_seconds = error_ttl_seconds
        self._clock = clock
        self.metrics = metrics
        self.logger = get_logger("directory.snapshot_cache")

        self._entry: Optional[CacheEntry] = None
        self._inflight: Optional["asyncio.Task[Result]"] = None
        self._expiry_handle: Optional[asyncio.TimerHandle] = None
        self._generation = 0

        self._hits = 0
        self._misses = 0
        self._coalesced = 0
        self._fetches = 0
        self._invalidations = 0
        self._expirations = 0

    async def get_snapshot(self) -> Result:
        """Return the cached envelope, fetching through on a miss."""
        entry = self._live_entry()
        if entry is not None:
            self._hits += 1
            self._event("hit")
            return entry.result

        # No await between the check and the task creation, so the event loop
        # serialises this section and at most one fetch is in flight.
        if self._inflight is None:
            self._misses += 1
            self._event("miss")
            self._inflight = asyncio.ensure_future(self._populate(self._generation))
        else:
            self._coalesced += 1
            self._event("coalesced")
        # Shielded so a cancelled caller does not abort a fetch others await.
        return await asyncio.shield(self._inflight)

    def invalidate(self) -> None:
        """Drop the entry now; the next read fetches through."""
        self._generation += 1
        self._inflight = None
        self._cancel_expiry()
        had_entry = self._entry is not None
        self._entry = None
        self._invalidations += 1
        self._event("invalidate")
        self._set_live(False)
        self.logger.info("Snapshot cache invalidated", key=self.KEY, had_entry=had_entry)

    def peek(self) -> Optional[CacheEntry]:
        """Current live entry without triggering a fetch."""
        return self._live_entry()

    def stats(self) -> Dict[str, Any]:
        entry = self._live_entry()
        return {
            "key": self.KEY,
            "live": entry is not None,
            "expires_in_seconds": max(0.0, entry.expires_at - self._clock()) if entry else None,
            "cached_error": entry.result.is_error if entry else None,
            "ttl_seconds": self.ttl_seconds,
            "error_ttl_seconds": self.error_ttl_seconds,
            "hits": self._hits,
            "misses": self._misses,
            "coalesced": self._coalesced,
            "fetches": self._fetches,
            "invalidations": self._invalidations,
            "expirations": self._expirations,
            "fetch_in_flight": self._inflight is not None,
        }

    async def close(self) -> None:
        """Cancel the expiry timer and any in-flight fetch."""
        self._cancel_expiry()
        inflight, self._inflight = self._inflight, None
        if inflight is not None and not inflight.done():
            inflight.cancel()
            try:
                await inflight
            except asyncio.CancelledError:
                pass

    async def _populate(self, generation: int) -> Result:
        self._fetches += 1
        started = self._clock()
        try:
            try:
                result = await self._loader()
            except Exception as exc:
                self.logger.error("Snapshot loader raised", key=self.KEY, error=str(exc), exc_info=True)
                result = Result.error(str(exc) or type(exc).__name__)

            if generation == self._generation:
                self._store(result)
            else:
                self.logger.info("Discarding snapshot fetched before invalidation", key=self.KEY)

            self.logger.info(
                "Snapshot fetched",
                key=self.KEY,
                outcome="error" if result.is_error else "handled",
                duration_ms=round((self._clock() - started) * 1000, 2),
            )
            return result
        finally:
            if self._inflight is asyncio.current_task():
                self._inflight = None

    def _store(self, result: Result) -> None:
        ttl = self.ttl_seconds
        if result.is_error and self.error_ttl_seconds is not None:
            ttl = self.error_ttl_seconds

        entry = CacheEntry(result=result, expires_at=self._clock() + ttl)
        self._entry = entry
        self._cancel_expiry()
        self._expiry_handle = asyncio.get_running_loop().call_later(ttl, self._expire, entry)
        self._event("populate")
        self._set_live(True)

    def _expire(self, entry: CacheEntry) -> None:
        # Stale timers for replaced or invalidated entries do nothing.
        if self._entry is entry:
            self._evict()

    def _live_entry(self) -> Optional[CacheEntry]:
        entry = self._entry
        if entry is not None and self._clock() >= entry.expires_at:
            self._evict()
            return None
        return entry

    def _evict(self) -> None:
        self._entry = None
        self._cancel_expiry()
        self._expirations += 1
        self._event("expire")
        self._set_live(False)
        self.logger.debug("Snapshot cache entry expired", key=self.KEY)

    def _cancel_expiry(self) -> None:
        if self._expiry_handle is not None:
            self._expiry_handle.cancel()
            self._expiry_handle = None

    def _event(self, event: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("snapshot_cache_events_total", event=event)

    def _set_live(self, live: bool) -> None:
        if self.metrics:
            self.metrics.set_gauge("snapshot_cache_live", 1 if live else 0)
