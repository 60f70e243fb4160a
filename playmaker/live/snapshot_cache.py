"""In-process scoreboard cache with request coalescing.

Fresh entries live in a ``TTLCache`` keyed by date. A miss starts a single
loader task for that key; every caller that arrives while it runs awaits the
same task. The last good scoreboard per key is kept outside the TTL window
and served as stale when the provider fails. Loads for one key overlap only
after ``invalidate`` detaches a running one; a completed fetch then replaces
the cached entry only if it started no earlier than the fetch behind the
current entry, so an older response never overwrites a newer one.
"""

from __future__ import annotations

import asyncio
import functools
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable

from cachetools import TTLCache

from ..errors import PlaymakerError
from ..logging import logger
from ..models import Scoreboard
from ..utils.datetime_utils import now_utc

ScoreboardLoader = Callable[[str], Awaitable[Scoreboard]]

MAX_DATE_KEYS = 64


@dataclass(frozen=True)
class SnapshotResult:
    scoreboard: Scoreboard
    fetched_at: datetime
    from_cache: bool = False
    stale: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class _Entry:
    scoreboard: Scoreboard
    started_at: float


class LiveSnapshotCache:
    """TTL cache keyed by ``YYYYMMDD`` date keys."""

    def __init__(
        self,
        loader: ScoreboardLoader,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._fresh: TTLCache[str, _Entry] = TTLCache(
            maxsize=MAX_DATE_KEYS, ttl=ttl_seconds, timer=clock
        )
        self._last_good: dict[str, _Entry] = {}
        self._in_flight: dict[str, asyncio.Task[Scoreboard]] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def peek(self, date_key: str) -> Scoreboard | None:
        entry = self._last_good.get(date_key)
        return entry.scoreboard if entry else None

    def invalidate(self, date_key: str | None = None) -> None:
        """Expire fresh entries and detach in-flight loads.

        A detached load still completes for the callers already awaiting it,
        but the next ``get`` starts a new one.
        """
        if date_key is None:
            self._fresh.clear()
            self._in_flight.clear()
        else:
            self._fresh.pop(date_key, None)
            self._in_flight.pop(date_key, None)

    async def get(self, date_key: str) -> SnapshotResult:
        """Return a scoreboard no older than the TTL, or the best fallback.

        Never raises for provider failures: the last good scoreboard comes back
        flagged stale, or an empty scoreboard with ``error`` set.
        """
        entry = self._fresh.get(date_key)
        if entry is not None:
            logger.debug("live_cache_hit", date=date_key)
            return SnapshotResult(
                scoreboard=entry.scoreboard,
                fetched_at=entry.scoreboard.fetched_at,
                from_cache=True,
            )

        task = self._in_flight.get(date_key)
        if task is None:
            started_at = self._clock()
            task = asyncio.ensure_future(self._load(date_key, started_at))
            self._in_flight[date_key] = task
            task.add_done_callback(functools.partial(self._forget, date_key))
            logger.debug("live_cache_miss", date=date_key)
        else:
            logger.debug("live_cache_coalesced", date=date_key)

        try:
            scoreboard = await asyncio.shield(task)
        except PlaymakerError as exc:
            return self._fallback(date_key, exc)

        current = self._last_good.get(date_key)
        latest = current.scoreboard if current else scoreboard
        return SnapshotResult(scoreboard=latest, fetched_at=latest.fetched_at)

    def _forget(self, date_key: str, task: asyncio.Task[Scoreboard]) -> None:
        if self._in_flight.get(date_key) is task:
            del self._in_flight[date_key]
        # Retrieve the exception even when every waiter was cancelled
        if not task.cancelled() and task.exception() is not None:
            logger.debug("live_cache_load_failed", date=date_key, error=str(task.exception()))

    async def _load(self, date_key: str, started_at: float) -> Scoreboard:
        scoreboard = await self._loader(date_key)
        current = self._last_good.get(date_key)
        if current is None or started_at >= current.started_at:
            entry = _Entry(scoreboard=scoreboard, started_at=started_at)
            self._last_good[date_key] = entry
            self._fresh[date_key] = entry
        else:
            logger.info("live_cache_write_skipped", date=date_key, reason="newer_entry_cached")
        return scoreboard

    def _fallback(self, date_key: str, exc: PlaymakerError) -> SnapshotResult:
        entry = self._last_good.get(date_key)
        if entry is not None:
            logger.warning("live_cache_serving_stale", date=date_key, error=exc.message)
            return SnapshotResult(
                scoreboard=entry.scoreboard,
                fetched_at=entry.scoreboard.fetched_at,
                from_cache=True,
                stale=True,
                error=exc.message,
            )
        logger.warning("live_cache_empty_after_error", date=date_key, error=exc.message)
        return SnapshotResult(
            scoreboard=Scoreboard(date_key=date_key, games=[], fetched_at=now_utc()),
            fetched_at=now_utc(),
            error=exc.message,
        )
