"""Server-sent event fan-out for live scoreboard updates.

Each open stream is a ``StreamConnection`` driven by its own async generator.
The generator reads through the shared snapshot cache, so any number of
streams share one upstream fetch per TTL window. Heartbeat comments are sent
by the SSE response's ping task; the generator only yields data events.

Connection lifecycle::

    connecting -> open -> (streaming | idle_heartbeat)* -> closed
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable

from ..config import LiveConfig
from ..logging import logger
from ..models import Scoreboard
from ..utils.datetime_utils import epoch_millis, now_utc
from .change_detector import annotate_games, detect_changes
from .notifications import derive_notifications
from .service import LiveDataService

Event = dict[str, Any]
DisconnectCheck = Callable[[], Awaitable[bool]]


class ConnectionState(str, Enum):
    connecting = "connecting"
    open = "open"
    streaming = "streaming"
    idle_heartbeat = "idle_heartbeat"
    closed = "closed"


@dataclass
class StreamConnection:
    connection_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: ConnectionState = ConnectionState.connecting
    opened_at: datetime = field(default_factory=now_utc)
    updates_sent: int = 0
    consecutive_failures: int = 0
    previous: Scoreboard | None = None
    notified: set[str] = field(default_factory=set)


class LiveBroadcaster:
    """Registry of open streams plus the per-connection fetch/diff/emit loop."""

    def __init__(
        self,
        service: LiveDataService,
        config: LiveConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._service = service
        self._config = config
        self._sleep = sleep
        self._connections: dict[str, StreamConnection] = {}

    @property
    def open_connections(self) -> int:
        return len(self._connections)

    @property
    def heartbeat_interval(self) -> float:
        return self._config.heartbeat_interval_seconds

    def _register(self, connection: StreamConnection) -> None:
        self._connections[connection.connection_id] = connection
        logger.info(
            "live_stream_registered",
            connection_id=connection.connection_id,
            open_streams=self.open_connections,
        )

    def _deregister(self, connection: StreamConnection) -> None:
        connection.state = ConnectionState.closed
        self._connections.pop(connection.connection_id, None)
        logger.info(
            "live_stream_closed",
            connection_id=connection.connection_id,
            updates_sent=connection.updates_sent,
            open_streams=self.open_connections,
        )

    async def stream(
        self,
        is_disconnected: DisconnectCheck | None = None,
        connection: StreamConnection | None = None,
    ) -> AsyncIterator[Event]:
        """Yield ``connected`` at once, then one event per poll tick until closed.

        Cancellation (client disconnect) and generator close both land in the
        ``finally`` block, which deregisters the connection.
        """
        connection = connection or StreamConnection()
        self._register(connection)
        try:
            connection.state = ConnectionState.open
            yield {
                "type": "connected",
                "connectionId": connection.connection_id,
                "timestamp": epoch_millis(now_utc()),
            }
            while True:
                if is_disconnected is not None and await is_disconnected():
                    logger.debug("live_stream_client_gone", connection_id=connection.connection_id)
                    break
                event = await self.tick(connection)
                if event is not None:
                    connection.state = ConnectionState.streaming
                    yield event
                connection.state = ConnectionState.idle_heartbeat
                await self._sleep(self._config.poll_interval_seconds)
        finally:
            self._deregister(connection)

    async def tick(self, connection: StreamConnection) -> Event | None:
        """One fetch/diff cycle. Returns the event to emit, if any.

        Any failure counts against the connection; the stream stays open and
        the next tick tries again.
        """
        try:
            result = await self._service.get_scoreboard()
        except Exception as exc:
            logger.exception("live_stream_tick_crashed", connection_id=connection.connection_id)
            return self._failed_tick(connection, f"{type(exc).__name__}: {exc}")

        if result.error is not None:
            return self._failed_tick(connection, result.error)

        connection.consecutive_failures = 0
        scoreboard = result.scoreboard
        diff = detect_changes(connection.previous, scoreboard)
        notifications = derive_notifications(connection.previous, scoreboard, connection.notified)
        connection.previous = scoreboard
        connection.updates_sent += 1

        if diff.has_changes:
            logger.debug(
                "live_stream_changes",
                connection_id=connection.connection_id,
                added=len(diff.added_ids),
                removed=len(diff.removed_ids),
            )

        return {
            "type": "update",
            "games": annotate_games(scoreboard, diff),
            "liveCount": scoreboard.live_count,
            "removedGameIds": diff.removed_ids,
            "notifications": [item.model_dump(mode="json", by_alias=True) for item in notifications],
            "lastUpdated": scoreboard.fetched_at.isoformat(),
            "timestamp": epoch_millis(now_utc()),
        }

    def _failed_tick(self, connection: StreamConnection, error: str) -> Event | None:
        connection.consecutive_failures += 1
        logger.warning(
            "live_stream_fetch_failed",
            connection_id=connection.connection_id,
            failures=connection.consecutive_failures,
            error=error,
        )
        threshold = max(self._config.stream_error_threshold, 1)
        if connection.consecutive_failures % threshold == 0:
            return {
                "type": "error",
                "message": "Failed to fetch live game data",
                "timestamp": epoch_millis(now_utc()),
            }
        return None
