"""Live scoreboard endpoints: snapshot and server-sent event stream."""

from __future__ import annotations

import json
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse, ServerSentEvent

from ..dependencies import get_broadcaster, get_live_service
from ..live.broadcaster import LiveBroadcaster
from ..live.service import LiveDataService
from ..logging import logger
from ..utils.datetime_utils import now_utc

router = APIRouter(prefix="/api/live", tags=["live"])


def _heartbeat() -> ServerSentEvent:
    return ServerSentEvent(comment="heartbeat")


def _error_response(error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "games": [],
            "lastUpdated": now_utc().isoformat(),
            "source": "Error",
            "error": error,
        },
    )


@router.get("/nba")
async def live_scoreboard(
    day: date | None = Query(None, alias="date"),
    service: LiveDataService = Depends(get_live_service),
) -> Any:
    """
    Current NBA scoreboard, served through the snapshot cache.

    Example: GET /api/live/nba?date=2026-01-22
    """
    try:
        result = await service.get_scoreboard(day)
    except Exception:
        logger.exception("live_scoreboard_failed", date=str(day) if day else None)
        return _error_response("Failed to fetch live game data")
    if result.error is not None and not result.stale:
        return _error_response(result.error)

    scoreboard = result.scoreboard
    return {
        "games": [game.model_dump(mode="json", by_alias=True) for game in scoreboard.games],
        "liveCount": scoreboard.live_count,
        "lastUpdated": result.fetched_at.isoformat(),
        "source": "ESPN",
        "stale": result.stale,
    }


@router.get("/nba/stream")
async def live_stream(
    request: Request,
    broadcaster: LiveBroadcaster = Depends(get_broadcaster),
) -> EventSourceResponse:
    """Push ``connected``, ``update`` and ``error`` events; comment heartbeats in between."""

    async def event_source():
        async for event in broadcaster.stream(request.is_disconnected):
            yield ServerSentEvent(data=json.dumps(event))

    return EventSourceResponse(
        event_source(),
        ping=broadcaster.heartbeat_interval,
        ping_message_factory=_heartbeat,
    )
