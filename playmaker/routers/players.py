"""Player search and player detail endpoints.

Search reads the relational mirror first and falls back to the provider.
Detail reads the provider first and falls back to the mirror.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from ..db import AsyncSession, get_db
from ..dependencies import get_live_service
from ..errors import PlaymakerError
from ..live.service import LiveDataService
from ..logging import logger
from ..models import PlayerProfile
from ..services.player_mirror import MIRROR_ERRORS, find_mirrored_player, search_player_mirror
from ..utils.datetime_utils import now_utc

router = APIRouter(prefix="/api/players", tags=["players"])

MIN_QUERY_LENGTH = 2
DEFAULT_SEARCH_LIMIT = 10
MAX_SEARCH_LIMIT = 20


def _failure(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"code": code, "message": message}},
    )


@router.get("/search")
async def search_players(
    q: str = Query(""),
    limit: int = Query(DEFAULT_SEARCH_LIMIT, ge=1),
    session: AsyncSession = Depends(get_db),
    service: LiveDataService = Depends(get_live_service),
) -> Any:
    """
    Search players by name.

    Example: GET /api/players/search?q=lebron&limit=5
    """
    query = q.strip()
    limit = min(limit, MAX_SEARCH_LIMIT)
    if len(query) < MIN_QUERY_LENGTH:
        return {"success": True, "data": [], "meta": {"query": q, "count": 0}}

    try:
        mirrored = await search_player_mirror(session, query, limit)
    except MIRROR_ERRORS as exc:
        logger.warning("player_search_mirror_failed", query=query, error=str(exc))
        mirrored = []

    if mirrored:
        return {
            "success": True,
            "data": [player.model_dump(mode="json", by_alias=True) for player in mirrored],
            "meta": {"query": q, "count": len(mirrored), "source": "database"},
        }

    try:
        results = await service.search_players(query, limit)
    except PlaymakerError as exc:
        logger.warning("player_search_failed", query=query, error=exc.message)
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "SEARCH_FAILED", "Failed to search players")

    return {
        "success": True,
        "data": [player.model_dump(mode="json", by_alias=True) for player in results],
        "meta": {"query": q, "count": len(results), "source": "espn"},
    }


async def _mirror_profile(session: AsyncSession, player_id: str) -> PlayerProfile | None:
    try:
        return await find_mirrored_player(session, player_id)
    except MIRROR_ERRORS as exc:
        logger.warning("player_detail_mirror_failed", player_id=player_id, error=str(exc))
        return None


def _mirror_response(profile: PlayerProfile) -> dict[str, Any]:
    return {
        "success": True,
        "data": {"player": profile.model_dump(mode="json", by_alias=True), "stats": None, "gameLogs": []},
        "meta": {"source": "database"},
    }


@router.get("/{player_id}")
async def get_player(
    player_id: str,
    session: AsyncSession = Depends(get_db),
    service: LiveDataService = Depends(get_live_service),
) -> Any:
    """Profile, season averages and the last ten game logs for a player."""
    player_id = player_id.strip()
    if not player_id:
        return _failure(status.HTTP_400_BAD_REQUEST, "MISSING_ID", "Player ID is required")

    try:
        profile, stats, game_logs = await service.get_player_bundle(player_id)
    except PlaymakerError as exc:
        logger.warning("player_detail_failed", player_id=player_id, error=exc.message)
        fallback = await _mirror_profile(session, player_id)
        if fallback is not None:
            return _mirror_response(fallback)
        return _failure(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "FETCH_FAILED", "Failed to fetch player details"
        )

    if profile is None:
        fallback = await _mirror_profile(session, player_id)
        if fallback is not None:
            return _mirror_response(fallback)
        return _failure(status.HTTP_404_NOT_FOUND, "NOT_FOUND", "Player not found")

    return {
        "success": True,
        "data": {
            "player": profile.model_dump(mode="json", by_alias=True),
            "stats": stats.model_dump(mode="json", by_alias=True) if stats else None,
            "gameLogs": [log.model_dump(mode="json", by_alias=True) for log in game_logs],
        },
        "meta": {"source": "espn", "timestamp": now_utc().isoformat()},
    }
