"""Game detail endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ..dependencies import get_live_service
from ..errors import NotFound, PlaymakerError
from ..live.normalizer import resolve_team_totals
from ..live.service import LiveDataService
from ..logging import logger
from ..utils.datetime_utils import epoch_millis, now_utc

router = APIRouter(prefix="/api/games", tags=["games"])


@router.get("/{game_id}")
async def get_game(
    game_id: str,
    service: LiveDataService = Depends(get_live_service),
) -> Any:
    """Full box score for one game, with team totals filled in."""
    try:
        detail = await service.get_game_detail(game_id)
    except NotFound:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Game not found"})
    except PlaymakerError as exc:
        logger.warning("game_detail_failed", game_id=game_id, error=exc.message)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to fetch game details"},
        )

    home_totals, away_totals = resolve_team_totals(detail)
    payload = detail.model_dump(mode="json", by_alias=True)
    payload["homeTotals"] = home_totals.model_dump(mode="json")
    payload["awayTotals"] = away_totals.model_dump(mode="json")
    payload["timestamp"] = epoch_millis(now_utc())
    return payload
