"""Live data service: the owned object behind every live route and stream."""

from __future__ import annotations

import asyncio
from datetime import date
from typing import Any

from ..config import LiveConfig
from ..errors import NotFound, PlaymakerError
from ..logging import logger
from ..models import (
    GameDetail,
    PlayerGameLog,
    PlayerProfile,
    PlayerSearchResult,
    Scoreboard,
    SeasonAverages,
)
from ..utils.datetime_utils import from_date_key, to_date_key, today_eastern
from .espn_client import EspnClient
from .snapshot_cache import LiveSnapshotCache, SnapshotResult


class LiveDataService:
    """Wires the ESPN client to a scoreboard cache with injected timing config."""

    def __init__(self, client: EspnClient, config: LiveConfig) -> None:
        self.client = client
        self.config = config
        self.cache = LiveSnapshotCache(self._load_scoreboard, ttl_seconds=config.snapshot_ttl_seconds)

    async def _load_scoreboard(self, date_key: str) -> Scoreboard:
        return await self.client.fetch_scoreboard(from_date_key(date_key))

    async def get_scoreboard(self, day: date | None = None) -> SnapshotResult:
        return await self.cache.get(to_date_key(day or today_eastern()))

    async def get_game_detail(self, game_id: str) -> GameDetail:
        return await self.client.fetch_game_detail(game_id)

    async def search_players(self, query: str, limit: int) -> list[PlayerSearchResult]:
        return await self.client.search_players(query, limit)

    async def get_player_bundle(
        self, player_id: str
    ) -> tuple[PlayerProfile | None, SeasonAverages | None, list[PlayerGameLog]]:
        """Profile, season averages and recent game logs fetched concurrently.

        A missing profile comes back as None. Stats and game-log failures
        degrade to None and an empty list; a profile failure propagates.
        """
        detail, stats, logs = await asyncio.gather(
            self.client.fetch_player_detail(player_id),
            self.client.fetch_player_stats(player_id),
            self.client.fetch_player_game_logs(player_id, self.config.game_log_limit),
            return_exceptions=True,
        )

        if isinstance(detail, NotFound):
            detail = None
        elif isinstance(detail, BaseException):
            raise detail

        return detail, _degrade(stats, None, player_id, "stats"), _degrade(logs, [], player_id, "game_logs")


def _degrade(result: Any, default: Any, player_id: str, part: str) -> Any:
    if isinstance(result, PlaymakerError):
        logger.warning("player_detail_part_unavailable", player_id=player_id, part=part, error=result.message)
        return default
    if isinstance(result, BaseException):
        raise result
    return result
