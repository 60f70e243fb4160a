"""ESPN NBA data client.

Uses the public ESPN site API (scoreboard, summary, teams, rosters) and the
common v3 web API (search, athletes). Each public method issues exactly one
request per logical call; nothing here retries.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable, Mapping, TypeVar

import httpx

from ..config import EspnConfig, settings
from ..errors import NotFound, ProviderUnavailable
from ..logging import logger
from ..models import (
    GameDetail,
    PlayerGameLog,
    PlayerProfile,
    PlayerSearchResult,
    Scoreboard,
    SeasonAverages,
    TeamInfo,
)
from ..utils.datetime_utils import now_utc, to_date_key, today_eastern
from .normalizer import (
    parse_game_detail,
    parse_game_logs,
    parse_player_detail,
    parse_roster,
    parse_scoreboard,
    parse_search_results,
    parse_season_averages,
    parse_teams,
)

Json = dict[str, Any]
T = TypeVar("T")

DEFAULT_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "User-Agent": "playmaker/1.0 (+https://playmaker.local)",
}


def build_http_client(timeout_seconds: float | None = None) -> httpx.AsyncClient:
    """Shared async client with a bounded timeout for every outbound call."""
    timeout = timeout_seconds or settings.live.request_timeout_seconds
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)),
        headers=DEFAULT_HEADERS,
        follow_redirects=True,
    )


class EspnClient:
    """Client for ESPN scoreboard, game summary, team and athlete endpoints."""

    def __init__(self, http: httpx.AsyncClient, config: EspnConfig | None = None) -> None:
        self._http = http
        self._config = config or settings.espn

    @property
    def _site(self) -> str:
        return self._config.site_base_url.rstrip("/")

    @property
    def _web(self) -> str:
        return self._config.web_base_url.rstrip("/")

    async def _get_json(
        self, url: str, *, params: Mapping[str, Any] | None = None, resource: str
    ) -> Json:
        """GET a JSON object, translating transport and status failures."""
        try:
            response = await self._http.get(url, params=params)
        except httpx.TimeoutException as exc:
            logger.warning("espn_request_timeout", resource=resource, url=url)
            raise ProviderUnavailable(f"ESPN {resource} request timed out") from exc
        except httpx.HTTPError as exc:
            logger.warning("espn_request_error", resource=resource, url=url, error=str(exc))
            raise ProviderUnavailable(f"ESPN {resource} request failed", details=str(exc)) from exc

        if response.status_code == 404:
            logger.info("espn_resource_not_found", resource=resource, url=url)
            raise NotFound(f"ESPN {resource} not found")

        if response.status_code >= 400:
            logger.warning(
                "espn_request_failed",
                resource=resource,
                url=url,
                status=response.status_code,
            )
            raise ProviderUnavailable(
                f"ESPN {resource} returned HTTP {response.status_code}",
                upstream_status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderUnavailable(f"ESPN {resource} response was not valid JSON") from exc

        if not isinstance(data, dict):
            raise ProviderUnavailable(f"ESPN {resource} response was not a JSON object")
        return data

    def _normalize(self, resource: str, parser: Callable[..., T], *args: Any) -> T:
        """Run a parser, reporting a payload it cannot handle as a provider failure."""
        try:
            return parser(*args)
        except (AttributeError, KeyError, IndexError, TypeError, ValueError, OverflowError) as exc:
            logger.warning(
                "espn_payload_malformed",
                resource=resource,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise ProviderUnavailable(f"ESPN {resource} payload malformed", details=str(exc)) from exc

    async def fetch_scoreboard(self, day: date | None = None) -> Scoreboard:
        """Fetch the scoreboard for an Eastern game day (today by default)."""
        day = day or today_eastern()
        date_key = to_date_key(day)
        logger.info("espn_scoreboard_fetch", date=date_key)
        payload = await self._get_json(
            f"{self._site}/scoreboard", params={"dates": date_key}, resource="scoreboard"
        )
        scoreboard = self._normalize("scoreboard", parse_scoreboard, payload, date_key, now_utc())
        logger.info(
            "espn_scoreboard_parsed",
            date=date_key,
            count=len(scoreboard.games),
            live=scoreboard.live_count,
        )
        return scoreboard

    async def fetch_game_detail(self, game_id: str) -> GameDetail:
        logger.info("espn_game_detail_fetch", game_id=game_id)
        payload = await self._get_json(
            f"{self._site}/summary", params={"event": game_id}, resource="game summary"
        )
        detail = self._normalize("game summary", parse_game_detail, payload, game_id)
        if detail is None:
            raise NotFound(f"Game {game_id} not found")
        return detail

    async def fetch_teams(self) -> list[TeamInfo]:
        payload = await self._get_json(f"{self._site}/teams", resource="teams")
        teams = self._normalize("teams", parse_teams, payload)
        logger.info("espn_teams_parsed", count=len(teams))
        return teams

    async def fetch_team_roster(self, team_id: str) -> list[PlayerProfile]:
        payload = await self._get_json(f"{self._site}/teams/{team_id}/roster", resource="roster")
        roster = self._normalize("roster", parse_roster, payload)
        logger.info("espn_roster_parsed", team_id=team_id, count=len(roster))
        return roster

    async def search_players(self, query: str, limit: int = 10) -> list[PlayerSearchResult]:
        logger.info("espn_player_search", query=query, limit=limit)
        payload = await self._get_json(
            f"{self._web}/search",
            # Over-fetch so filtering to NBA players still fills the page
            params={"query": query, "limit": limit * 2, "type": "player"},
            resource="player search",
        )
        return self._normalize("player search", parse_search_results, payload, limit)

    async def fetch_player_detail(self, player_id: str) -> PlayerProfile:
        payload = await self._get_json(
            f"{self._web}/sports/basketball/nba/athletes/{player_id}", resource="athlete"
        )
        profile = self._normalize("athlete", parse_player_detail, payload)
        if profile is None:
            raise NotFound(f"Player {player_id} not found")
        return profile

    async def fetch_player_stats(self, player_id: str) -> SeasonAverages | None:
        payload = await self._get_json(
            f"{self._web}/sports/basketball/nba/athletes/{player_id}/stats",
            resource="athlete stats",
        )
        return self._normalize("athlete stats", parse_season_averages, payload)

    async def fetch_player_game_logs(self, player_id: str, limit: int = 10) -> list[PlayerGameLog]:
        payload = await self._get_json(
            f"{self._web}/sports/basketball/nba/athletes/{player_id}/gamelog",
            resource="athlete game log",
        )
        return self._normalize("athlete game log", parse_game_logs, payload, player_id, limit)
