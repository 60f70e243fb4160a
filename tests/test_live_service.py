"""Tests for the live data service wiring."""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock

import pytest

from playmaker.config import LiveConfig
from playmaker.errors import NotFound, ProviderUnavailable
from playmaker.live.service import LiveDataService
from playmaker.models import PlayerGameLog, PlayerGameStats, PlayerProfile, SeasonAverages


def _client() -> AsyncMock:
    client = AsyncMock()
    client.fetch_player_detail.return_value = PlayerProfile(id="1966", name="LeBron James")
    client.fetch_player_stats.return_value = SeasonAverages(season="2025-26", points=25.1)
    client.fetch_player_game_logs.return_value = [
        PlayerGameLog(game_id="e1", stats=PlayerGameStats(player_id="1966", points=26))
    ]
    return client


@pytest.mark.asyncio
async def test_scoreboard_goes_through_cache(make_game, make_scoreboard):
    client = _client()
    client.fetch_scoreboard.return_value = make_scoreboard(make_game())
    service = LiveDataService(client, LiveConfig(snapshot_ttl_seconds=10))

    first = await service.get_scoreboard(date(2026, 1, 21))
    second = await service.get_scoreboard(date(2026, 1, 21))

    client.fetch_scoreboard.assert_awaited_once_with(date(2026, 1, 21))
    assert first.from_cache is False
    assert second.from_cache is True


@pytest.mark.asyncio
async def test_player_bundle_success():
    client = _client()
    service = LiveDataService(client, LiveConfig(game_log_limit=5))

    profile, stats, logs = await service.get_player_bundle("1966")

    assert profile.name == "LeBron James"
    assert stats.points == 25.1
    assert [log.game_id for log in logs] == ["e1"]
    client.fetch_player_game_logs.assert_awaited_once_with("1966", 5)


@pytest.mark.asyncio
async def test_player_bundle_degrades_stats_and_logs():
    client = _client()
    client.fetch_player_stats.side_effect = ProviderUnavailable("ESPN athlete stats timed out")
    client.fetch_player_game_logs.side_effect = NotFound("ESPN athlete game log not found")
    service = LiveDataService(client, LiveConfig())

    profile, stats, logs = await service.get_player_bundle("1966")

    assert profile.id == "1966"
    assert stats is None
    assert logs == []


@pytest.mark.asyncio
async def test_player_bundle_missing_profile_is_none():
    client = _client()
    client.fetch_player_detail.side_effect = NotFound("Player 0 not found")
    service = LiveDataService(client, LiveConfig())

    profile, _, _ = await service.get_player_bundle("0")

    assert profile is None


@pytest.mark.asyncio
async def test_player_bundle_profile_failure_propagates():
    client = _client()
    client.fetch_player_detail.side_effect = ProviderUnavailable("ESPN athlete request timed out")
    service = LiveDataService(client, LiveConfig())

    with pytest.raises(ProviderUnavailable):
        await service.get_player_bundle("1966")
