"""Tests for the SSE broadcaster loop."""

from __future__ import annotations

import pytest

from playmaker.config import LiveConfig
from playmaker.live.broadcaster import ConnectionState, LiveBroadcaster, StreamConnection
from playmaker.live.snapshot_cache import SnapshotResult


class _FakeService:
    """Hands out queued snapshot results, repeating the last one."""

    def __init__(self, *results: SnapshotResult) -> None:
        self._results = list(results)
        self.calls = 0

    async def get_scoreboard(self, day=None) -> SnapshotResult:
        self.calls += 1
        if len(self._results) > 1:
            return self._results.pop(0)
        return self._results[0]


class _RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _ok(scoreboard) -> SnapshotResult:
    return SnapshotResult(scoreboard=scoreboard, fetched_at=scoreboard.fetched_at)


def _failed(make_scoreboard) -> SnapshotResult:
    empty = make_scoreboard()
    return SnapshotResult(scoreboard=empty, fetched_at=empty.fetched_at, error="ESPN scoreboard timed out")


def _config(**overrides) -> LiveConfig:
    return LiveConfig(poll_interval_seconds=30, heartbeat_interval_seconds=15, **overrides)


@pytest.mark.asyncio
async def test_connected_then_update(make_game, make_scoreboard):
    service = _FakeService(_ok(make_scoreboard(make_game())))
    sleep = _RecordingSleep()
    broadcaster = LiveBroadcaster(service, _config(), sleep=sleep)

    stream = broadcaster.stream()
    connected = await stream.__anext__()
    update = await stream.__anext__()
    await stream.aclose()

    assert connected["type"] == "connected"
    assert connected["connectionId"]
    assert update["type"] == "update"
    assert update["liveCount"] == 1
    assert update["games"][0]["gameId"] == "401585001"
    assert update["games"][0]["_changes"]["change"] == "added"
    assert update["notifications"] == []
    assert service.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_poll_interval_between_updates(make_game, make_scoreboard):
    service = _FakeService(
        _ok(make_scoreboard(make_game(home_score=50))),
        _ok(make_scoreboard(make_game(home_score=53))),
    )
    sleep = _RecordingSleep()
    broadcaster = LiveBroadcaster(service, _config(), sleep=sleep)

    stream = broadcaster.stream()
    await stream.__anext__()
    await stream.__anext__()
    second = await stream.__anext__()
    await stream.aclose()

    assert sleep.delays == [30]
    changes = second["games"][0]["_changes"]
    assert changes["scoreChanged"] is True
    assert changes["pointsScored"] == {"home": 3, "away": 0}


@pytest.mark.asyncio
async def test_registry_tracks_open_streams(make_game, make_scoreboard):
    service = _FakeService(_ok(make_scoreboard(make_game())))
    broadcaster = LiveBroadcaster(service, _config(), sleep=_RecordingSleep())
    connection = StreamConnection()

    stream = broadcaster.stream(connection=connection)
    assert broadcaster.open_connections == 0

    await stream.__anext__()
    assert broadcaster.open_connections == 1
    assert connection.state == ConnectionState.open

    await stream.aclose()
    assert broadcaster.open_connections == 0
    assert connection.state == ConnectionState.closed


@pytest.mark.asyncio
async def test_disconnect_ends_stream(make_game, make_scoreboard):
    service = _FakeService(_ok(make_scoreboard(make_game())))
    broadcaster = LiveBroadcaster(service, _config(), sleep=_RecordingSleep())

    async def is_disconnected() -> bool:
        return True

    events = [event async for event in broadcaster.stream(is_disconnected)]

    assert [event["type"] for event in events] == ["connected"]
    assert service.calls == 0
    assert broadcaster.open_connections == 0


@pytest.mark.asyncio
async def test_error_event_after_consecutive_failures(make_game, make_scoreboard):
    service = _FakeService(_failed(make_scoreboard))
    broadcaster = LiveBroadcaster(service, _config(stream_error_threshold=2), sleep=_RecordingSleep())
    connection = StreamConnection()

    first = await broadcaster.tick(connection)
    second = await broadcaster.tick(connection)

    assert first is None
    assert second["type"] == "error"
    assert second["message"] == "Failed to fetch live game data"
    assert connection.consecutive_failures == 2


@pytest.mark.asyncio
async def test_success_resets_failure_count(make_game, make_scoreboard):
    service = _FakeService(
        _failed(make_scoreboard),
        _ok(make_scoreboard(make_game())),
    )
    broadcaster = LiveBroadcaster(service, _config(), sleep=_RecordingSleep())
    connection = StreamConnection()

    await broadcaster.tick(connection)
    event = await broadcaster.tick(connection)

    assert event["type"] == "update"
    assert connection.consecutive_failures == 0
    assert connection.updates_sent == 1


@pytest.mark.asyncio
async def test_stale_result_counts_as_failure(make_game, make_scoreboard):
    scoreboard = make_scoreboard(make_game())
    stale = SnapshotResult(
        scoreboard=scoreboard,
        fetched_at=scoreboard.fetched_at,
        from_cache=True,
        stale=True,
        error="ESPN scoreboard returned HTTP 502",
    )
    broadcaster = LiveBroadcaster(_FakeService(stale), _config(), sleep=_RecordingSleep())
    connection = StreamConnection()

    event = await broadcaster.tick(connection)

    assert event is None
    assert connection.consecutive_failures == 1
    assert connection.previous is None


class _CrashingService:
    def __init__(self) -> None:
        self.calls = 0

    async def get_scoreboard(self, day=None) -> SnapshotResult:
        self.calls += 1
        raise RuntimeError("loader bug")


@pytest.mark.asyncio
async def test_crashing_fetch_keeps_stream_open():
    service = _CrashingService()
    sleep = _RecordingSleep()
    broadcaster = LiveBroadcaster(service, _config(stream_error_threshold=2), sleep=sleep)
    connection = StreamConnection()

    stream = broadcaster.stream(connection=connection)
    connected = await stream.__anext__()
    error = await stream.__anext__()
    assert broadcaster.open_connections == 1
    await stream.aclose()

    assert connected["type"] == "connected"
    assert error["type"] == "error"
    assert service.calls == 2
    assert sleep.delays == [30]
    assert connection.consecutive_failures == 2
    assert broadcaster.open_connections == 0


@pytest.mark.asyncio
async def test_notifications_are_not_repeated_on_a_stream(make_game, make_scoreboard):
    service = _FakeService(
        _ok(make_scoreboard(make_game(status="live", period=3, home_score=80, away_score=78))),
        _ok(make_scoreboard(make_game(status="live", period=4, home_score=82, away_score=80))),
        _ok(make_scoreboard(make_game(status="live", period=4, home_score=90, away_score=82))),
        _ok(make_scoreboard(make_game(status="live", period=4, home_score=90, away_score=87))),
    )
    broadcaster = LiveBroadcaster(service, _config(), sleep=_RecordingSleep())
    connection = StreamConnection()

    events = [await broadcaster.tick(connection) for _ in range(4)]

    fired = [[item["id"] for item in event["notifications"]] for event in events]
    assert fired == [[], ["401585001:close"], [], []]
    assert connection.notified == {"401585001:close"}


def test_heartbeat_interval_comes_from_config():
    broadcaster = LiveBroadcaster(_FakeService(), _config())
    assert broadcaster.heartbeat_interval == 15
