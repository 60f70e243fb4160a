"""Normalized value objects exposed by the API."""

from .games import (
    LIVE_STATUSES,
    GameChanges,
    GameDetail,
    GameSnapshot,
    GameStatus,
    Notification,
    PlayerGameStats,
    PointsScored,
    Scoreboard,
    ScoreboardDiff,
    TeamLine,
    TeamTotals,
)
from .players import (
    PlayerGameLog,
    PlayerProfile,
    PlayerSearchResult,
    SeasonAverages,
    TeamInfo,
    TeamRef,
)

__all__ = [
    "LIVE_STATUSES",
    "GameChanges",
    "GameDetail",
    "GameSnapshot",
    "GameStatus",
    "Notification",
    "PlayerGameLog",
    "PlayerGameStats",
    "PlayerProfile",
    "PlayerSearchResult",
    "PointsScored",
    "Scoreboard",
    "ScoreboardDiff",
    "SeasonAverages",
    "TeamInfo",
    "TeamLine",
    "TeamRef",
    "TeamTotals",
]
