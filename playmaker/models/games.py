"""Game-level value objects with camelCase output."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

GameStatus = Literal["scheduled", "live", "halftime", "final"]
ChangeKind = Literal["added", "removed", "updated", "unchanged"]
NotificationType = Literal["score", "highlight", "alert", "info"]

LIVE_STATUSES = frozenset({"live", "halftime"})


class TeamLine(BaseModel):
    """One side of a matchup as shown on the scoreboard."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    abbreviation: str
    name: str
    display_name: str = Field("", alias="displayName")
    short_name: str = Field("", alias="shortName")
    logo: str | None = None
    color: str | None = None
    alternate_color: str | None = Field(None, alias="alternateColor")
    record: str | None = None
    score: int = 0


class GameSnapshot(BaseModel):
    """A single game as of one fetch cycle."""

    model_config = ConfigDict(populate_by_name=True)

    game_id: str = Field(..., alias="gameId")
    name: str = ""
    short_name: str = Field("", alias="shortName")
    status: GameStatus = "scheduled"
    status_detail: str = Field("", alias="statusDetail")
    period: int = Field(0, ge=0)
    clock: str = ""
    start_time: datetime | None = Field(None, alias="startTime")
    venue: str | None = None
    broadcast: str | None = None
    home_team: TeamLine = Field(..., alias="homeTeam")
    away_team: TeamLine = Field(..., alias="awayTeam")

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_STATUSES


class Scoreboard(BaseModel):
    """Every game for one Eastern date key."""

    model_config = ConfigDict(populate_by_name=True)

    date_key: str = Field(..., alias="dateKey")
    games: list[GameSnapshot] = Field(default_factory=list)
    fetched_at: datetime = Field(..., alias="fetchedAt")

    @property
    def live_count(self) -> int:
        return sum(1 for game in self.games if game.is_live)

    def by_id(self) -> dict[str, GameSnapshot]:
        return {game.game_id: game for game in self.games}


class PlayerGameStats(BaseModel):
    """One player's line in a box score."""

    model_config = ConfigDict(populate_by_name=True)

    player_id: str = Field(..., alias="playerId")
    name: str = ""
    short_name: str = Field("", alias="shortName")
    position: str = ""
    jersey: str = ""
    headshot: str | None = None
    starter: bool = False
    did_not_play: bool = Field(False, alias="didNotPlay")
    minutes: str = "0"
    points: int = 0
    rebounds: int = 0
    offensive_rebounds: int = Field(0, alias="offensiveRebounds")
    defensive_rebounds: int = Field(0, alias="defensiveRebounds")
    assists: int = 0
    steals: int = 0
    blocks: int = 0
    turnovers: int = 0
    fouls: int = 0
    plus_minus: int = Field(0, alias="plusMinus")
    fgm: int = 0
    fga: int = 0
    fg3m: int = 0
    fg3a: int = 0
    ftm: int = 0
    fta: int = 0


class TeamTotals(BaseModel):
    points: int = 0
    rebounds: int = 0
    assists: int = 0
    steals: int = 0
    blocks: int = 0
    turnovers: int = 0
    fgm: int = 0
    fga: int = 0
    fg3m: int = 0
    fg3a: int = 0
    ftm: int = 0
    fta: int = 0


class GameDetail(GameSnapshot):
    """Scoreboard fields plus both box scores."""

    home_stats: list[PlayerGameStats] = Field(default_factory=list, alias="homeStats")
    away_stats: list[PlayerGameStats] = Field(default_factory=list, alias="awayStats")
    home_totals: TeamTotals | None = Field(None, alias="homeTotals")
    away_totals: TeamTotals | None = Field(None, alias="awayTotals")


class PointsScored(BaseModel):
    home: int = 0
    away: int = 0


class GameChanges(BaseModel):
    """Per-game change flags between two snapshots."""

    model_config = ConfigDict(populate_by_name=True)

    change: ChangeKind = "unchanged"
    score_changed: bool = Field(False, alias="scoreChanged")
    status_changed: bool = Field(False, alias="statusChanged")
    period_changed: bool = Field(False, alias="periodChanged")
    clock_changed: bool = Field(False, alias="clockChanged")
    home_scored: bool = Field(False, alias="homeScored")
    away_scored: bool = Field(False, alias="awayScored")
    points_scored: PointsScored | None = Field(None, alias="pointsScored")

    @property
    def any_flag(self) -> bool:
        return (
            self.score_changed
            or self.status_changed
            or self.period_changed
            or self.clock_changed
            or self.home_scored
            or self.away_scored
        )


class ScoreboardDiff(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    changes: dict[str, GameChanges] = Field(default_factory=dict)
    added_ids: list[str] = Field(default_factory=list, alias="addedIds")
    removed_ids: list[str] = Field(default_factory=list, alias="removedIds")

    @property
    def has_changes(self) -> bool:
        return bool(self.added_ids or self.removed_ids) or any(
            change.any_flag for change in self.changes.values()
        )


class Notification(BaseModel):
    """Ephemeral user-facing record for a notable game transition."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: NotificationType
    title: str
    message: str
    game_id: str = Field(..., alias="gameId")
    read: bool = False
    timestamp: datetime
