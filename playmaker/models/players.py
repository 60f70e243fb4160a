"""Player and team reference models with camelCase output."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .games import PlayerGameStats


class TeamRef(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    abbreviation: str
    logo: str | None = None
    color: str | None = None


class TeamInfo(BaseModel):
    """A franchise as listed by the provider or the local mirror."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    abbreviation: str
    name: str
    display_name: str = Field("", alias="displayName")
    location: str = ""
    conference: str | None = None
    division: str | None = None
    color: str | None = None
    alternate_color: str | None = Field(None, alias="alternateColor")
    logo: str | None = None
    record: str | None = None


class PlayerSearchResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    display_name: str = Field("", alias="displayName")
    short_name: str = Field("", alias="shortName")
    position: str = ""
    jersey: str = ""
    headshot: str | None = None
    team: TeamRef | None = None


class PlayerProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    display_name: str = Field("", alias="displayName")
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    position: str = ""
    jersey: str = ""
    height: str = ""
    weight: str = ""
    birth_date: str = Field("", alias="birthDate")
    birth_place: str = Field("", alias="birthPlace")
    college: str = ""
    draft: str = ""
    experience: int = 0
    headshot: str | None = None
    team: TeamRef | None = None


class SeasonAverages(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    season: str = ""
    games_played: int = Field(0, alias="gamesPlayed")
    minutes: float = 0.0
    points: float = 0.0
    rebounds: float = 0.0
    assists: float = 0.0
    steals: float = 0.0
    blocks: float = 0.0
    turnovers: float = 0.0
    fg_pct: float = Field(0.0, alias="fgPct")
    fg3_pct: float = Field(0.0, alias="fg3Pct")
    ft_pct: float = Field(0.0, alias="ftPct")


class PlayerGameLog(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    game_id: str = Field(..., alias="gameId")
    date: str = ""
    opponent: str = ""
    at_vs: str = Field("vs", alias="atVs")
    result: str = ""
    score: str = ""
    stats: PlayerGameStats
