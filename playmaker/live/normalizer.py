"""Normalize ESPN payloads into Playmaker models.

Entries that are not objects are skipped and bad cells are zeroed. A value
the models still reject raises, and ``EspnClient`` reports that as a
malformed payload. The fetcher decides whether an empty result means
"not found".
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping

from ..config import settings
from ..logging import logger
from ..models import (
    GameDetail,
    GameSnapshot,
    GameStatus,
    PlayerGameLog,
    PlayerGameStats,
    PlayerProfile,
    PlayerSearchResult,
    Scoreboard,
    SeasonAverages,
    TeamInfo,
    TeamLine,
    TeamRef,
    TeamTotals,
)
from ..utils.datetime_utils import parse_provider_datetime
from ..utils.parsing import parse_int
from .stat_layout import (
    LabelLayout,
    decode_box_score_row,
    resolve_layout,
    stat_float,
    stat_int,
    stat_shooting,
)

# Provider status names that never progressed past scheduling.
_NOT_PLAYED_STATUS_NAMES = frozenset(
    {"STATUS_POSTPONED", "STATUS_CANCELED", "STATUS_CANCELLED", "STATUS_DELAYED"}
)

_TOTAL_FIELDS = (
    "points",
    "rebounds",
    "assists",
    "steals",
    "blocks",
    "turnovers",
    "fgm",
    "fga",
    "fg3m",
    "fg3a",
    "ftm",
    "fta",
)


def headshot_url(player_id: str) -> str:
    return settings.espn.headshot_url_template.format(player_id=player_id)


def logo_url(abbreviation: str) -> str:
    return settings.espn.logo_url_template.format(abbreviation=abbreviation.lower())


def _first(items: Any) -> Mapping[str, Any]:
    if isinstance(items, list) and items and isinstance(items[0], Mapping):
        return items[0]
    return {}


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _mappings(items: Any) -> list[Mapping[str, Any]]:
    """Mapping entries of a provider list; anything else is dropped."""
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, Mapping)]


def _color(value: Any) -> str | None:
    if not value:
        return None
    text = str(value).strip()
    return text if text.startswith("#") else f"#{text}"


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def map_status(status: Mapping[str, Any] | None) -> GameStatus:
    """Map an ESPN status block onto the four scoreboard states."""
    status_type = _mapping(_mapping(status).get("type"))
    name = _text(status_type.get("name")).upper()
    state = _text(status_type.get("state")).lower()
    if name == "STATUS_HALFTIME":
        return "halftime"
    if name in _NOT_PLAYED_STATUS_NAMES:
        return "scheduled"
    if state == "in":
        return "live"
    if state == "post":
        return "final"
    return "scheduled"


def _record_summary(competitor: Mapping[str, Any]) -> str | None:
    records = competitor.get("records") or competitor.get("record") or []
    if not isinstance(records, list):
        return None
    for record in records:
        if isinstance(record, Mapping) and record.get("type") in ("total", None):
            summary = record.get("summary") or record.get("displayValue")
            if summary:
                return str(summary)
    summary = _first(records).get("summary")
    return str(summary) if summary else None


def parse_team_line(competitor: Mapping[str, Any]) -> TeamLine:
    team = _mapping(competitor.get("team"))
    abbreviation = _text(team.get("abbreviation"))
    logo = team.get("logo") or _first(team.get("logos")).get("href")
    if not logo and abbreviation:
        logo = logo_url(abbreviation)
    display_name = _text(team.get("displayName"))
    return TeamLine(
        id=_text(team.get("id")),
        abbreviation=abbreviation,
        name=_text(team.get("name")) or display_name,
        display_name=display_name,
        short_name=_text(team.get("shortDisplayName")),
        logo=logo,
        color=_color(team.get("color")),
        alternate_color=_color(team.get("alternateColor")),
        record=_record_summary(competitor),
        score=max(parse_int(competitor.get("score")) or 0, 0),
    )


def _split_competitors(
    competition: Mapping[str, Any],
) -> tuple[Mapping[str, Any], Mapping[str, Any]] | None:
    home: Mapping[str, Any] | None = None
    away: Mapping[str, Any] | None = None
    competitors = _mappings(competition.get("competitors"))
    for competitor in competitors:
        side = competitor.get("homeAway")
        if side == "home":
            home = competitor
        elif side == "away":
            away = competitor
    if (home is None or away is None) and len(competitors) == 2:
        home, away = competitors[0], competitors[1]
    if home is None or away is None:
        return None
    return home, away


def _broadcast(competition: Mapping[str, Any]) -> str | None:
    broadcasts = competition.get("broadcasts") or []
    first = _first(broadcasts)
    names = first.get("names")
    if isinstance(names, list) and names:
        return str(names[0])
    media = _mapping(first.get("media"))
    if media.get("shortName"):
        return str(media["shortName"])
    geo = _mapping(_first(competition.get("geoBroadcasts")).get("media"))
    return geo.get("shortName")


def _snapshot_fields(
    game_id: str,
    source: Mapping[str, Any],
    competition: Mapping[str, Any],
    venue: Mapping[str, Any] | None = None,
) -> dict[str, Any] | None:
    sides = _split_competitors(competition)
    if sides is None:
        logger.warning("espn_game_missing_competitors", game_id=game_id)
        return None
    home, away = sides
    status = _mapping(competition.get("status") or source.get("status"))
    status_type = _mapping(status.get("type"))
    period = max(parse_int(status.get("period")) or 0, 0)
    venue = _mapping(venue or competition.get("venue"))
    return {
        "game_id": game_id,
        "name": _text(source.get("name")),
        "short_name": _text(source.get("shortName")),
        "status": map_status(status),
        "status_detail": _text(status_type.get("shortDetail") or status_type.get("detail")),
        "period": period,
        "clock": _text(status.get("displayClock")),
        "start_time": parse_provider_datetime(competition.get("date") or source.get("date")),
        "venue": venue.get("fullName"),
        "broadcast": _broadcast(competition),
        "home_team": parse_team_line(home),
        "away_team": parse_team_line(away),
    }


def parse_game_snapshot(event: Mapping[str, Any]) -> GameSnapshot | None:
    game_id = _text(event.get("id"))
    competition = _first(event.get("competitions"))
    if not game_id or not competition:
        logger.warning("espn_event_malformed", game_id=game_id or None)
        return None
    fields = _snapshot_fields(game_id, event, competition)
    return GameSnapshot(**fields) if fields else None


def parse_scoreboard(
    payload: Mapping[str, Any], date_key: str, fetched_at: datetime
) -> Scoreboard:
    games: list[GameSnapshot] = []
    for event in _mappings(payload.get("events")):
        snapshot = parse_game_snapshot(event)
        if snapshot is not None:
            games.append(snapshot)
    return Scoreboard(date_key=date_key, games=games, fetched_at=fetched_at)


def parse_box_score_players(group: Mapping[str, Any]) -> list[PlayerGameStats]:
    """Decode one team's player statistics group."""
    statistics = _first(group.get("statistics"))
    layout = resolve_layout(statistics.get("labels") or statistics.get("names"))
    players: list[PlayerGameStats] = []
    for entry in _mappings(statistics.get("athletes")):
        athlete = _mapping(entry.get("athlete"))
        player_id = _text(athlete.get("id"))
        if not player_id:
            continue
        row = _list(entry.get("stats"))
        did_not_play = bool(entry.get("didNotPlay")) or not row
        values = decode_box_score_row(row, layout, player_id=player_id)
        players.append(
            PlayerGameStats(
                player_id=player_id,
                name=_text(athlete.get("displayName")),
                short_name=_text(athlete.get("shortName")),
                position=_text(_mapping(athlete.get("position")).get("abbreviation")),
                jersey=_text(athlete.get("jersey")),
                headshot=_mapping(athlete.get("headshot")).get("href") or headshot_url(player_id),
                starter=bool(entry.get("starter")),
                did_not_play=did_not_play,
                **values,
            )
        )
    return players


def _team_stat_layout(statistics: Iterable[Mapping[str, Any]]) -> tuple[LabelLayout, list[Any]]:
    lookup: dict[str, int] = {}
    row: list[Any] = []
    for index, stat in enumerate(statistics):
        row.append(stat.get("displayValue"))
        for key in (stat.get("abbreviation"), stat.get("label"), stat.get("name")):
            normalized = _text(key).upper()
            if normalized and normalized not in lookup:
                lookup[normalized] = index
    return LabelLayout(lookup=lookup), row


def parse_team_totals(entry: Mapping[str, Any], score: int) -> TeamTotals | None:
    """Team totals from a box score ``teams`` entry; points come from the score line."""
    statistics = _mappings(entry.get("statistics"))
    if not statistics:
        return None
    layout, row = _team_stat_layout(statistics)
    fgm, fga = stat_shooting(row, layout, "field_goals")
    fg3m, fg3a = stat_shooting(row, layout, "three_pointers")
    ftm, fta = stat_shooting(row, layout, "free_throws")
    points = stat_int(row, layout, "points") or score
    return TeamTotals(
        points=max(points, 0),
        rebounds=stat_int(row, layout, "rebounds"),
        assists=stat_int(row, layout, "assists"),
        steals=stat_int(row, layout, "steals"),
        blocks=stat_int(row, layout, "blocks"),
        turnovers=stat_int(row, layout, "turnovers"),
        fgm=fgm,
        fga=fga,
        fg3m=fg3m,
        fg3a=fg3a,
        ftm=ftm,
        fta=fta,
    )


def _entries_by_team(entries: Iterable[Mapping[str, Any]]) -> dict[str, Mapping[str, Any]]:
    return {_text(_mapping(entry.get("team")).get("id")): entry for entry in _mappings(entries)}


def parse_game_detail(payload: Mapping[str, Any], game_id: str) -> GameDetail | None:
    """Parse a game summary payload. Returns None when the header is absent."""
    header = _mapping(payload.get("header"))
    competition = _first(header.get("competitions"))
    if not competition:
        return None
    venue = _mapping(payload.get("gameInfo")).get("venue")
    fields = _snapshot_fields(_text(header.get("id")) or game_id, header, competition, venue)
    if fields is None:
        return None

    home_id = fields["home_team"].id
    away_id = fields["away_team"].id
    box_score = _mapping(payload.get("boxscore"))
    player_groups = _entries_by_team(box_score.get("players"))
    team_entries = _entries_by_team(box_score.get("teams"))

    def _players(team_id: str) -> list[PlayerGameStats]:
        group = player_groups.get(team_id)
        return parse_box_score_players(group) if group else []

    def _totals(team_id: str, score: int) -> TeamTotals | None:
        entry = team_entries.get(team_id)
        return parse_team_totals(entry, score) if entry else None

    return GameDetail(
        **fields,
        home_stats=_players(home_id),
        away_stats=_players(away_id),
        home_totals=_totals(home_id, fields["home_team"].score),
        away_totals=_totals(away_id, fields["away_team"].score),
    )


def sum_player_totals(stats: Iterable[PlayerGameStats]) -> TeamTotals:
    totals = {name: 0 for name in _TOTAL_FIELDS}
    for line in stats:
        for name in _TOTAL_FIELDS:
            totals[name] += getattr(line, name)
    return TeamTotals(**totals)


def resolve_team_totals(detail: GameDetail) -> tuple[TeamTotals, TeamTotals]:
    """Prefer provider totals when they carry rebounds; otherwise sum the box score."""

    def _pick(provided: TeamTotals | None, stats: list[PlayerGameStats]) -> TeamTotals:
        if provided is not None and provided.rebounds > 0:
            return provided
        return sum_player_totals(stats)

    return (
        _pick(detail.home_totals, detail.home_stats),
        _pick(detail.away_totals, detail.away_stats),
    )


def _team_ref(team: Mapping[str, Any]) -> TeamRef | None:
    team_id = _text(team.get("id"))
    abbreviation = _text(team.get("abbreviation"))
    if not team_id and not abbreviation:
        return None
    logo = team.get("logo") or _first(team.get("logos")).get("href")
    return TeamRef(
        id=team_id,
        name=_text(team.get("displayName") or team.get("name")),
        abbreviation=abbreviation,
        logo=logo or (logo_url(abbreviation) if abbreviation else None),
        color=_color(team.get("color")),
    )


def parse_teams(payload: Mapping[str, Any]) -> list[TeamInfo]:
    league = _first(_first(payload.get("sports")).get("leagues"))
    teams: list[TeamInfo] = []
    for wrapper in _mappings(league.get("teams")):
        team = _mapping(wrapper.get("team")) or wrapper
        team_id = _text(team.get("id"))
        abbreviation = _text(team.get("abbreviation"))
        if not team_id:
            continue
        teams.append(
            TeamInfo(
                id=team_id,
                abbreviation=abbreviation,
                name=_text(team.get("name")),
                display_name=_text(team.get("displayName")),
                location=_text(team.get("location")),
                color=_color(team.get("color")),
                alternate_color=_color(team.get("alternateColor")),
                logo=_first(team.get("logos")).get("href") or logo_url(abbreviation),
                record=_record_summary(team),
            )
        )
    return teams


def _birth_place(athlete: Mapping[str, Any]) -> str:
    if athlete.get("displayBirthPlace"):
        return _text(athlete["displayBirthPlace"])
    place = _mapping(athlete.get("birthPlace"))
    return ", ".join(
        _text(place.get(part)) for part in ("city", "state", "country") if place.get(part)
    )


def _draft(athlete: Mapping[str, Any]) -> str:
    if athlete.get("displayDraft"):
        return _text(athlete["displayDraft"])
    draft = _mapping(athlete.get("draft"))
    return _text(draft.get("displayText")) or "Undrafted"


def parse_athlete(athlete: Mapping[str, Any], team: Mapping[str, Any] | None = None) -> PlayerProfile | None:
    player_id = _text(athlete.get("id"))
    if not player_id:
        return None
    position = _mapping(athlete.get("position"))
    experience = athlete.get("experience")
    if isinstance(experience, Mapping):
        experience = experience.get("years")
    display_name = _text(athlete.get("displayName") or athlete.get("fullName"))
    return PlayerProfile(
        id=player_id,
        name=display_name,
        display_name=display_name,
        first_name=_text(athlete.get("firstName")),
        last_name=_text(athlete.get("lastName")),
        position=_text(position.get("abbreviation") or position.get("displayName")),
        jersey=_text(athlete.get("jersey")),
        height=_text(athlete.get("displayHeight")),
        weight=_text(athlete.get("displayWeight")),
        birth_date=_text(athlete.get("displayDOB") or athlete.get("dateOfBirth")),
        birth_place=_birth_place(athlete),
        college=_text(_mapping(athlete.get("college")).get("name")),
        draft=_draft(athlete),
        experience=max(parse_int(experience) or 0, 0),
        headshot=_mapping(athlete.get("headshot")).get("href") or headshot_url(player_id),
        team=_team_ref(_mapping(team if team is not None else athlete.get("team"))),
    )


def parse_player_detail(payload: Mapping[str, Any]) -> PlayerProfile | None:
    athlete = _mapping(payload.get("athlete"))
    return parse_athlete(athlete) if athlete else None


def parse_roster(payload: Mapping[str, Any]) -> list[PlayerProfile]:
    team = _mapping(payload.get("team"))
    players: list[PlayerProfile] = []
    for athlete in _mappings(payload.get("athletes")):
        # Older roster payloads group athletes by position
        members = _mappings(athlete.get("items")) if "items" in athlete else [athlete]
        for member in members:
            profile = parse_athlete(member, team)
            if profile is not None:
                players.append(profile)
    return players


def parse_search_results(payload: Mapping[str, Any], limit: int) -> list[PlayerSearchResult]:
    """NBA players first; other basketball players fill in when there are none."""
    items = [item for item in _mappings(payload.get("items")) if item.get("type") == "player"]
    nba = [item for item in items if _text(item.get("league")).lower() == "nba"]
    chosen = nba or [item for item in items if _text(item.get("sport")).lower() == "basketball"]
    results: list[PlayerSearchResult] = []
    for item in chosen[:limit]:
        player_id = _text(item.get("id"))
        if not player_id:
            continue
        team = _mapping(_first(item.get("teamRelationships")).get("core"))
        display_name = _text(item.get("displayName"))
        results.append(
            PlayerSearchResult(
                id=player_id,
                name=display_name,
                display_name=display_name,
                short_name=_text(item.get("shortName")) or display_name.split(" ")[-1],
                position=_text(_mapping(item.get("position")).get("abbreviation")),
                jersey=_text(item.get("jersey")),
                headshot=_mapping(item.get("headshot")).get("href") or headshot_url(player_id),
                team=_team_ref(team),
            )
        )
    return results


def parse_season_averages(payload: Mapping[str, Any]) -> SeasonAverages | None:
    """The most recent row of the ``averages`` category."""
    categories = _mappings(payload.get("categories"))
    category = next(
        (item for item in categories if _text(item.get("name")).lower() == "averages"),
        _first(categories),
    )
    rows = _mappings(category.get("statistics"))
    if not rows:
        return None
    latest = rows[-1]
    layout = resolve_layout(category.get("labels") or category.get("names"))
    row = _list(latest.get("stats"))
    return SeasonAverages(
        season=_text(_mapping(latest.get("season")).get("displayName")),
        games_played=stat_int(row, layout, "games_played"),
        minutes=stat_float(row, layout, "minutes"),
        points=max(stat_float(row, layout, "points"), 0.0),
        rebounds=stat_float(row, layout, "rebounds"),
        assists=stat_float(row, layout, "assists"),
        steals=stat_float(row, layout, "steals"),
        blocks=stat_float(row, layout, "blocks"),
        turnovers=stat_float(row, layout, "turnovers"),
        fg_pct=stat_float(row, layout, "fg_pct"),
        fg3_pct=stat_float(row, layout, "fg3_pct"),
        ft_pct=stat_float(row, layout, "ft_pct"),
    )


def parse_game_logs(payload: Mapping[str, Any], player_id: str, limit: int) -> list[PlayerGameLog]:
    layout = resolve_layout(payload.get("labels") or payload.get("names"))
    events_meta = _mapping(payload.get("events"))
    logs: list[PlayerGameLog] = []
    for season_type in _mappings(payload.get("seasonTypes")):
        for category in _mappings(season_type.get("categories")):
            for event in _mappings(category.get("events")):
                if len(logs) >= limit:
                    return logs
                event_id = _text(event.get("eventId"))
                if not event_id:
                    continue
                meta = _mapping(events_meta.get(event_id))
                values = decode_box_score_row(_list(event.get("stats")), layout, player_id=player_id)
                logs.append(
                    PlayerGameLog(
                        game_id=event_id,
                        date=_text(meta.get("gameDate")),
                        opponent=_text(_mapping(meta.get("opponent")).get("abbreviation")),
                        at_vs=_text(meta.get("atVs")) or "vs",
                        result=_text(meta.get("gameResult")),
                        score=_text(meta.get("score")),
                        stats=PlayerGameStats(player_id=player_id, **values),
                    )
                )
    return logs
