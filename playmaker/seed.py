"""Seed the relational mirror with NBA teams, rosters and demo games.

Usage:
    playmaker-seed                      # 30 teams with sample standings
    playmaker-seed --from-provider      # also refresh teams and rosters from ESPN
    playmaker-seed --demo-games 5       # also schedule illustrative games
"""

from __future__ import annotations

import argparse
import asyncio
import re
from datetime import datetime, time, timedelta
from typing import NamedTuple

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .db import close_db, get_async_session, init_db
from .db.sports import Game, Player, Team
from .errors import PlaymakerError
from .live.espn_client import EspnClient, build_http_client
from .live.normalizer import logo_url
from .logging import logger
from .models import PlayerProfile, TeamInfo
from .utils.datetime_utils import EASTERN, now_utc, parse_provider_datetime, today_eastern
from .utils.parsing import parse_int


class SeedTeam(NamedTuple):
    external_id: str
    abbreviation: str
    name: str
    full_name: str
    city: str
    conference: str
    division: str
    primary_color: str
    secondary_color: str


NBA_TEAMS: tuple[SeedTeam, ...] = (
    SeedTeam("1", "ATL", "Hawks", "Atlanta Hawks", "Atlanta", "East", "Southeast", "#E03A3E", "#C1D32F"),
    SeedTeam("2", "BOS", "Celtics", "Boston Celtics", "Boston", "East", "Atlantic", "#007A33", "#BA9653"),
    SeedTeam("17", "BKN", "Nets", "Brooklyn Nets", "Brooklyn", "East", "Atlantic", "#000000", "#FFFFFF"),
    SeedTeam("30", "CHA", "Hornets", "Charlotte Hornets", "Charlotte", "East", "Southeast", "#1D1160", "#00788C"),
    SeedTeam("4", "CHI", "Bulls", "Chicago Bulls", "Chicago", "East", "Central", "#CE1141", "#000000"),
    SeedTeam("5", "CLE", "Cavaliers", "Cleveland Cavaliers", "Cleveland", "East", "Central", "#860038", "#FDBB30"),
    SeedTeam("6", "DAL", "Mavericks", "Dallas Mavericks", "Dallas", "West", "Southwest", "#00538C", "#002B5E"),
    SeedTeam("7", "DEN", "Nuggets", "Denver Nuggets", "Denver", "West", "Northwest", "#0E2240", "#FEC524"),
    SeedTeam("8", "DET", "Pistons", "Detroit Pistons", "Detroit", "East", "Central", "#C8102E", "#1D42BA"),
    SeedTeam("9", "GSW", "Warriors", "Golden State Warriors", "Golden State", "West", "Pacific", "#1D428A", "#FFC72C"),
    SeedTeam("10", "HOU", "Rockets", "Houston Rockets", "Houston", "West", "Southwest", "#CE1141", "#000000"),
    SeedTeam("11", "IND", "Pacers", "Indiana Pacers", "Indiana", "East", "Central", "#002D62", "#FDBB30"),
    SeedTeam("12", "LAC", "Clippers", "Los Angeles Clippers", "Los Angeles", "West", "Pacific", "#C8102E", "#1D428A"),
    SeedTeam("13", "LAL", "Lakers", "Los Angeles Lakers", "Los Angeles", "West", "Pacific", "#552583", "#FDB927"),
    SeedTeam("29", "MEM", "Grizzlies", "Memphis Grizzlies", "Memphis", "West", "Southwest", "#5D76A9", "#12173F"),
    SeedTeam("14", "MIA", "Heat", "Miami Heat", "Miami", "East", "Southeast", "#98002E", "#F9A01B"),
    SeedTeam("15", "MIL", "Bucks", "Milwaukee Bucks", "Milwaukee", "East", "Central", "#00471B", "#EEE1C6"),
    SeedTeam("16", "MIN", "Timberwolves", "Minnesota Timberwolves", "Minnesota", "West", "Northwest", "#0C2340", "#236192"),
    SeedTeam("3", "NOP", "Pelicans", "New Orleans Pelicans", "New Orleans", "West", "Southwest", "#0C2340", "#C8102E"),
    SeedTeam("18", "NYK", "Knicks", "New York Knicks", "New York", "East", "Atlantic", "#006BB6", "#F58426"),
    SeedTeam("25", "OKC", "Thunder", "Oklahoma City Thunder", "Oklahoma City", "West", "Northwest", "#007AC1", "#EF3B24"),
    SeedTeam("19", "ORL", "Magic", "Orlando Magic", "Orlando", "East", "Southeast", "#0077C0", "#C4CED4"),
    SeedTeam("20", "PHI", "76ers", "Philadelphia 76ers", "Philadelphia", "East", "Atlantic", "#006BB6", "#ED174C"),
    SeedTeam("21", "PHX", "Suns", "Phoenix Suns", "Phoenix", "West", "Pacific", "#1D1160", "#E56020"),
    SeedTeam("22", "POR", "Trail Blazers", "Portland Trail Blazers", "Portland", "West", "Northwest", "#E03A3E", "#000000"),
    SeedTeam("23", "SAC", "Kings", "Sacramento Kings", "Sacramento", "West", "Pacific", "#5A2D81", "#63727A"),
    SeedTeam("24", "SAS", "Spurs", "San Antonio Spurs", "San Antonio", "West", "Southwest", "#C4CED4", "#000000"),
    SeedTeam("28", "TOR", "Raptors", "Toronto Raptors", "Toronto", "East", "Atlantic", "#CE1141", "#000000"),
    SeedTeam("26", "UTA", "Jazz", "Utah Jazz", "Utah", "West", "Northwest", "#002B5C", "#00471B"),
    SeedTeam("27", "WAS", "Wizards", "Washington Wizards", "Washington", "East", "Southeast", "#002B5C", "#E31837"),
)

# Illustrative mid-season records; the live path never reads these.
SAMPLE_STANDINGS: dict[str, tuple[int, int]] = {
    "BOS": (32, 10), "CLE": (31, 9), "OKC": (32, 8), "NYK": (27, 16),
    "MIL": (24, 17), "MIA": (22, 19), "ORL": (24, 19), "IND": (23, 19),
    "DET": (21, 21), "ATL": (21, 22), "CHI": (20, 22), "BKN": (15, 27),
    "PHI": (18, 22), "TOR": (12, 30), "CHA": (10, 30), "WAS": (8, 33),
    "MEM": (27, 16), "HOU": (27, 15), "DEN": (26, 16), "LAC": (24, 18),
    "DAL": (24, 18), "MIN": (23, 18), "LAL": (23, 18), "GSW": (22, 20),
    "SAC": (21, 22), "PHX": (19, 22), "SAS": (19, 23), "POR": (17, 25),
    "UTA": (13, 28), "NOP": (12, 31),
}


class DemoGame(NamedTuple):
    home: str
    away: str
    tip_off: time
    venue: str
    broadcast: str | None = None


DEMO_GAMES: tuple[DemoGame, ...] = (
    DemoGame("LAL", "BOS", time(19, 30), "Crypto.com Arena", "ESPN"),
    DemoGame("GSW", "MIA", time(19, 30), "Chase Center", "TNT"),
    DemoGame("CHI", "NYK", time(20, 0), "United Center"),
    DemoGame("PHX", "DEN", time(21, 0), "Footprint Center"),
    DemoGame("LAC", "DAL", time(22, 0), "Intuit Dome", "ESPN"),
    DemoGame("BOS", "CLE", time(19, 0), "TD Garden", "TNT"),
    DemoGame("MIL", "PHI", time(19, 30), "Fiserv Forum"),
    DemoGame("MEM", "OKC", time(20, 0), "FedExForum", "ESPN"),
    DemoGame("MIN", "HOU", time(20, 0), "Target Center"),
)

GAMES_PER_DAY = 5

_DIGITS = re.compile(r"\d+")
_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})")


async def upsert_team(session: AsyncSession, values: dict[str, object]) -> int:
    """Insert or refresh a team keyed by its provider id. Returns the row id."""
    stmt = insert(Team).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["external_id"],
        set_={key: stmt.excluded[key] for key in values if key != "external_id"}
        | {"updated_at": now_utc()},
    ).returning(Team.id)
    result = await session.execute(stmt)
    return result.scalar_one()


async def upsert_player(session: AsyncSession, values: dict[str, object]) -> None:
    stmt = insert(Player).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["external_id"],
        set_={key: stmt.excluded[key] for key in values if key != "external_id"}
        | {"updated_at": now_utc()},
    )
    await session.execute(stmt)


def static_team_values(team: SeedTeam) -> dict[str, object]:
    wins, losses = SAMPLE_STANDINGS.get(team.abbreviation, (0, 0))
    return {
        "external_id": team.external_id,
        "abbreviation": team.abbreviation,
        "name": team.name,
        "full_name": team.full_name,
        "city": team.city,
        "conference": team.conference,
        "division": team.division,
        "primary_color": team.primary_color,
        "secondary_color": team.secondary_color,
        "logo_url": logo_url(team.abbreviation),
        "wins": wins,
        "losses": losses,
    }


def provider_team_values(team: TeamInfo) -> dict[str, object]:
    values: dict[str, object] = {
        "external_id": team.id,
        "abbreviation": team.abbreviation,
        "name": team.name or team.display_name,
        "full_name": team.display_name or team.name,
        "city": team.location or None,
        "primary_color": team.color,
        "secondary_color": team.alternate_color,
        "logo_url": team.logo,
    }
    if team.record and "-" in team.record:
        wins, _, losses = team.record.partition("-")
        values["wins"] = parse_int(wins) or 0
        values["losses"] = parse_int(losses) or 0
    return values


def _weight_pounds(text: str) -> int | None:
    match = _DIGITS.search(text or "")
    return int(match.group()) if match else None


def _birth_datetime(text: str) -> datetime | None:
    match = _US_DATE.match(text or "")
    if match:
        month, day, year = (int(part) for part in match.groups())
        return datetime(year, month, day, tzinfo=EASTERN)
    return parse_provider_datetime(text)


def _draft_parts(text: str) -> tuple[int | None, int | None, int | None]:
    # "2003: Rd 1, Pk 1 (CLE)"
    numbers = [int(value) for value in _DIGITS.findall(text or "")]
    if len(numbers) < 3:
        return None, None, None
    return numbers[0], numbers[1], numbers[2]


def player_values(profile: PlayerProfile, team_row_id: int) -> dict[str, object]:
    draft_year, draft_round, draft_pick = _draft_parts(profile.draft)
    return {
        "external_id": profile.id,
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "full_name": profile.display_name or profile.name,
        "position": profile.position or None,
        "jersey_number": profile.jersey or None,
        "height": profile.height or None,
        "weight": _weight_pounds(profile.weight),
        "birth_date": _birth_datetime(profile.birth_date),
        "country": profile.birth_place or None,
        "college": profile.college or None,
        "draft_year": draft_year,
        "draft_round": draft_round,
        "draft_pick": draft_pick,
        "headshot_url": profile.headshot,
        "is_active": True,
        "team_id": team_row_id,
    }


async def seed_static_teams(session: AsyncSession) -> int:
    for team in NBA_TEAMS:
        await upsert_team(session, static_team_values(team))
    logger.info("seed_teams_written", count=len(NBA_TEAMS), source="static")
    return len(NBA_TEAMS)


async def seed_from_provider(session: AsyncSession, client: EspnClient) -> tuple[int, int]:
    """Refresh teams and rosters from the provider. A failed roster is skipped."""
    teams = await client.fetch_teams()
    player_count = 0
    for team in teams:
        team_row_id = await upsert_team(session, provider_team_values(team))
        try:
            roster = await client.fetch_team_roster(team.id)
        except PlaymakerError as exc:
            logger.warning("seed_roster_failed", team_id=team.id, error=exc.message)
            continue
        for profile in roster:
            await upsert_player(session, player_values(profile, team_row_id))
        player_count += len(roster)
    logger.info("seed_provider_written", teams=len(teams), players=player_count)
    return len(teams), player_count


async def seed_demo_games(session: AsyncSession, count: int) -> int:
    """Schedule up to ``count`` illustrative games today and tomorrow (Eastern)."""
    result = await session.execute(select(Team))
    teams_by_abbr = {team.abbreviation: team for team in result.scalars().all()}
    today = today_eastern()
    written = 0
    for index, demo in enumerate(DEMO_GAMES[:count]):
        home = teams_by_abbr.get(demo.home)
        away = teams_by_abbr.get(demo.away)
        if home is None or away is None:
            logger.warning("seed_demo_game_skipped", home=demo.home, away=demo.away)
            continue
        day = today + timedelta(days=index // GAMES_PER_DAY)
        stmt = insert(Game).values(
            external_id=f"nba-{demo.home}-{demo.away}-{day.isoformat()}",
            home_team_id=home.id,
            away_team_id=away.id,
            game_date=datetime.combine(day, demo.tip_off, tzinfo=EASTERN),
            status="scheduled",
            venue=demo.venue,
            broadcast=demo.broadcast,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["external_id"],
            set_={"venue": stmt.excluded.venue, "broadcast": stmt.excluded.broadcast},
        )
        await session.execute(stmt)
        written += 1
    logger.info("seed_demo_games_written", count=written)
    return written


async def _run(args: argparse.Namespace) -> None:
    if args.init_db:
        await init_db()
    try:
        async with get_async_session() as session:
            await seed_static_teams(session)
            if args.from_provider:
                async with build_http_client() as http:
                    await seed_from_provider(session, EspnClient(http))
            if args.demo_games:
                await seed_demo_games(session, args.demo_games)
    finally:
        await close_db()


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the Playmaker player/team mirror.")
    parser.add_argument(
        "--from-provider",
        action="store_true",
        help="Refresh teams and active rosters from ESPN after writing the static teams.",
    )
    parser.add_argument(
        "--demo-games",
        type=int,
        default=0,
        metavar="N",
        help=f"Schedule up to N illustrative games (max {len(DEMO_GAMES)}).",
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create missing tables first (development only).",
    )
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    logger.info(
        "seed_cli_started",
        from_provider=args.from_provider,
        demo_games=args.demo_games,
        environment=settings.environment,
    )
    try:
        asyncio.run(_run(args))
    except PlaymakerError as exc:
        logger.error("seed_cli_failed", error=exc.message)
        raise SystemExit(1) from exc
    except Exception:
        logger.exception("seed_cli_failed")
        raise SystemExit(1)
    logger.info("seed_cli_completed")


if __name__ == "__main__":
    main()
