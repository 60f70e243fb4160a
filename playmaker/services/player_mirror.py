"""Reads against the relational player mirror."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import or_

from ..db.sports import Player, Team
from ..live.normalizer import headshot_url, logo_url
from ..models import PlayerProfile, PlayerSearchResult, TeamRef

# Failures that degrade a mirror read to the provider path
MIRROR_ERRORS: tuple[type[BaseException], ...] = (SQLAlchemyError, OSError)


def _team_ref(team: Team | None) -> TeamRef | None:
    if team is None:
        return None
    return TeamRef(
        id=team.external_id,
        name=team.full_name,
        abbreviation=team.abbreviation,
        logo=team.logo_url or logo_url(team.abbreviation),
        color=team.primary_color or "#333",
    )


def _draft_text(player: Player) -> str:
    if not player.draft_year:
        return "Undrafted"
    return f"{player.draft_year} Round {player.draft_round}, Pick {player.draft_pick}"


def to_search_result(player: Player) -> PlayerSearchResult:
    return PlayerSearchResult(
        id=player.external_id,
        name=player.full_name,
        display_name=player.full_name,
        short_name=player.last_name,
        position=player.position or "",
        jersey=player.jersey_number or "",
        headshot=player.headshot_url or headshot_url(player.external_id),
        team=_team_ref(player.team),
    )


def to_profile(player: Player) -> PlayerProfile:
    return PlayerProfile(
        id=player.external_id,
        name=player.full_name,
        display_name=player.full_name,
        first_name=player.first_name,
        last_name=player.last_name,
        position=player.position or "",
        jersey=player.jersey_number or "",
        height=player.height or "",
        weight=f"{player.weight} lbs" if player.weight else "",
        birth_date=player.birth_date.isoformat() if player.birth_date else "",
        birth_place=player.country or "",
        college=player.college or "",
        draft=_draft_text(player),
        experience=0,
        headshot=player.headshot_url or headshot_url(player.external_id),
        team=_team_ref(player.team),
    )


async def search_player_mirror(
    session: AsyncSession, query: str, limit: int
) -> list[PlayerSearchResult]:
    """Case-insensitive substring match on active players, ordered by name."""
    pattern = f"%{query}%"
    stmt = (
        select(Player)
        .options(selectinload(Player.team))
        .where(
            or_(
                Player.full_name.ilike(pattern),
                Player.first_name.ilike(pattern),
                Player.last_name.ilike(pattern),
            ),
            Player.is_active.is_(True),
        )
        .order_by(Player.full_name)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return [to_search_result(player) for player in result.scalars().all()]


async def find_mirrored_player(session: AsyncSession, player_id: str) -> PlayerProfile | None:
    stmt = (
        select(Player)
        .options(selectinload(Player.team))
        .where(Player.external_id == player_id)
    )
    result = await session.execute(stmt)
    player = result.scalars().first()
    return to_profile(player) if player is not None else None
