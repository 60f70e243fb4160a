"""Notification records for notable game transitions.

Edge-triggered: a notification fires when its condition holds in the current
snapshot but did not hold in the previous one. Callers pass the ids already
sent on their stream, so each notification fires at most once per game per
stream even when its condition flaps. Nothing is persisted.
"""

from __future__ import annotations

from typing import Callable

from ..models import LIVE_STATUSES, GameSnapshot, Notification, Scoreboard
from ..utils.datetime_utils import now_utc

CLOSE_GAME_MARGIN = 5
CLOSE_GAME_PERIOD = 4


def _matchup(game: GameSnapshot) -> str:
    return f"{game.away_team.abbreviation} @ {game.home_team.abbreviation}"


def _score_line(game: GameSnapshot) -> str:
    return (
        f"{game.away_team.abbreviation} {game.away_team.score} - "
        f"{game.home_team.abbreviation} {game.home_team.score}"
    )


def _is_close_late(game: GameSnapshot) -> bool:
    margin = abs(game.home_team.score - game.away_team.score)
    return game.status == "live" and game.period >= CLOSE_GAME_PERIOD and margin <= CLOSE_GAME_MARGIN


def _tip_off(game: GameSnapshot) -> Notification:
    return Notification(
        id=f"{game.game_id}:start",
        type="info",
        title=f"Tip-off: {_matchup(game)}",
        message=f"{game.away_team.name} at {game.home_team.name} is underway.",
        game_id=game.game_id,
        timestamp=now_utc(),
    )


def _halftime(game: GameSnapshot) -> Notification:
    return Notification(
        id=f"{game.game_id}:halftime",
        type="info",
        title=f"Halftime: {_matchup(game)}",
        message=_score_line(game),
        game_id=game.game_id,
        timestamp=now_utc(),
    )


def _final(game: GameSnapshot) -> Notification:
    winner = game.home_team if game.home_team.score > game.away_team.score else game.away_team
    return Notification(
        id=f"{game.game_id}:final",
        type="score",
        title=f"{winner.abbreviation} wins!",
        message=f"Final: {_score_line(game)}",
        game_id=game.game_id,
        timestamp=now_utc(),
    )


def _close_game(game: GameSnapshot) -> Notification:
    return Notification(
        id=f"{game.game_id}:close",
        type="alert",
        title="Close game!",
        message=f"{_score_line(game)} with {game.clock or 'time'} left!",
        game_id=game.game_id,
        timestamp=now_utc(),
    )


_RULES: tuple[tuple[Callable[[GameSnapshot], bool], Callable[[GameSnapshot], Notification]], ...] = (
    (lambda game: game.status in LIVE_STATUSES, _tip_off),
    (lambda game: game.status == "halftime", _halftime),
    (lambda game: game.status == "final", _final),
    (_is_close_late, _close_game),
)


def derive_notifications(
    previous: Scoreboard | None,
    current: Scoreboard,
    sent: set[str] | None = None,
) -> list[Notification]:
    """Notifications for transitions between two snapshots.

    With no previous snapshot there is no edge to detect, so nothing fires.
    Ids found in ``sent`` are suppressed; new ids are added to it.
    """
    if previous is None:
        return []
    sent = sent if sent is not None else set()
    before = previous.by_id()
    notifications: list[Notification] = []
    for game in current.games:
        prior = before.get(game.game_id)
        if prior is None:
            continue
        for condition, build in _RULES:
            if not condition(game) or condition(prior):
                continue
            notification = build(game)
            if notification.id in sent:
                continue
            sent.add(notification.id)
            notifications.append(notification)
    return notifications
