"""Per-game diffs between two scoreboard snapshots."""

from __future__ import annotations

from typing import Any

from ..logging import logger
from ..models import GameChanges, GameSnapshot, PointsScored, Scoreboard, ScoreboardDiff


def _compare(previous: GameSnapshot, current: GameSnapshot) -> GameChanges:
    home_delta = current.home_team.score - previous.home_team.score
    away_delta = current.away_team.score - previous.away_team.score
    score_changed = home_delta != 0 or away_delta != 0

    if home_delta < 0 or away_delta < 0:
        # Scores only go up in a real game; a drop is a provider correction
        logger.warning(
            "upstream_score_regression",
            game_id=current.game_id,
            home_before=previous.home_team.score,
            home_after=current.home_team.score,
            away_before=previous.away_team.score,
            away_after=current.away_team.score,
        )

    home_scored = home_delta > 0
    away_scored = away_delta > 0
    changes = GameChanges(
        score_changed=score_changed,
        status_changed=previous.status != current.status,
        period_changed=previous.period != current.period,
        clock_changed=previous.clock != current.clock,
        home_scored=home_scored,
        away_scored=away_scored,
        points_scored=(
            PointsScored(home=max(home_delta, 0), away=max(away_delta, 0))
            if home_scored or away_scored
            else None
        ),
    )
    changes.change = "updated" if changes.any_flag else "unchanged"
    return changes


def detect_changes(previous: Scoreboard | None, current: Scoreboard | None) -> ScoreboardDiff:
    """Diff two scoreboards by game id.

    Either side may be None or empty. Games only in ``current`` are reported
    as added; games only in ``previous`` as removed.
    """
    before = previous.by_id() if previous is not None else {}
    after = current.by_id() if current is not None else {}
    diff = ScoreboardDiff()

    for game_id, game in after.items():
        prior = before.get(game_id)
        if prior is None:
            diff.changes[game_id] = GameChanges(change="added")
            diff.added_ids.append(game_id)
        else:
            diff.changes[game_id] = _compare(prior, game)

    for game_id in before:
        if game_id not in after:
            diff.changes[game_id] = GameChanges(change="removed")
            diff.removed_ids.append(game_id)

    return diff


def annotate_games(scoreboard: Scoreboard, diff: ScoreboardDiff) -> list[dict[str, Any]]:
    """Wire-format games, each carrying its ``_changes`` block."""
    games: list[dict[str, Any]] = []
    for game in scoreboard.games:
        payload = game.model_dump(mode="json", by_alias=True)
        changes = diff.changes.get(game.game_id) or GameChanges()
        payload["_changes"] = changes.model_dump(mode="json", by_alias=True)
        games.append(payload)
    return games
