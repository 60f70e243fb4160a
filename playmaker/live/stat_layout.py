"""Label-indexed stat row decoding.

Provider stat groups arrive as an ordered list of column labels plus, per
player, a parallel list of cell values. The column order is not stable across
games, so values are resolved by label. A layout is one of two shapes:

- ``LabelLayout``: built once per payload from the labels it carried.
- ``PositionalLayout``: the provider's canonical column order, used only when a
  payload arrives without labels.

Both answer the same question (which index holds a field) and both default to
zero for anything they cannot resolve.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Sequence, Union

from ..logging import logger
from ..utils.parsing import parse_float, parse_int, parse_shooting

# Canonical box score column order for player rows.
BOX_SCORE_COLUMNS: tuple[str, ...] = (
    "MIN",
    "FG",
    "3PT",
    "FT",
    "OREB",
    "DREB",
    "REB",
    "AST",
    "STL",
    "BLK",
    "TO",
    "PF",
    "+/-",
    "PTS",
)

# Acceptable label spellings per field, highest priority first.
FIELD_LABELS: dict[str, tuple[str, ...]] = {
    "minutes": ("MIN", "MINUTES"),
    "points": ("PTS", "POINTS"),
    "rebounds": ("REB", "REBOUNDS", "TREB", "TOT"),
    "offensive_rebounds": ("OREB", "OR", "OFFENSIVE REBOUNDS"),
    "defensive_rebounds": ("DREB", "DR", "DEFENSIVE REBOUNDS"),
    "assists": ("AST", "ASSISTS"),
    "steals": ("STL", "STEALS"),
    "blocks": ("BLK", "BLOCKS"),
    "turnovers": ("TO", "TOV", "TURNOVERS", "TOTAL TURNOVERS"),
    "fouls": ("PF", "FOULS", "PERSONAL FOULS"),
    "plus_minus": ("+/-", "PLUSMINUS", "PLUS/MINUS"),
    "field_goals": ("FG", "FGM-A", "FGM-FGA", "FIELD GOALS"),
    "three_pointers": ("3PT", "3PM-A", "3PM-3PA", "3P", "3-POINTERS", "3PT FG"),
    "free_throws": ("FT", "FTM-A", "FTM-FTA", "FREE THROWS"),
    "games_played": ("GP", "GAMES PLAYED"),
    "fg_pct": ("FG%", "FIELD GOAL %"),
    "fg3_pct": ("3P%", "3PT%", "3-POINT %"),
    "ft_pct": ("FT%", "FREE THROW %"),
}


def _normalize_label(label: Any) -> str:
    return str(label).strip().upper()


def _index_labels(labels: Sequence[Any]) -> dict[str, int]:
    lookup: dict[str, int] = {}
    for position, label in enumerate(labels):
        key = _normalize_label(label)
        # First occurrence wins when a label repeats
        if key and key not in lookup:
            lookup[key] = position
    return lookup


@dataclass(frozen=True)
class LabelLayout:
    """Column positions recovered from the labels a payload carried."""

    lookup: Mapping[str, int]
    kind: Literal["label"] = "label"

    @classmethod
    def from_labels(cls, labels: Sequence[Any]) -> "LabelLayout":
        return cls(lookup=_index_labels(labels))

    def position(self, field_name: str) -> int | None:
        for spelling in FIELD_LABELS.get(field_name, (field_name.upper(),)):
            index = self.lookup.get(spelling)
            if index is not None:
                return index
        return None


@dataclass(frozen=True)
class PositionalLayout:
    """Fallback for label-less payloads: the canonical column order."""

    columns: tuple[str, ...] = BOX_SCORE_COLUMNS
    kind: Literal["positional"] = "positional"
    _lookup: Mapping[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_lookup", _index_labels(self.columns))

    def position(self, field_name: str) -> int | None:
        for spelling in FIELD_LABELS.get(field_name, (field_name.upper(),)):
            index = self._lookup.get(spelling)
            if index is not None:
                return index
        return None


StatLayout = Union[LabelLayout, PositionalLayout]


def resolve_layout(
    labels: Sequence[Any] | None,
    fallback_columns: tuple[str, ...] = BOX_SCORE_COLUMNS,
) -> StatLayout:
    """Prefer the payload's own labels; fall back to canonical positions."""
    if isinstance(labels, (list, tuple)) and labels:
        return LabelLayout.from_labels(labels)
    return PositionalLayout(columns=fallback_columns)


def cell(row: Sequence[Any] | None, layout: StatLayout, field_name: str) -> Any:
    """Raw cell for a field, or None when unresolved or out of range."""
    if not row or not isinstance(row, (list, tuple)):
        return None
    index = layout.position(field_name)
    if index is None or index < 0 or index >= len(row):
        return None
    return row[index]


def stat_int(row: Sequence[Any] | None, layout: StatLayout, field_name: str) -> int:
    return parse_int(cell(row, layout, field_name)) or 0


def stat_float(row: Sequence[Any] | None, layout: StatLayout, field_name: str) -> float:
    return parse_float(cell(row, layout, field_name)) or 0.0


def stat_shooting(
    row: Sequence[Any] | None, layout: StatLayout, field_name: str
) -> tuple[int, int]:
    value = cell(row, layout, field_name)
    return parse_shooting(None if value is None else str(value))


def derive_points(fgm: int, fg3m: int, ftm: int) -> int:
    """Points implied by shooting splits: two per two, three per three, one per free throw."""
    return max(2 * (fgm - fg3m) + 3 * fg3m + ftm, 0)


def decode_box_score_row(
    row: Sequence[Any] | None, layout: StatLayout, *, player_id: str | None = None
) -> dict[str, Any]:
    """Decode one player row into PlayerGameStats field values.

    Points are never negative. A negative points cell means the row is
    misaligned, so points are rebuilt from the shooting splits instead.
    """
    fgm, fga = stat_shooting(row, layout, "field_goals")
    fg3m, fg3a = stat_shooting(row, layout, "three_pointers")
    ftm, fta = stat_shooting(row, layout, "free_throws")
    points = stat_int(row, layout, "points")
    if points < 0:
        derived = derive_points(fgm, fg3m, ftm)
        logger.warning(
            "stat_row_negative_points",
            player_id=player_id,
            layout=layout.kind,
            raw_points=points,
            derived_points=derived,
        )
        points = derived

    minutes = cell(row, layout, "minutes")
    return {
        "minutes": str(minutes).strip() if minutes not in (None, "") else "0",
        "points": points,
        "rebounds": max(stat_int(row, layout, "rebounds"), 0),
        "offensive_rebounds": max(stat_int(row, layout, "offensive_rebounds"), 0),
        "defensive_rebounds": max(stat_int(row, layout, "defensive_rebounds"), 0),
        "assists": max(stat_int(row, layout, "assists"), 0),
        "steals": max(stat_int(row, layout, "steals"), 0),
        "blocks": max(stat_int(row, layout, "blocks"), 0),
        "turnovers": max(stat_int(row, layout, "turnovers"), 0),
        "fouls": max(stat_int(row, layout, "fouls"), 0),
        "plus_minus": stat_int(row, layout, "plus_minus"),
        "fgm": fgm,
        "fga": fga,
        "fg3m": fg3m,
        "fg3a": fg3a,
        "ftm": ftm,
        "fta": fta,
    }
