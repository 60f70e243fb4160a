"""Tests for label-indexed box score decoding."""

from playmaker.live.stat_layout import (
    BOX_SCORE_COLUMNS,
    LabelLayout,
    PositionalLayout,
    decode_box_score_row,
    derive_points,
    resolve_layout,
    stat_int,
)


def test_points_resolved_by_label_not_position():
    layout = resolve_layout(["FG", "3PT", "FT", "REB", "AST", "PTS", "+/-"])
    row = ["5-10", "2-5", "1-2", 6, 3, 13, -4]

    values = decode_box_score_row(row, layout)

    assert layout.kind == "label"
    assert values["points"] == 13
    assert values["plus_minus"] == -4
    assert (values["fgm"], values["fga"]) == (5, 10)
    assert (values["fg3m"], values["fg3a"]) == (2, 5)
    assert (values["ftm"], values["fta"]) == (1, 2)
    assert values["rebounds"] == 6
    assert values["assists"] == 3


def test_reordered_labels_still_resolve():
    layout = resolve_layout(["+/-", "PTS", "MIN"])
    values = decode_box_score_row(["-4", "13", "31"], layout)

    assert values["points"] == 13
    assert values["plus_minus"] == -4
    assert values["minutes"] == "31"


def test_labels_match_case_insensitively_and_alternate_spellings():
    layout = LabelLayout.from_labels(["pts", "tov", "fgm-a"])
    row = [20, 2, "8-15"]

    assert stat_int(row, layout, "points") == 20
    assert stat_int(row, layout, "turnovers") == 2
    assert decode_box_score_row(row, layout)["fgm"] == 8


def test_missing_labels_use_canonical_positions():
    layout = resolve_layout(None)
    row = ["34", "9-17", "3-7", "4-4", "1", "6", "7", "5", "2", "0", "3", "2", "+11", "25"]

    values = decode_box_score_row(row, layout)

    assert isinstance(layout, PositionalLayout)
    assert layout.columns == BOX_SCORE_COLUMNS
    assert values["points"] == 25
    assert values["plus_minus"] == 11
    assert values["rebounds"] == 7
    assert values["minutes"] == "34"


def test_negative_points_cell_is_rebuilt_from_shooting_splits():
    layout = resolve_layout(["FG", "3PT", "FT", "PTS"])
    values = decode_box_score_row(["5-10", "2-5", "1-2", "-4"], layout, player_id="1966")

    # 3 twos + 2 threes + 1 free throw
    assert values["points"] == 13


def test_unresolved_fields_default_to_zero():
    layout = resolve_layout(["PTS"])
    values = decode_box_score_row([10], layout)

    assert values["rebounds"] == 0
    assert values["fgm"] == 0
    assert values["minutes"] == "0"


def test_short_rows_do_not_raise():
    layout = resolve_layout(["FG", "3PT", "FT", "REB", "AST", "PTS"])
    values = decode_box_score_row(["5-10"], layout)

    assert values["points"] == 0
    assert values["fga"] == 10


def test_derive_points_from_splits():
    assert derive_points(0, 0, 0) == 0
    assert derive_points(4, 1, 3) == 12
