"""Tests for scoreboard change detection."""

from playmaker.live.change_detector import annotate_games, detect_changes


def test_identical_snapshots_have_no_flags(make_game, make_scoreboard):
    previous = make_scoreboard(make_game())
    current = make_scoreboard(make_game())

    diff = detect_changes(previous, current)

    changes = diff.changes["401585001"]
    assert changes.change == "unchanged"
    assert not changes.any_flag
    assert changes.points_scored is None
    assert not diff.has_changes


def test_home_basket_sets_score_flags_only(make_game, make_scoreboard):
    previous = make_scoreboard(make_game(home_score=50, away_score=48))
    current = make_scoreboard(make_game(home_score=52, away_score=48))

    changes = detect_changes(previous, current).changes["401585001"]

    assert changes.change == "updated"
    assert changes.score_changed is True
    assert changes.status_changed is False
    assert changes.period_changed is False
    assert changes.clock_changed is False
    assert changes.home_scored is True
    assert changes.away_scored is False
    assert changes.points_scored.home == 2
    assert changes.points_scored.away == 0


def test_status_period_and_clock_changes(make_game, make_scoreboard):
    previous = make_scoreboard(make_game(status="live", period=2, clock="0.0"))
    current = make_scoreboard(make_game(status="halftime", period=2, clock="0.0"))

    changes = detect_changes(previous, current).changes["401585001"]

    assert changes.status_changed is True
    assert changes.score_changed is False

    later = make_scoreboard(make_game(status="live", period=3, clock="11:42"))
    changes = detect_changes(current, later).changes["401585001"]
    assert changes.period_changed is True
    assert changes.clock_changed is True


def test_score_regression_is_flagged_without_points_scored(make_game, make_scoreboard):
    previous = make_scoreboard(make_game(home_score=52))
    current = make_scoreboard(make_game(home_score=50))

    changes = detect_changes(previous, current).changes["401585001"]

    assert changes.score_changed is True
    assert changes.home_scored is False
    assert changes.points_scored is None


def test_added_and_removed_games(make_game, make_scoreboard):
    previous = make_scoreboard(make_game("1"), make_game("2"))
    current = make_scoreboard(make_game("2"), make_game("3"))

    diff = detect_changes(previous, current)

    assert diff.added_ids == ["3"]
    assert diff.removed_ids == ["1"]
    assert diff.changes["3"].change == "added"
    assert diff.changes["1"].change == "removed"
    assert diff.changes["2"].change == "unchanged"
    assert diff.has_changes


def test_no_previous_snapshot_marks_everything_added(make_game, make_scoreboard):
    diff = detect_changes(None, make_scoreboard(make_game("1"), make_game("2")))

    assert sorted(diff.added_ids) == ["1", "2"]
    assert diff.removed_ids == []


def test_both_sides_empty(make_scoreboard):
    diff = detect_changes(None, make_scoreboard())
    assert diff.changes == {}
    assert not diff.has_changes


def test_annotate_games_attaches_changes(make_game, make_scoreboard):
    previous = make_scoreboard(make_game(away_score=48))
    current = make_scoreboard(make_game(away_score=51))

    games = annotate_games(current, detect_changes(previous, current))

    assert games[0]["gameId"] == "401585001"
    assert games[0]["_changes"]["scoreChanged"] is True
    assert games[0]["_changes"]["awayScored"] is True
    assert games[0]["_changes"]["pointsScored"] == {"home": 0, "away": 3}
