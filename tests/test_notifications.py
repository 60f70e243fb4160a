"""Tests for edge-triggered game notifications."""

from playmaker.live.notifications import derive_notifications


def test_no_previous_snapshot_fires_nothing(make_game, make_scoreboard):
    assert derive_notifications(None, make_scoreboard(make_game(status="final"))) == []


def test_tip_off(make_game, make_scoreboard):
    previous = make_scoreboard(make_game(status="scheduled", home_score=0, away_score=0, period=0))
    current = make_scoreboard(make_game(status="live", home_score=2, away_score=0, period=1))

    notifications = derive_notifications(previous, current)

    assert [item.id for item in notifications] == ["401585001:start"]
    assert notifications[0].type == "info"
    assert notifications[0].title == "Tip-off: BOS @ LAL"


def test_halftime_fires_once(make_game, make_scoreboard):
    live = make_scoreboard(make_game(status="live", period=2))
    half = make_scoreboard(make_game(status="halftime", period=2))

    first = derive_notifications(live, half)
    second = derive_notifications(half, half)

    assert [item.id for item in first] == ["401585001:halftime"]
    assert first[0].message == "BOS 48 - LAL 50"
    assert second == []


def test_final_names_winner(make_game, make_scoreboard):
    previous = make_scoreboard(make_game(status="live", period=4, home_score=100, away_score=110))
    current = make_scoreboard(make_game(status="final", period=4, home_score=100, away_score=112))

    notifications = derive_notifications(previous, current)

    final = next(item for item in notifications if item.id.endswith(":final"))
    assert final.type == "score"
    assert final.title == "BOS wins!"
    assert final.message == "Final: BOS 112 - LAL 100"


def test_close_game_in_fourth(make_game, make_scoreboard):
    previous = make_scoreboard(make_game(status="live", period=3, home_score=90, away_score=88))
    current = make_scoreboard(
        make_game(status="live", period=4, home_score=98, away_score=95, clock="2:10")
    )

    notifications = derive_notifications(previous, current)

    assert [item.id for item in notifications] == ["401585001:close"]
    assert notifications[0].type == "alert"
    assert notifications[0].message == "BOS 95 - LAL 98 with 2:10 left!"


def test_blowout_in_fourth_is_quiet(make_game, make_scoreboard):
    previous = make_scoreboard(make_game(status="live", period=3, home_score=90, away_score=70))
    current = make_scoreboard(make_game(status="live", period=4, home_score=98, away_score=75))

    assert derive_notifications(previous, current) == []


def test_new_games_do_not_fire(make_game, make_scoreboard):
    previous = make_scoreboard()
    current = make_scoreboard(make_game(status="final"))

    assert derive_notifications(previous, current) == []


def test_close_game_fires_once_when_margin_flaps(make_game, make_scoreboard):
    snapshots = [
        make_scoreboard(make_game(status="live", period=3, home_score=80, away_score=78)),
        make_scoreboard(make_game(status="live", period=4, home_score=82, away_score=80)),
        make_scoreboard(make_game(status="live", period=4, home_score=90, away_score=82)),
        make_scoreboard(make_game(status="live", period=4, home_score=90, away_score=87)),
    ]
    sent: set[str] = set()

    fired = [
        [item.id for item in derive_notifications(previous, current, sent)]
        for previous, current in zip(snapshots, snapshots[1:])
    ]

    assert fired == [["401585001:close"], [], []]
    assert sent == {"401585001:close"}


def test_scheduled_to_final_skips_tip_off(make_game, make_scoreboard):
    previous = make_scoreboard(make_game(status="scheduled", home_score=0, away_score=0, period=0))
    current = make_scoreboard(make_game(status="final", period=4, home_score=110, away_score=101))

    notifications = derive_notifications(previous, current)

    assert [item.id for item in notifications] == ["401585001:final"]
