from datetime import timedelta

from reservations.models import (
    GameSummary,
    Highlight,
    HighlightType,
    PlayerGameStats,
    ReservationStatus,
)
from reservations.reports import categorize, filter_by_date, player_stats
from tests.helpers import NOW, TODAY, TZ, make_reservation


def test_categorize_splits_current_upcoming_and_past():
    later_today = make_reservation(1, time_label="20:00")
    earlier_today = make_reservation(2, time_label="09:00")
    evening_today = make_reservation(3, time_label="14:30")
    tomorrow = make_reservation(4, game_date=TODAY + timedelta(days=1))
    next_week = make_reservation(5, game_date=TODAY + timedelta(days=7))
    yesterday = make_reservation(6, game_date=TODAY - timedelta(days=1))
    finished_early = make_reservation(7, game_date=TODAY + timedelta(days=1), status=ReservationStatus.COMPLETED)

    buckets = categorize(
        [next_week, later_today, yesterday, tomorrow, earlier_today, evening_today, finished_early],
        NOW,
        TZ,
    )

    assert [r.id for r in buckets.current] == [3, 1]
    assert [r.id for r in buckets.upcoming] == [4, 5]
    assert [r.id for r in buckets.past] == [7, 2, 6]


def test_filter_by_date():
    today = make_reservation(1)
    tomorrow = make_reservation(2, game_date=TODAY + timedelta(days=1))

    assert filter_by_date([today, tomorrow], TODAY) == [today]


def test_player_stats_prefers_summary_lines():
    with_summary = make_reservation(1, joined=4, status=ReservationStatus.COMPLETED)
    with_summary.summary = GameSummary(
        text="",
        player_stats=(PlayerGameStats(user_id="r1-p1", goals=2, assists=1, clean_sheet=True, won=True),),
    )
    with_summary.mvp_player_id = "r1-p1"

    lost = make_reservation(2, joined=4, status=ReservationStatus.COMPLETED)
    lost.lineup[0] = with_summary.lineup[0]
    lost.summary = GameSummary(text="", player_stats=(PlayerGameStats(user_id="r1-p1", won=False),))

    highlights_only = make_reservation(3, joined=4, status=ReservationStatus.COMPLETED)
    highlights_only.lineup[0] = with_summary.lineup[0]
    highlights_only.highlights = [
        Highlight(id="g", type=HighlightType.GOAL, player_id="r1-p1", player_name="P", minute=3),
        Highlight(id="a", type=HighlightType.ASSIST, player_id="r1-p1", player_name="P", minute=9),
    ]

    still_open = make_reservation(4, joined=4)
    still_open.lineup[0] = with_summary.lineup[0]

    stats = player_stats([with_summary, lost, highlights_only, still_open], "r1-p1")

    assert stats.games_played == 3
    assert stats.goals == 3
    assert stats.assists == 2
    assert stats.mvps == 1
    assert stats.clean_sheets == 1
    assert stats.wins == 1
    assert stats.losses == 1
    assert stats.win_percentage == 50.0


def test_player_stats_skips_absent_players():
    game = make_reservation(1, joined=2, status=ReservationStatus.COMPLETED)
    game.summary = GameSummary(text="", player_stats=(PlayerGameStats(user_id="r1-p1", attended=False),))

    stats = player_stats([game], "r1-p1")

    assert stats.games_played == 0
    assert stats.win_percentage == 0.0
