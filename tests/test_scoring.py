from datetime import date, timedelta

from masjid_go.models.enums import VisitStatus
from masjid_go.services import scoring_service


def test_checkin_points_first_visit_bonus():
    assert scoring_service.checkin_points(is_first_visit=True, is_prayer_time=False) == (10, 5)
    assert scoring_service.checkin_points(is_first_visit=False, is_prayer_time=False) == (10, 0)
    assert scoring_service.checkin_points(is_first_visit=True, is_prayer_time=True) == (10, 15)


def test_checkout_score_in_proximity():
    score = scoring_service.checkout_score(True, 5)
    assert score.status == VisitStatus.COMPLETED
    assert score.base_points == 10
    assert score.points_awarded == 15


def test_checkout_score_outside_proximity_keeps_bonus():
    score = scoring_service.checkout_score(False, 5)
    assert score.status == VisitStatus.INCOMPLETE
    assert score.base_points == 5
    assert score.bonus_points == 5
    assert score.points_awarded == 10


def test_streak_sequence():
    day1 = date(2026, 10, 1)
    state = scoring_service.next_streak(0, 0, None, day1)
    assert (state.current_streak, state.longest_streak) == (1, 1)

    day2 = day1 + timedelta(days=1)
    state = scoring_service.next_streak(state.current_streak, state.longest_streak, day1, day2)
    assert (state.current_streak, state.longest_streak) == (2, 2)

    # Another visit on day 2 leaves the streak alone
    state = scoring_service.next_streak(state.current_streak, state.longest_streak, day2, day2)
    assert (state.current_streak, state.longest_streak) == (2, 2)

    # Day 3 skipped
    day4 = day1 + timedelta(days=3)
    state = scoring_service.next_streak(state.current_streak, state.longest_streak, day2, day4)
    assert (state.current_streak, state.longest_streak) == (1, 2)


def test_streak_ignores_visit_dated_before_last():
    state = scoring_service.next_streak(3, 5, date(2026, 10, 5), date(2026, 10, 4))
    assert (state.current_streak, state.longest_streak) == (3, 5)
