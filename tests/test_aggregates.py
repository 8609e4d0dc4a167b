from datetime import date

import pytest

from wordflow.scheduler.aggregates import (
    SessionCounters, ProfileCounters, fold_session_answer, fold_profile_answer
)


def test_session_counters_complete_exactly_at_total():
    counters = SessionCounters(total=2)
    counters = fold_session_answer(counters, True)
    assert not counters.completed
    assert counters.remaining == 1

    counters = fold_session_answer(counters, False)
    assert counters.completed
    assert (counters.answered, counters.correct, counters.incorrect) == (2, 1, 1)


def test_session_counters_reject_extra_answer():
    with pytest.raises(ValueError):
        fold_session_answer(SessionCounters(total=1, answered=1, correct=1), True)


def test_first_practice_starts_streak():
    counters = fold_profile_answer(ProfileCounters(), True, date(2026, 3, 10))
    assert counters.total_seen == 1
    assert counters.total_correct == 1
    assert counters.consecutive_days == 1
    assert counters.last_practice_date == date(2026, 3, 10)


def test_same_day_keeps_streak():
    start = ProfileCounters(total_seen=4, total_correct=2, consecutive_days=3,
                            last_practice_date=date(2026, 3, 10))
    counters = fold_profile_answer(start, False, date(2026, 3, 10))
    assert counters.consecutive_days == 3
    assert counters.total_seen == 5
    assert counters.total_correct == 2


def test_next_day_extends_streak():
    start = ProfileCounters(consecutive_days=3, last_practice_date=date(2026, 3, 9))
    counters = fold_profile_answer(start, True, date(2026, 3, 10))
    assert counters.consecutive_days == 4
    assert counters.last_practice_date == date(2026, 3, 10)


def test_gap_resets_streak():
    start = ProfileCounters(consecutive_days=8, last_practice_date=date(2026, 3, 7))
    counters = fold_profile_answer(start, True, date(2026, 3, 10))
    assert counters.consecutive_days == 1
