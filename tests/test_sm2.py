# tests/test_sm2.py
from datetime import datetime, timedelta, timezone

import pytest

from challenge_tutor.sm2 import compute_next_schedule, translate_quality

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def test_first_review_correct():
    """First correct answer: interval=1."""
    result = compute_next_schedule(quality=4, easiness_factor=2.5, interval=1, repetitions=0, now=NOW)
    assert result.interval == 1
    assert result.easiness_factor == pytest.approx(2.5)
    assert result.due_at == NOW + timedelta(days=1)


def test_second_review_correct():
    result = compute_next_schedule(quality=4, easiness_factor=2.5, interval=1, repetitions=1, now=NOW)
    assert result.interval == 6


def test_third_review_correct():
    """Third+ correct: interval = old_interval * easiness."""
    result = compute_next_schedule(quality=4, easiness_factor=2.5, interval=6, repetitions=2, now=NOW)
    assert result.interval == 15  # round(6 * 2.5)
    assert result.due_at == NOW + timedelta(days=15)


def test_interval_rounds_half_up():
    result = compute_next_schedule(quality=4, easiness_factor=2.5, interval=1, repetitions=2, now=NOW)
    assert result.interval == 3  # 2.5 -> 3


@pytest.mark.parametrize("quality", [0, 1, 2])
@pytest.mark.parametrize("repetitions,interval", [(0, 1), (1, 1), (5, 30), (9, 200)])
def test_failed_review_restarts_interval(quality, repetitions, interval):
    result = compute_next_schedule(quality, 2.5, interval, repetitions, now=NOW)
    assert result.interval == 1


def test_first_attempt_defaults_reduce_to_one_day():
    assert compute_next_schedule(5, 2.5, 1, 0, now=NOW).interval == 1
    assert compute_next_schedule(0, 2.5, 1, 0, now=NOW).interval == 1


@pytest.mark.parametrize("quality", range(6))
@pytest.mark.parametrize("easiness", [1.3, 1.4, 2.5, 3.2])
def test_easiness_never_below_minimum(quality, easiness):
    result = compute_next_schedule(quality, easiness, 6, 3, now=NOW)
    assert result.easiness_factor >= 1.3


def test_easiness_adjustments():
    assert compute_next_schedule(5, 2.5, 1, 0, now=NOW).easiness_factor == pytest.approx(2.6)
    assert compute_next_schedule(4, 2.5, 1, 0, now=NOW).easiness_factor == pytest.approx(2.5)
    assert compute_next_schedule(3, 2.5, 1, 0, now=NOW).easiness_factor == pytest.approx(2.36)
    assert compute_next_schedule(0, 2.5, 1, 0, now=NOW).easiness_factor == pytest.approx(1.7)


def test_out_of_range_quality_is_clamped():
    assert compute_next_schedule(9, 2.5, 1, 0, now=NOW).easiness_factor == pytest.approx(2.6)
    assert compute_next_schedule(-3, 2.5, 1, 0, now=NOW).interval == 1


def test_quality_incorrect_is_zero():
    assert translate_quality(False, 1) == 0
    assert translate_quality(False, 500) == 0


def test_quality_by_speed():
    assert translate_quality(True, 10) == 5
    assert translate_quality(True, 15) == 5    # exactly half
    assert translate_quality(True, 22.5) == 4  # exactly three quarters
    assert translate_quality(True, 23) == 3
    assert translate_quality(True, 30) == 3
    assert translate_quality(True, 120) == 3


def test_quality_uses_expected_time():
    assert translate_quality(True, 25, expected_seconds=60) == 5
    assert translate_quality(True, 40, expected_seconds=60) == 4


def test_quality_negative_time_clamped():
    assert translate_quality(True, -4) == 5


def test_zero_interval_due_date_matches_clamped_interval():
    s = compute_next_schedule(5, 2.5, 0, 2, now=NOW)
    assert s.interval == 1
    assert s.due_at == NOW + timedelta(days=1)
