from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfoNotFoundError

import pytest

from challenge_tutor.clock import as_utc, day_key, days_between, from_iso, previous_day, to_iso


def test_day_key_utc():
    assert day_key(datetime(2026, 3, 10, 23, 30, tzinfo=timezone.utc)) == "2026-03-10"


def test_day_key_naive_is_utc():
    assert day_key(datetime(2026, 3, 10, 0, 5)) == "2026-03-10"


def test_day_key_other_offset_converted():
    moment = datetime(2026, 3, 10, 1, 0, tzinfo=timezone(timedelta(hours=5)))
    assert day_key(moment) == "2026-03-09"


def test_day_key_in_time_zone():
    try:
        assert day_key(datetime(2026, 3, 10, 20, 0, tzinfo=timezone.utc), "Asia/Tokyo") == "2026-03-11"
    except ZoneInfoNotFoundError:
        pytest.skip("no time zone database")


def test_previous_day_crosses_month():
    assert previous_day("2026-03-01") == "2026-02-28"
    assert previous_day("2024-03-01") == "2024-02-29"


def test_days_between_counts_calendar_days():
    late = datetime(2026, 3, 10, 23, 0, tzinfo=timezone.utc)
    assert days_between(late, late + timedelta(hours=2)) == 1
    assert days_between(late, late + timedelta(minutes=30)) == 0
    assert days_between(late, late + timedelta(days=3)) == 3


def test_iso_round_trip_keeps_utc():
    moment = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
    assert from_iso(to_iso(moment)) == moment
    assert from_iso(None) is None
    assert as_utc(datetime(2026, 1, 1)).tzinfo is timezone.utc
