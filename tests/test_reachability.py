from datetime import datetime, time, timedelta, timezone

import pytest

from friendping.core.errors import InvalidTimeoutError
from friendping.services.reachability import (
    STRICT,
    WRAP,
    TimeoutWindow,
    is_reachable,
    parse_time_of_day,
    time_of_day,
)


def test_parse_time_of_day_accepts_24h_values():
    assert parse_time_of_day("00:00") == time(0, 0)
    assert parse_time_of_day("9:05") == time(9, 5)
    assert parse_time_of_day(" 23:59 ") == time(23, 59)


@pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "", "12", "1:2", None])
def test_parse_time_of_day_rejects_invalid_values(value):
    with pytest.raises(InvalidTimeoutError):
        parse_time_of_day(value)


def test_window_round_trips_to_strings():
    assert TimeoutWindow.parse("9:00", "17:30").as_strings() == ("09:00", "17:30")


def test_same_day_window_is_inclusive_for_both_policies():
    window = TimeoutWindow.parse("09:00", "17:00")
    for policy in (WRAP, STRICT):
        assert is_reachable(window, time(9, 0), policy)
        assert is_reachable(window, time(17, 0), policy)
        assert is_reachable(window, time(12, 30), policy)
        assert not is_reachable(window, time(8, 59), policy)
        assert not is_reachable(window, time(17, 1), policy)


def test_seconds_are_ignored():
    window = TimeoutWindow.parse("00:00", "23:59")
    assert is_reachable(window, time(23, 59, 59), STRICT)


def test_wrap_policy_spans_midnight():
    window = TimeoutWindow.parse("22:00", "06:00")
    assert window.spans_midnight
    assert is_reachable(window, time(23, 30), WRAP)
    assert is_reachable(window, time(0, 0), WRAP)
    assert is_reachable(window, time(6, 0), WRAP)
    assert not is_reachable(window, time(12, 0), WRAP)


def test_strict_policy_treats_inverted_window_as_empty():
    window = TimeoutWindow.parse("22:00", "06:00")
    assert not is_reachable(window, time(23, 30), STRICT)
    assert not is_reachable(window, time(3, 0), STRICT)
    assert not is_reachable(window, time(12, 0), STRICT)


def test_unknown_policy_is_rejected():
    with pytest.raises(ValueError):
        is_reachable(TimeoutWindow.parse("22:00", "06:00"), time(1, 0), "sometimes")


def test_time_of_day_converts_to_zone():
    at = datetime(2026, 7, 1, 12, 0, tzinfo=timezone.utc)
    assert time_of_day(at, timezone(timedelta(hours=2))) == time(14, 0)
    assert time_of_day(at.replace(tzinfo=None)) == time(12, 0)
