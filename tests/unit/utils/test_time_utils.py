from datetime import datetime, time, timedelta

import pytest

from smartboard.utils.time import (
    coerce_datetime,
    in_time_window,
    is_saturday,
    is_shabbat_handover,
    parse_time_of_day,
    utc_now,
)


def test_coerce_datetime_parses_z_suffix():
    dt = coerce_datetime("2026-01-01T00:00:00Z")
    assert dt is not None
    assert dt.tzinfo is not None
    assert dt.utcoffset() == timedelta(0)
    assert dt.isoformat().endswith("+00:00")


def test_coerce_datetime_parses_offset():
    dt = coerce_datetime("2026-01-01T02:00:00+02:00")
    assert dt is not None
    assert dt.utcoffset() == timedelta(0)
    assert dt.hour == 0


def test_coerce_datetime_parses_naive_as_utc():
    dt = coerce_datetime("2026-01-01T00:00:00")
    assert dt is not None
    assert dt.utcoffset() == timedelta(0)

    time_diff = utc_now() - dt
    assert isinstance(time_diff, timedelta)


@pytest.mark.parametrize("value", [None, "", "yesterday", 12])
def test_coerce_datetime_rejects_garbage(value):
    assert coerce_datetime(value) is None


@pytest.mark.parametrize(
    "value, expected",
    [
        ("06:30", time(6, 30)),
        (" 7:05 ", time(7, 5)),
        ("18:45:30", time(18, 45)),
        ("24:00", None),
        ("12:60", None),
        ("noon", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_time_of_day(value, expected):
    assert parse_time_of_day(value) == expected


def test_in_time_window_open_bounds():
    now = datetime(2026, 3, 3, 10, 0)

    assert in_time_window(now, None, None) is True
    assert in_time_window(now, time(10, 0), None) is True
    assert in_time_window(now, None, time(10, 0)) is False


def test_in_time_window_ignores_seconds():
    assert in_time_window(datetime(2026, 3, 3, 11, 59, 59), time(8, 0), time(12, 0)) is True


@pytest.mark.parametrize(
    "now, expected",
    [
        (datetime(2026, 3, 5, 23, 59), False),  # Thursday
        (datetime(2026, 3, 6, 7, 59), False),
        (datetime(2026, 3, 6, 8, 0), True),
        (datetime(2026, 3, 7, 0, 0), True),
        (datetime(2026, 3, 7, 20, 59), True),
        (datetime(2026, 3, 7, 21, 0), False),
        (datetime(2026, 3, 8, 9, 0), False),
    ],
)
def test_shabbat_handover_uses_literal_cutoffs(now, expected):
    assert is_shabbat_handover(now) is expected


def test_is_saturday():
    assert is_saturday(datetime(2026, 3, 7, 12, 0))
    assert not is_saturday(datetime(2026, 3, 8, 12, 0))
