from datetime import datetime

import pytest

from smartboard.enums.events import DisplayEvent
from smartboard.services.display.countdown_monitor import (
    CountdownMonitor,
    compute_countdown,
    countdown_window_minutes,
)


def test_active_inside_window():
    state = compute_countdown("06:00", 40, datetime(2026, 3, 3, 5, 25))

    assert state.active is True
    assert state.remaining.to_dict() == {"minutes": 35, "seconds": 0}


def test_inactive_just_after_sunrise():
    state = compute_countdown("06:00", 40, datetime(2026, 3, 3, 6, 0, 1))

    assert state.active is False
    assert state.remaining is None


def test_remaining_is_floored_to_whole_seconds():
    state = compute_countdown("06:00", 40, datetime(2026, 3, 3, 5, 59, 29, 500000))

    assert state.remaining.to_dict() == {"minutes": 0, "seconds": 30}


@pytest.mark.parametrize(
    "now",
    [
        datetime(2026, 3, 3, 5, 19, 59),
        datetime(2026, 3, 3, 6, 0, 0),
        datetime(2026, 3, 3, 12, 0),
    ],
)
def test_outside_window_is_inactive(now):
    assert compute_countdown("06:00", 40, now).active is False


def test_window_rolls_over_midnight_to_tomorrows_sunrise():
    state = compute_countdown("00:10", 40, datetime(2026, 3, 3, 23, 50))

    assert state.active is True
    assert state.remaining.to_dict() == {"minutes": 20, "seconds": 0}


@pytest.mark.parametrize("sunrise, window", [(None, 40), ("", 40), ("6 am", 40), ("06:00", "soon"), ("06:00", 0)])
def test_malformed_input_is_inactive(sunrise, window):
    assert compute_countdown(sunrise, window, datetime(2026, 3, 3, 5, 30)).active is False


def test_window_uses_shabbat_minutes_on_saturday():
    settings = {"sunrise_countdown_minutes": 30, "shabbat_countdown_minutes": 90}

    assert countdown_window_minutes(datetime(2026, 3, 3, 5, 0), settings) == 30
    assert countdown_window_minutes(datetime(2026, 3, 7, 5, 0), settings) == 90
    assert countdown_window_minutes(datetime(2026, 3, 3, 5, 0), None) == 40
    assert countdown_window_minutes(datetime(2026, 3, 7, 5, 0), {}) == 70
    assert countdown_window_minutes(datetime(2026, 3, 3, 5, 0), {"sunrise_countdown_minutes": "abc"}) == 40


def test_zero_minutes_falls_back_to_default():
    settings = {"sunrise_countdown_minutes": 0, "shabbat_countdown_minutes": "0"}

    assert countdown_window_minutes(datetime(2026, 3, 3, 5, 0), settings) == 40
    assert countdown_window_minutes(datetime(2026, 3, 7, 5, 0), settings) == 70


def test_monitor_publishes_enter_tick_and_exit_edges(make_snapshot):
    snapshot = make_snapshot(daily_zmanim={"sunrise": "06:00"})
    monitor = CountdownMonitor()
    seen = []
    for event in (DisplayEvent.COUNTDOWN_ENTERED, DisplayEvent.COUNTDOWN_EXITED, DisplayEvent.COUNTDOWN_TICK):
        monitor.subscribe(event, lambda state, name=event.value: seen.append((name, state.active)))

    monitor.update(datetime(2026, 3, 3, 5, 0), snapshot)
    monitor.update(datetime(2026, 3, 3, 5, 25), snapshot)
    monitor.update(datetime(2026, 3, 3, 5, 26), snapshot)
    monitor.update(datetime(2026, 3, 3, 6, 0, 1), snapshot)
    monitor.update(datetime(2026, 3, 3, 6, 0, 2), snapshot)

    assert seen == [
        ("countdown_entered", True),
        ("countdown_tick", True),
        ("countdown_tick", True),
        ("countdown_exited", False),
    ]


def test_monitor_without_snapshot_stays_inactive():
    monitor = CountdownMonitor()

    assert monitor.update(datetime(2026, 3, 3, 5, 25), None).active is False
