import logging
from datetime import datetime

import pytest

from smartboard.constants import COUNTDOWN_SLIDE_KEY
from smartboard.domain.board import CountdownRemaining, CountdownState, INACTIVE_COUNTDOWN
from smartboard.domain.schedules import ScheduleEntry, entries_from_records
from smartboard.enums.board import BoardKind, DayType
from smartboard.services.display.schedule_evaluator import (
    build_props,
    evaluate_schedule,
    resolve_playlist,
)

MONDAY_NOON = datetime(2026, 3, 2, 12, 0)
FRIDAY_MORNING = datetime(2026, 3, 6, 7, 59)
FRIDAY_HANDOVER = datetime(2026, 3, 6, 8, 0)
SATURDAY_EVENING = datetime(2026, 3, 7, 20, 59)
SATURDAY_NIGHT = datetime(2026, 3, 7, 21, 0)


def _entry(key, kind="halachot", order=1, **kwargs):
    return ScheduleEntry(key=key, name=key, board_kind=BoardKind(kind), order=order, **kwargs)


def test_output_is_sorted_by_order_and_stable_for_ties():
    entries = [
        _entry("c", "brachot", order=3),
        _entry("a1", "halachot", order=1),
        _entry("b", "refuah", order=2),
        _entry("a2", "niftarim", order=1),
    ]

    boards = evaluate_schedule(entries, MONDAY_NOON, None, INACTIVE_COUNTDOWN)

    assert [b.name for b in boards] == ["a1", "a2", "b", "c"]


@pytest.mark.parametrize(
    "now, expect_shabbat",
    [
        (MONDAY_NOON, False),
        (FRIDAY_MORNING, False),
        (FRIDAY_HANDOVER, True),
        (SATURDAY_EVENING, True),
        (SATURDAY_NIGHT, False),
    ],
)
def test_handover_switches_weekday_and_shabbat_slots(now, expect_shabbat):
    entries = [
        _entry("weekday-times", "zmanim", order=1, day_type=DayType.WEEKDAY),
        _entry("shabbat-times", "shabbat", order=1, day_type=DayType.SHABBAT),
    ]

    names = [b.name for b in evaluate_schedule(entries, now, None, INACTIVE_COUNTDOWN)]

    assert names == (["shabbat-times"] if expect_shabbat else ["weekday-times"])


def test_always_entries_follow_their_board_orientation():
    entries = [
        _entry("zmanim", "zmanim", order=1),
        _entry("shabbat", "shabbat", order=2),
        _entry("halachot", "halachot", order=3),
    ]

    weekday = [b.name for b in evaluate_schedule(entries, MONDAY_NOON, None, INACTIVE_COUNTDOWN)]
    shabbat = [b.name for b in evaluate_schedule(entries, FRIDAY_HANDOVER, None, INACTIVE_COUNTDOWN)]

    assert weekday == ["zmanim", "halachot"]
    assert shabbat == ["shabbat", "halachot"]


def test_inactive_entries_are_never_shown():
    entries = [_entry("off", active=False), _entry("on", "brachot", order=2)]

    assert [b.name for b in evaluate_schedule(entries, MONDAY_NOON, None, INACTIVE_COUNTDOWN)] == ["on"]


@pytest.mark.parametrize(
    "start, end, hour, minute, visible",
    [
        ("08:00", "12:00", 8, 0, True),
        ("08:00", "12:00", 12, 0, False),
        ("08:00", "12:00", 7, 59, False),
        ("22:00", "02:00", 23, 30, True),
        ("22:00", "02:00", 1, 59, True),
        ("22:00", "02:00", 2, 0, False),
        ("22:00", "02:00", 12, 0, False),
        ("18:00", None, 18, 30, True),
        (None, "06:00", 18, 30, False),
    ],
)
def test_time_windows_are_half_open_and_wrap_midnight(start, end, hour, minute, visible):
    entry = _entry("windowed", start_time=start, end_time=end)
    now = datetime(2026, 3, 3, hour, minute)

    boards = evaluate_schedule([entry], now, None, INACTIVE_COUNTDOWN)

    assert bool(boards) is visible


def test_invalid_window_bound_is_ignored_and_reported_once(caplog):
    entry = _entry("bad-window-entry", start_time="25:99", end_time="23:00")

    with caplog.at_level(logging.WARNING, logger="smartboard.services.display.schedule_evaluator"):
        first = evaluate_schedule([entry], datetime(2026, 3, 3, 1, 0), None, INACTIVE_COUNTDOWN)
        second = evaluate_schedule([entry], datetime(2026, 3, 3, 23, 30), None, INACTIVE_COUNTDOWN)

    assert len(first) == 1
    assert second == []
    warnings = [r for r in caplog.records if "bad-window-entry" in r.getMessage()]
    assert len(warnings) == 1


def test_kinds_without_a_board_are_skipped():
    entries = [
        _entry("chizuk", "chizuk", order=1),
        ScheduleEntry.from_dict({"id": "x", "component_key": "mystery", "order": 2}),
        _entry("halachot", "halachot", order=3),
    ]

    boards = evaluate_schedule(entries, MONDAY_NOON, None, INACTIVE_COUNTDOWN)

    assert [b.board_ref for b in boards] == [BoardKind.HALACHOT]


def test_active_countdown_appends_countdown_board_last(make_snapshot):
    snapshot = make_snapshot(daily_zmanim={"sunrise": "06:00"}, settings={"theme_preset": "dark"})
    countdown = CountdownState(active=True, remaining=CountdownRemaining(minutes=35, seconds=0))

    boards = evaluate_schedule([_entry("h")], datetime(2026, 3, 3, 5, 25), snapshot, countdown)

    assert [b.slide_key for b in boards] == ["Halachot", COUNTDOWN_SLIDE_KEY]
    board = boards[-1]
    assert board.duration_ms == 0
    assert board.props["remaining"] == {"minutes": 35, "seconds": 0}
    assert board.props["daily_zmanim"] == {"sunrise": "06:00"}


def test_board_props_slice_the_snapshot(make_snapshot):
    snapshot = make_snapshot(
        settings={"synagogue_name": "Beit Knesset"},
        daily_zmanim={"sunrise": "06:12"},
        halachot=[{"title": "one"}, {"title": "two"}],
        community_gallery=[{"image": "a.jpg"}],
        slide_settings=[
            {"slide_name": "Community", "background_image": "new.jpg"},
            {"slide_name": "Community", "background_image": "old.jpg"},
        ],
    )

    zmanim = build_props(BoardKind.ZMANIM, snapshot)
    halachot = build_props(BoardKind.HALACHOT, snapshot)
    community = build_props(BoardKind.COMMUNITY, snapshot)

    assert zmanim == {"daily_zmanim": {"sunrise": "06:12"}, "settings": {"synagogue_name": "Beit Knesset"}}
    assert halachot == {"halachot": [{"title": "one"}, {"title": "two"}]}
    assert community["community_messages"] == []
    assert community["slide_settings"]["background_image"] == "new.jpg"
    assert build_props(BoardKind.CHIZUK, snapshot) is None


def test_props_before_first_load_are_empty():
    assert build_props(BoardKind.ZMANIM, None) == {"daily_zmanim": None, "settings": None}


def test_resolve_playlist_prefers_preview_then_admin_then_default(make_snapshot):
    stored = make_snapshot(board_schedule=[{"id": "s1", "component_key": "brachot", "duration": 45}])
    preview = [{"id": "p1", "component_key": "refuah", "duration": 20}]

    assert [e.key for e in resolve_playlist(stored, preview)] == ["p1"]
    assert [e.key for e in resolve_playlist(stored)] == ["s1"]
    assert [e.key for e in resolve_playlist(make_snapshot())] == [
        "default-zmanim",
        "default-shabbat",
        "default-halachot",
    ]
    assert [e.key for e in resolve_playlist(None)][0] == "default-zmanim"


def test_lenient_record_parsing():
    entries = entries_from_records(
        [
            {"id": "a", "component_key": "HALACHOT", "duration": "0", "active": "false"},
            "not a record",
            {"component_key": "brachot", "day_type": "sometimes", "order": "x"},
        ]
    )

    assert len(entries) == 2
    assert entries[0].board_kind is BoardKind.HALACHOT
    assert entries[0].duration_seconds == 10
    assert entries[0].active is False
    assert entries[1].day_type is DayType.ALWAYS
    assert entries[1].order == 2
