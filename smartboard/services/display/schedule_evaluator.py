"""
Schedule evaluation: which boards are eligible right now, in which order,
and with which slice of cached data.

Pure functions of (playlist, wall-clock time, snapshot, countdown state);
nothing here does I/O or keeps state beyond de-duplicating log lines.
"""
from __future__ import annotations

import datetime
import logging
from typing import Any, Iterable, Sequence

from smartboard.constants import COUNTDOWN_BOARD_NAME, COUNTDOWN_SLIDE_KEY
from smartboard.defaults import BOARD_BINDINGS, DEFAULT_PLAYLIST, SINGLE_RECORD_COLLECTIONS
from smartboard.domain.board import BoardInstance, CountdownState
from smartboard.domain.exceptions import ScheduleMisconfiguration
from smartboard.domain.schedules import ScheduleEntry, entries_from_records
from smartboard.domain.snapshot import CacheSnapshot
from smartboard.enums.board import BoardKind, DayType
from smartboard.utils.time import in_time_window, is_shabbat_handover

logger = logging.getLogger(__name__)

# Orientation used when an entry says "always"
_INTRINSIC_DAY_TYPE: dict[BoardKind, DayType] = {
    BoardKind.ZMANIM: DayType.WEEKDAY,
    BoardKind.SHABBAT: DayType.SHABBAT,
}

_reported_misconfigurations: set[tuple[str, str, str]] = set()


def _report(exc: ScheduleMisconfiguration) -> None:
    marker = (str(exc.detail.get("key")), str(exc.detail.get("field")), str(exc.detail.get("value")))
    if marker in _reported_misconfigurations:
        logger.debug("%s (bound ignored)", exc)
        return
    _reported_misconfigurations.add(marker)
    logger.warning("%s; ignoring that bound", exc)


def _safe_bound(entry: ScheduleEntry, which: str) -> datetime.time | None:
    try:
        return entry.window_bound(which)
    except ScheduleMisconfiguration as exc:
        _report(exc)
        return None


def is_within_window(entry: ScheduleEntry, now: datetime.datetime) -> bool:
    if not entry.has_window:
        return True
    return in_time_window(now, _safe_bound(entry, "start"), _safe_bound(entry, "end"))


def effective_day_type(entry: ScheduleEntry) -> DayType:
    if entry.day_type is DayType.ALWAYS:
        return _INTRINSIC_DAY_TYPE.get(entry.board_kind, DayType.ALWAYS)
    return entry.day_type


def is_day_eligible(entry: ScheduleEntry, handover: bool) -> bool:
    day_type = effective_day_type(entry)
    if day_type is DayType.WEEKDAY:
        return not handover
    if day_type is DayType.SHABBAT:
        return handover
    return True


def build_props(kind: BoardKind, snapshot: CacheSnapshot | None) -> dict[str, Any] | None:
    """Data slice for one board kind; None when the kind has no board."""
    binding = BOARD_BINDINGS.get(kind)
    if binding is None:
        return None
    props: dict[str, Any] = {}
    for name in binding.collections:
        if snapshot is None:
            props[name] = None if name in SINGLE_RECORD_COLLECTIONS else []
        elif name in SINGLE_RECORD_COLLECTIONS:
            props[name] = snapshot.first(name)
        else:
            props[name] = list(snapshot.get(name))
    if binding.settings_slide:
        props["slide_settings"] = find_slide_settings(snapshot, binding.slide_key)
    return props


def find_slide_settings(snapshot: CacheSnapshot | None, slide_key: str) -> dict[str, Any] | None:
    """Most recent ``slide_settings`` record for a slide (records arrive newest first)."""
    if snapshot is None:
        return None
    for record in snapshot.get("slide_settings"):
        if record.get("slide_name") == slide_key:
            return record
    return None


def countdown_board(countdown: CountdownState, snapshot: CacheSnapshot | None) -> BoardInstance:
    return BoardInstance(
        board_ref=BoardKind.COUNTDOWN,
        name=COUNTDOWN_BOARD_NAME,
        duration_ms=0,
        slide_key=COUNTDOWN_SLIDE_KEY,
        props={
            "remaining": countdown.remaining.to_dict() if countdown.remaining else None,
            "daily_zmanim": snapshot.first("daily_zmanim") if snapshot else None,
            "settings": snapshot.first("settings") if snapshot else None,
        },
    )


def evaluate_schedule(
    entries: Iterable[ScheduleEntry],
    now: datetime.datetime,
    snapshot: CacheSnapshot | None,
    countdown: CountdownState,
) -> list[BoardInstance]:
    """
    Ordered boards eligible at ``now``.

    Args:
        entries: Playlist entries in any order
        now: Display wall-clock time
        snapshot: Current cache snapshot (None before the first load)
        countdown: Current countdown state; when active the countdown board
            is appended last

    Returns:
        Board instances sorted by entry order (stable for ties).
    """
    handover = is_shabbat_handover(now)
    boards: list[BoardInstance] = []
    for entry in sorted(entries, key=lambda e: e.order):
        if not entry.active:
            continue
        if not is_within_window(entry, now):
            continue
        if not is_day_eligible(entry, handover):
            continue
        props = build_props(entry.board_kind, snapshot)
        if props is None:
            continue
        boards.append(
            BoardInstance(
                board_ref=entry.board_kind,
                name=entry.name,
                duration_ms=entry.duration_ms,
                slide_key=BOARD_BINDINGS[entry.board_kind].slide_key,
                props=props,
            )
        )
    if countdown.active:
        boards.append(countdown_board(countdown, snapshot))
    return boards


def resolve_playlist(
    snapshot: CacheSnapshot | None,
    preview: Sequence[ScheduleEntry | dict[str, Any]] | None = None,
) -> list[ScheduleEntry]:
    """Preview entries if given, else the admin playlist, else the built-in default."""
    if preview:
        if all(isinstance(item, ScheduleEntry) for item in preview):
            return list(preview)
        return entries_from_records([item.to_dict() if isinstance(item, ScheduleEntry) else item for item in preview])
    if snapshot is not None:
        entries = entries_from_records(snapshot.get("board_schedule"))
        if entries:
            return entries
    return entries_from_records(DEFAULT_PLAYLIST)
