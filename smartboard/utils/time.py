"""Utility functions for time handling.

Two clocks matter on the display:

* persisted timestamps (snapshot ``last_load_time``) are UTC-aware and stored
  as ISO-8601 strings via :func:`iso_now` / :func:`coerce_datetime`;
* playlist windows, the Shabbat handover and sunrise are *wall clock* values,
  compared on the display's local time (optionally pinned to a timezone).
"""

from __future__ import annotations

import datetime as _dt
from datetime import datetime, timezone
from typing import Any, Callable
from zoneinfo import ZoneInfo

from smartboard.constants import FRIDAY_CUTOFF_HOUR, SATURDAY_CUTOFF_HOUR

FRIDAY = 4
SATURDAY = 5


def utc_now() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def iso_now(*, timespec: str | None = None) -> str:
    """Return current UTC time as an ISO8601 string (timezone-aware)."""
    now = utc_now()
    if timespec:
        return now.isoformat(timespec=timespec)
    return now.isoformat()


def coerce_datetime(value: Any) -> datetime | None:
    """
    Coerce value to datetime, returning None on failure.

    Args:
        value: String or datetime to coerce

    Returns:
        Datetime in timezone.utc or None if invalid
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw.replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    else:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed


def wall_clock(tz_name: str | None = None) -> Callable[[], datetime]:
    """Return a zero-arg clock giving the display's local wall time."""
    if tz_name:
        tz = ZoneInfo(tz_name)
        return lambda: datetime.now(tz)
    return datetime.now


def parse_time_of_day(value: Any) -> _dt.time | None:
    """Parse ``"HH:MM"`` (seconds tolerated) into a time; None if unusable."""
    if value is None:
        return None
    if isinstance(value, _dt.time):
        return value
    raw = str(value).strip()
    if not raw:
        return None
    parts = raw.split(":")
    if len(parts) < 2:
        return None
    try:
        hour = int(parts[0])
        minute = int(parts[1])
    except ValueError:
        return None
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return _dt.time(hour, minute)


def minutes_of_day(value: datetime | _dt.time) -> int:
    """Minutes since midnight, ignoring seconds and date."""
    return value.hour * 60 + value.minute


def in_time_window(now: datetime, start: _dt.time | None, end: _dt.time | None) -> bool:
    """
    Check ``now`` against a half-open ``[start, end)`` time-of-day window.

    Either bound may be None (open). When ``end < start`` the window wraps
    past midnight.
    """
    current = minutes_of_day(now)
    if start is not None and end is not None:
        lo, hi = minutes_of_day(start), minutes_of_day(end)
        if hi < lo:
            return current >= lo or current < hi
        return lo <= current < hi
    if start is not None:
        return current >= minutes_of_day(start)
    if end is not None:
        return current < minutes_of_day(end)
    return True


def is_shabbat_handover(now: datetime) -> bool:
    """True from Friday 08:00 through Saturday 20:59 (literal cutoffs)."""
    day = now.weekday()
    return (day == FRIDAY and now.hour >= FRIDAY_CUTOFF_HOUR) or (
        day == SATURDAY and now.hour <= SATURDAY_CUTOFF_HOUR
    )


def is_saturday(now: datetime) -> bool:
    return now.weekday() == SATURDAY
