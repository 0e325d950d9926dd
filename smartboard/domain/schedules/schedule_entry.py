"""
Schedule Entry Entity
=====================

One row of the admin-edited playlist (``BoardSchedule`` collection).

Entries come straight from the backend, so the parser is lenient: unknown
board kinds survive as ``BoardKind.UNKNOWN``, unusable durations fall back to
the editor default, and time-window strings are kept raw and only validated
when the evaluator needs them.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from typing import Any

from smartboard.constants import DEFAULT_DURATION_SECONDS
from smartboard.domain.exceptions import ScheduleMisconfiguration
from smartboard.enums.board import BoardKind, DayType
from smartboard.utils.time import parse_time_of_day

logger = logging.getLogger(__name__)


def _coerce_bool(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "t", "yes", "on"}
    return bool(value)


def _coerce_duration(value: Any, key: str) -> int:
    try:
        duration = int(value)
    except (TypeError, ValueError):
        duration = 0
    if duration <= 0:
        logger.warning(
            "Schedule entry %s has unusable duration %r; using %ss",
            key,
            value,
            DEFAULT_DURATION_SECONDS,
        )
        return DEFAULT_DURATION_SECONDS
    return duration


@dataclass(frozen=True)
class ScheduleEntry:
    """
    A single playlist slot.

    Attributes:
        key: Stable identity (backend id, or kind/order for defaults)
        name: Display name shown in the rotation indicator
        board_kind: Which board this slot shows
        day_type: always / weekday / shabbat
        duration_seconds: How long the board stays (strictly positive)
        order: Display sequence; ties keep original ordering
        active: Inactive entries are never shown
        start_time: Optional "HH:MM" lower bound (inclusive)
        end_time: Optional "HH:MM" upper bound (exclusive)
    """

    key: str
    name: str
    board_kind: BoardKind
    day_type: DayType = DayType.ALWAYS
    duration_seconds: int = DEFAULT_DURATION_SECONDS
    order: int = 0
    active: bool = True
    start_time: str | None = None
    end_time: str | None = None

    def __post_init__(self) -> None:
        if self.duration_seconds <= 0:
            raise ValueError(f"duration_seconds must be positive (entry {self.key})")

    @property
    def duration_ms(self) -> int:
        return self.duration_seconds * 1000

    @property
    def has_window(self) -> bool:
        return bool(self.start_time) or bool(self.end_time)

    def window_bound(self, which: str) -> datetime.time | None:
        """
        Parse ``start`` or ``end`` of the time window.

        Raises:
            ScheduleMisconfiguration: the field is set but not a valid "HH:MM".
        """
        raw = self.start_time if which == "start" else self.end_time
        if raw is None or str(raw).strip() == "":
            return None
        parsed = parse_time_of_day(raw)
        if parsed is None:
            raise ScheduleMisconfiguration(
                f"Entry {self.key} has invalid {which}_time {raw!r}",
                detail={"key": self.key, "field": f"{which}_time", "value": raw},
            )
        return parsed

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.key,
            "name": self.name,
            "component_key": self.board_kind.value,
            "day_type": self.day_type.value,
            "duration": self.duration_seconds,
            "order": self.order,
            "active": self.active,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }

    @staticmethod
    def from_dict(data: dict[str, Any], *, position: int = 0) -> "ScheduleEntry" | None:
        """Build an entry from a backend record; None for unusable records."""
        if not isinstance(data, dict):
            return None
        kind = BoardKind.parse(data.get("component_key"))
        try:
            order = int(data.get("order", position))
        except (TypeError, ValueError):
            order = position
        key = str(data.get("id") or f"{kind.value}:{order}:{position}")
        return ScheduleEntry(
            key=key,
            name=str(data.get("name") or kind.value),
            board_kind=kind,
            day_type=DayType.parse(data.get("day_type", DayType.ALWAYS.value)),
            duration_seconds=_coerce_duration(data.get("duration"), key),
            order=order,
            active=_coerce_bool(data.get("active"), default=True),
            start_time=data.get("start_time") or None,
            end_time=data.get("end_time") or None,
        )


def entries_from_records(records: Any) -> list[ScheduleEntry]:
    """Parse a list of playlist records, skipping anything unusable."""
    if not records:
        return []
    entries: list[ScheduleEntry] = []
    for position, record in enumerate(records):
        entry = ScheduleEntry.from_dict(record, position=position)
        if entry is not None:
            entries.append(entry)
    return entries
