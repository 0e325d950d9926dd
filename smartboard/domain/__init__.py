"""
Display domain model: playlist entries, snapshots and derived display values.
"""
from smartboard.domain.board import (
    INACTIVE_COUNTDOWN,
    BackgroundLayers,
    BackgroundResolution,
    BoardInstance,
    CountdownRemaining,
    CountdownState,
    RenderFrame,
)
from smartboard.domain.schedules import ScheduleEntry, entries_from_records
from smartboard.domain.snapshot import CacheSnapshot

__all__ = [
    "INACTIVE_COUNTDOWN",
    "BackgroundLayers",
    "BackgroundResolution",
    "BoardInstance",
    "CacheSnapshot",
    "CountdownRemaining",
    "CountdownState",
    "RenderFrame",
    "ScheduleEntry",
    "entries_from_records",
]
