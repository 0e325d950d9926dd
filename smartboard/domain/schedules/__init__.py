"""
Schedule Domain Module
======================

Playlist entries as edited by the admin and consumed by the evaluator.
"""
from smartboard.domain.schedules.schedule_entry import ScheduleEntry, entries_from_records

__all__ = [
    "ScheduleEntry",
    "entries_from_records",
]
