"""
Enums Module
============

Enumeration types for the SmartBoard display core.
"""

from smartboard.enums.board import BoardKind, DayType, RotationState, ThemePreset
from smartboard.enums.events import DisplayEvent, WebSocketEvent

__all__ = [
    "BoardKind",
    "DayType",
    "DisplayEvent",
    "RotationState",
    "ThemePreset",
    "WebSocketEvent",
]
