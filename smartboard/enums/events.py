from enum import Enum


class DisplayEvent(str, Enum):
    """Topics published on a display EventBus."""

    CACHE_UPDATED = "cache_updated"
    COUNTDOWN_ENTERED = "countdown_entered"
    COUNTDOWN_EXITED = "countdown_exited"
    COUNTDOWN_TICK = "countdown_tick"
    BOARD_CHANGED = "board_changed"
    BACKGROUND_CHANGED = "background_changed"


class WebSocketEvent(str, Enum):
    """Socket.IO event names pushed to rendering clients."""

    BOARD_FRAME = "board_frame"
