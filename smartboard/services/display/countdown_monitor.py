"""
Sunrise countdown.

The countdown board interrupts rotation during the last minutes before
sunrise. ``compute_countdown`` is the pure calculation; ``CountdownMonitor``
recomputes it on every runtime tick and announces the enter and exit edges.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable

from smartboard.constants import SHABBAT_COUNTDOWN_MINUTES, WEEKDAY_COUNTDOWN_MINUTES
from smartboard.domain.board import INACTIVE_COUNTDOWN, CountdownRemaining, CountdownState
from smartboard.domain.snapshot import CacheSnapshot
from smartboard.enums.events import DisplayEvent
from smartboard.utils.event_bus import EventBus
from smartboard.utils.time import is_saturday, parse_time_of_day

logger = logging.getLogger(__name__)


def compute_countdown(sunrise: Any, window_minutes: Any, now: datetime) -> CountdownState:
    """
    Countdown state for a ``"HH:MM"`` sunrise.

    Sunrise is taken as today at ``HH:MM:00``, rolled to tomorrow once it has
    passed. Active while ``0 < remaining <= window``. Missing or malformed
    input yields an inactive state; this never raises.
    """
    sunrise_time = parse_time_of_day(sunrise)
    if sunrise_time is None:
        return INACTIVE_COUNTDOWN
    try:
        window = float(window_minutes)
    except (TypeError, ValueError):
        return INACTIVE_COUNTDOWN
    if window <= 0:
        return INACTIVE_COUNTDOWN

    target = now.replace(hour=sunrise_time.hour, minute=sunrise_time.minute, second=0, microsecond=0)
    if target < now:
        target += timedelta(days=1)
    remaining = (target - now).total_seconds()
    if not 0 < remaining <= window * 60:
        return INACTIVE_COUNTDOWN
    whole = int(remaining)
    return CountdownState(active=True, remaining=CountdownRemaining(minutes=whole // 60, seconds=whole % 60))


def countdown_window_minutes(now: datetime, settings: dict[str, Any] | None) -> float:
    """Window length from settings: the Shabbat value on Saturday, the weekday value otherwise."""
    if is_saturday(now):
        field, default = "shabbat_countdown_minutes", SHABBAT_COUNTDOWN_MINUTES
    else:
        field, default = "sunrise_countdown_minutes", WEEKDAY_COUNTDOWN_MINUTES
    raw = (settings or {}).get(field)
    if raw in (None, ""):
        return default
    try:
        minutes = float(raw)
    except (TypeError, ValueError):
        logger.warning("Setting %s=%r is not a number; using %s", field, raw, default)
        return default
    # 0 counts as unset
    return minutes or default


class CountdownMonitor:
    """
    Tracks the countdown across ticks and publishes its transitions.

    Events (payload is the new ``CountdownState``):
        COUNTDOWN_ENTERED: inactive -> active
        COUNTDOWN_EXITED: active -> inactive
        COUNTDOWN_TICK: every update while active
    """

    def __init__(self, bus: EventBus | None = None) -> None:
        self._bus = bus or EventBus()
        self._state: CountdownState = INACTIVE_COUNTDOWN

    @property
    def state(self) -> CountdownState:
        return self._state

    def subscribe(self, event: DisplayEvent, callback: Callable[[CountdownState], None]) -> Callable[[], None]:
        return self._bus.subscribe(event, callback)

    def update(self, now: datetime, snapshot: CacheSnapshot | None) -> CountdownState:
        settings = snapshot.first("settings") if snapshot else None
        zmanim = snapshot.first("daily_zmanim") if snapshot else None
        sunrise = zmanim.get("sunrise") if zmanim else None
        state = compute_countdown(sunrise, countdown_window_minutes(now, settings), now)

        was_active = self._state.active
        self._state = state
        if state.active and not was_active:
            logger.info("Sunrise countdown started (sunrise %s)", sunrise)
            self._bus.publish(DisplayEvent.COUNTDOWN_ENTERED, state)
        elif was_active and not state.active:
            logger.info("Sunrise countdown ended")
            self._bus.publish(DisplayEvent.COUNTDOWN_EXITED, state)
        if state.active:
            self._bus.publish(DisplayEvent.COUNTDOWN_TICK, state)
        return state

    def close(self) -> None:
        self._bus.clear()
