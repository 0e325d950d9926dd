"""
Rotation controller: which board is on screen and when it advances.

Owns exactly one advance timer. Each time a board is entered the timer is
re-armed for that board's duration, unless rotation is suspended for the
sunrise countdown, in which case the countdown board stays until the
monitor reports the exit.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from smartboard.domain.board import BoardInstance
from smartboard.domain.exceptions import NotFoundError
from smartboard.enums.board import RotationState
from smartboard.enums.events import DisplayEvent
from smartboard.services.protocols import TimerHandle, TimerScheduler
from smartboard.utils.event_bus import EventBus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RotationUpdate:
    """Published on every board entry (and when the list empties)."""

    board: BoardInstance | None
    boards: tuple[BoardInstance, ...]
    index: int
    state: RotationState


class RotationController:
    def __init__(self, timers: TimerScheduler | None = None) -> None:
        self._timers = timers
        self._bus = EventBus()
        self._boards: tuple[BoardInstance, ...] = ()
        self._index = 0
        self._current: BoardInstance | None = None
        self._state = RotationState.ROTATING
        self._timer: TimerHandle | None = None
        self._timer_token = 0

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    @property
    def state(self) -> RotationState:
        return self._state

    @property
    def index(self) -> int:
        return self._index

    @property
    def boards(self) -> tuple[BoardInstance, ...]:
        return self._boards

    @property
    def current(self) -> BoardInstance | None:
        return self._current

    @property
    def has_timer(self) -> bool:
        return self._timer is not None

    @property
    def is_idle(self) -> bool:
        return not self._boards

    def subscribe(self, callback: Callable[[RotationUpdate], None]) -> Callable[[], None]:
        return self._bus.subscribe(DisplayEvent.BOARD_CHANGED, callback)

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------
    def set_boards(self, boards: Iterable[BoardInstance]) -> None:
        """
        Replace the eligible board list.

        The board on screen keeps its running timer when it is still in the
        same slot; otherwise the slot is re-entered. An out-of-range index
        resets to 0 and an empty list leaves the controller idle.
        """
        self._boards = tuple(boards)
        if not self._boards:
            self._cancel_timer()
            self._index = 0
            if self._current is not None:
                logger.info("No eligible boards; rotation idle")
                self._current = None
                self._notify()
            return

        if self._state is RotationState.SUSPENDED_FOR_COUNTDOWN:
            countdown_index = self._countdown_index()
            if countdown_index is not None:
                self._enter(countdown_index)
                return
            if self._index >= len(self._boards):
                self._index = 0
            if not self._boards[self._index].same_slot(self._current):
                self._enter(self._index)
            return

        if self._index >= len(self._boards):
            self._enter(0, force=True)
        else:
            self._enter(self._index)

    def handle_countdown_enter(self, *_args: object) -> None:
        if self._state is RotationState.SUSPENDED_FOR_COUNTDOWN:
            return
        logger.info("Rotation suspended for countdown")
        self._state = RotationState.SUSPENDED_FOR_COUNTDOWN
        self._cancel_timer()
        countdown_index = self._countdown_index()
        if countdown_index is not None:
            self._enter(countdown_index, force=True)

    def handle_countdown_exit(self, *_args: object) -> None:
        logger.info("Countdown over; rotation restarts from the first board")
        self._state = RotationState.ROTATING
        self._cancel_timer()
        self._index = 0
        if self._boards:
            self._enter(0, force=True)

    def next(self) -> bool:
        if not self._manual_allowed():
            return False
        self._enter((self._index + 1) % len(self._boards), force=True)
        return True

    def previous(self) -> bool:
        if not self._manual_allowed():
            return False
        self._enter((self._index - 1) % len(self._boards), force=True)
        return True

    def jump_to(self, slide_key: str) -> bool:
        """
        Show the first board with ``slide_key``.

        Returns False while suspended or idle.

        Raises:
            NotFoundError: no board in the current rotation has that key.
        """
        if not self._manual_allowed():
            return False
        for position, board in enumerate(self._boards):
            if board.slide_key == slide_key:
                self._enter(position, force=True)
                return True
        raise NotFoundError(f"No board '{slide_key}' in the current rotation", detail={"slide_key": slide_key})

    def close(self) -> None:
        self._cancel_timer()
        self._bus.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _manual_allowed(self) -> bool:
        return bool(self._boards) and self._state is RotationState.ROTATING

    def _countdown_index(self) -> int | None:
        for position, board in enumerate(self._boards):
            if board.is_countdown:
                return position
        return None

    def _enter(self, index: int, *, force: bool = False) -> None:
        board = self._boards[index]
        unchanged = not force and index == self._index and board.same_slot(self._current)
        self._index = index
        self._current = board
        if unchanged:
            if self._timer is None:
                self._arm_timer(board)
            return
        self._cancel_timer()
        self._arm_timer(board)
        logger.debug("Entered board %s (%d/%d)", board.slide_key, index + 1, len(self._boards))
        self._notify()

    def _arm_timer(self, board: BoardInstance) -> None:
        if self._state is not RotationState.ROTATING or board.duration_ms <= 0:
            return
        self._timer_token += 1
        token = self._timer_token
        timers = self._timers or asyncio.get_running_loop()
        self._timer = timers.call_later(board.duration_ms / 1000.0, self._on_timer, token)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self, token: int) -> None:
        if token != self._timer_token or self._timer is None:
            return
        self._timer = None
        if not self._boards or self._state is not RotationState.ROTATING:
            return
        self._enter((self._index + 1) % len(self._boards), force=True)

    def _notify(self) -> None:
        self._bus.publish(
            DisplayEvent.BOARD_CHANGED,
            RotationUpdate(board=self._current, boards=self._boards, index=self._index, state=self._state),
        )
