"""
Display runtime: the single scheduler tick that drives the display core.

Every tick (1 s by default) recomputes the countdown, re-evaluates the
playlist against the current snapshot, hands the eligible boards to the
rotation controller and pushes a ``RenderFrame`` to every observer when it
differs from the previous one. Board changes and background crossfades push
frames between ticks as well.

Design Principles:
- Everything runs on one asyncio loop; timers are loop handles
- One live timer per purpose (tick, rotation advance, crossfade, refresh)
- I/O failures never reach the render path; the last good state is kept
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Iterable, Sequence

from smartboard.constants import (
    CROSSFADE_MS,
    DEFAULT_FONT_SIZE_PERCENT,
    DEFAULT_TRANSITION_SECONDS,
    TICK_SECONDS,
)
from smartboard.domain.board import RenderFrame
from smartboard.domain.schedules import ScheduleEntry
from smartboard.domain.snapshot import CacheSnapshot
from smartboard.enums.board import RotationState
from smartboard.enums.events import DisplayEvent
from smartboard.services.display.background_coordinator import BackgroundCoordinator, configured_background_urls
from smartboard.services.display.cache_store import DataCacheStore
from smartboard.services.display.countdown_monitor import CountdownMonitor
from smartboard.services.display.rotation_controller import RotationController, RotationUpdate
from smartboard.services.display.schedule_evaluator import evaluate_schedule, resolve_playlist
from smartboard.services.protocols import FrameObserver, ImageLoader, TimerHandle, TimerScheduler

logger = logging.getLogger(__name__)


def _number(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


class DisplayRuntime:
    """
    Owns the display units and the tick that coordinates them.

    Args:
        cache: The process-wide cache store
        loader: Background image loader
        timers: One-shot timer source shared by every unit (defaults to the
            running event loop)
        clock: Display wall-clock "now" (local time)
        tick_seconds: Tick period
        crossfade_ms: Background crossfade length
        observers: Initial frame observers
    """

    def __init__(
        self,
        cache: DataCacheStore,
        loader: ImageLoader,
        *,
        timers: TimerScheduler | None = None,
        clock: Callable[[], datetime] = datetime.now,
        tick_seconds: float = TICK_SECONDS,
        crossfade_ms: int = CROSSFADE_MS,
        observers: Iterable[FrameObserver] = (),
    ) -> None:
        self.cache = cache
        self.countdown = CountdownMonitor()
        self.rotation = RotationController(timers)
        self.background = BackgroundCoordinator(
            loader,
            timers,
            snapshot_source=lambda: self.cache.snapshot,
            crossfade_ms=crossfade_ms,
        )
        self._timers = timers
        self._clock = clock
        self.tick_seconds = float(tick_seconds)
        self._observers: list[FrameObserver] = list(observers)
        self._preview: list[ScheduleEntry] | None = None
        self._backgrounds_ready = False
        self._warmup_started = False
        self._latest_frame: RenderFrame | None = None
        self._tick_handle: TimerHandle | None = None
        self._load_task: asyncio.Task | None = None
        self._stopped: asyncio.Future | None = None
        self._running = False

        self._unsubscribers = [
            self.countdown.subscribe(DisplayEvent.COUNTDOWN_ENTERED, self.rotation.handle_countdown_enter),
            self.countdown.subscribe(DisplayEvent.COUNTDOWN_EXITED, self.rotation.handle_countdown_exit),
            self.rotation.subscribe(self._on_board_changed),
            self.background.subscribe(lambda _layers: self.push_frame()),
            self.cache.subscribe(self._on_cache_updated),
        ]

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    @property
    def latest_frame(self) -> RenderFrame | None:
        return self._latest_frame

    @property
    def running(self) -> bool:
        return self._running

    @property
    def backgrounds_ready(self) -> bool:
        return self._backgrounds_ready

    @property
    def rotation_state(self) -> RotationState:
        return self.rotation.state

    def add_observer(self, observer: FrameObserver) -> Callable[[], None]:
        self._observers.append(observer)

        def remove() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return remove

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        loop = asyncio.get_running_loop()
        self._stopped = loop.create_future()
        self.cache.start()
        self._load_task = loop.create_task(self._initial_load())
        self.tick()
        self._schedule_tick()
        logger.info("Display runtime started (tick %.1fs)", self.tick_seconds)

    async def run_forever(self) -> None:
        """Start, then wait until ``stop()`` is called."""
        await self.start()
        if self._stopped is not None:
            await self._stopped

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self.rotation.close()
        self.background.close()
        self.countdown.close()
        self.cache.close()
        if self._stopped is not None and not self._stopped.done():
            self._stopped.set_result(None)
        logger.info("Display runtime stopped")

    async def _initial_load(self) -> None:
        snapshot = await self.cache.ensure_loaded()
        logger.info("Display data available (loaded %s)", snapshot.last_load_time.isoformat())

    def _schedule_tick(self) -> None:
        if not self._running:
            return
        timers = self._timers or asyncio.get_running_loop()
        self._tick_handle = timers.call_later(self.tick_seconds, self._on_tick)

    def _on_tick(self) -> None:
        self._tick_handle = None
        try:
            self.tick()
        except Exception as exc:
            logger.error("Display tick failed: %s", exc, exc_info=True)
        self._schedule_tick()

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    def tick(self, now: datetime | None = None) -> RenderFrame:
        now = now or self._clock()
        snapshot = self.cache.snapshot
        countdown = self.countdown.update(now, snapshot)
        entries = resolve_playlist(snapshot, self._preview)
        self.rotation.set_boards(evaluate_schedule(entries, now, snapshot, countdown))
        self._maybe_warm_up(snapshot)
        return self.push_frame()

    def build_frame(self) -> RenderFrame:
        snapshot = self.cache.snapshot
        settings = (snapshot.first("settings") if snapshot else None) or {}
        font_percent = _number(settings.get("global_font_size"), DEFAULT_FONT_SIZE_PERCENT)
        transition_seconds = _number(settings.get("board_transition_speed"), DEFAULT_TRANSITION_SECONDS)
        return RenderFrame(
            board=self.rotation.current,
            index=self.rotation.index,
            count=len(self.rotation.boards),
            background=self.background.layers,
            countdown=self.countdown.state,
            font_scale=font_percent / 100.0,
            transition_ms=int(round(transition_seconds * 1000)),
            loading=snapshot is None or not self._backgrounds_ready,
        )

    def push_frame(self) -> RenderFrame:
        frame = self.build_frame()
        if frame == self._latest_frame:
            return frame
        self._latest_frame = frame
        for observer in list(self._observers):
            try:
                observer.on_frame(frame)
            except Exception as exc:
                logger.error("Frame observer %r failed: %s", observer, exc, exc_info=True)
        return frame

    # ------------------------------------------------------------------
    # Manual control and preview
    # ------------------------------------------------------------------
    def next(self) -> bool:
        return self.rotation.next()

    def previous(self) -> bool:
        return self.rotation.previous()

    def jump_to(self, slide_key: str) -> bool:
        return self.rotation.jump_to(slide_key)

    def set_preview(self, entries: Sequence[ScheduleEntry | dict[str, Any]] | None) -> None:
        """Show an unsaved playlist instead of the stored one; None restores it."""
        self._preview = resolve_playlist(None, entries) if entries else None
        logger.info("Preview playlist %s", "enabled" if self._preview else "cleared")
        self.tick()

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------
    def _on_board_changed(self, update: RotationUpdate) -> None:
        self.background.show(update.board, update.boards, update.index)
        self.push_frame()

    def _on_cache_updated(self, snapshot: CacheSnapshot) -> None:
        if self._running:
            self.tick()
            # slide settings may have changed under the same board
            self.background.show(self.rotation.current, self.rotation.boards, self.rotation.index)

    def _maybe_warm_up(self, snapshot: CacheSnapshot | None) -> None:
        if self._warmup_started or snapshot is None:
            return
        self._warmup_started = True
        self.background.preload_all(configured_background_urls(snapshot), self._on_backgrounds_ready)

    def _on_backgrounds_ready(self) -> None:
        self._backgrounds_ready = True
        self.push_frame()
