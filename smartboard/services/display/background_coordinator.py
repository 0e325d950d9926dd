"""
Background Coordinator
======================

Resolves which image and overlay sit behind each board and drives the
two-layer crossfade between them.

Features:
- Per-slide backgrounds from ``slide_settings``, countdown background from
  ``settings``, theme preset overlays
- Keeps the old image on screen until the new one has loaded
- Ignores load completions that a newer board has superseded
- Warms the next two boards' images, and every configured image at start-up
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Callable, Iterable, Sequence

from smartboard.constants import (
    CROSSFADE_MS,
    DEFAULT_BACKGROUND_OPACITY,
    DEFAULT_OVERLAY_COLOR,
    DEFAULT_OVERLAY_OPACITY,
    UPCOMING_PRELOAD_COUNT,
)
from smartboard.defaults import theme_overrides
from smartboard.domain.board import BackgroundLayers, BackgroundResolution, BoardInstance
from smartboard.domain.exceptions import ImageLoadFailure
from smartboard.domain.snapshot import CacheSnapshot
from smartboard.enums.events import DisplayEvent
from smartboard.services.protocols import ImageLoader, TimerHandle, TimerScheduler
from smartboard.utils.event_bus import EventBus

logger = logging.getLogger(__name__)


def _percent(value: Any, default: float) -> float:
    """Admin percent (0-100) as a 0-1 fraction, clamped."""
    if value is None or value == "":
        return default
    try:
        fraction = float(value) / 100.0
    except (TypeError, ValueError):
        return default
    return min(max(fraction, 0.0), 1.0)


def resolve_background(board: BoardInstance | None, snapshot: CacheSnapshot | None) -> BackgroundResolution:
    """
    Background for ``board``.

    The countdown board uses the countdown image from settings when one is
    configured. Any other board (or a countdown without its own image) uses
    the most recent slide settings for its slide key, with the theme preset
    overriding the overlay. Without a match there is no image and the
    static gradient shows.
    """
    if board is None or snapshot is None:
        return BackgroundResolution()
    settings = snapshot.first("settings") or {}

    if board.is_countdown and settings.get("countdown_background_image"):
        return BackgroundResolution(
            image_url=settings["countdown_background_image"],
            overlay_opacity=_percent(settings.get("countdown_bg_opacity"), 1.0),
        )

    slide = next((s for s in snapshot.get("slide_settings") if s.get("slide_name") == board.slide_key), None)
    if slide is None:
        return BackgroundResolution()

    overlay_color = slide.get("overlay_color") or DEFAULT_OVERLAY_COLOR
    overlay_opacity = _percent(slide.get("overlay_opacity"), DEFAULT_OVERLAY_OPACITY)
    theme = theme_overrides(settings.get("theme_preset"))
    if theme.get("overlay_color"):
        overlay_color = theme["overlay_color"]
    if "overlay_opacity" in theme:
        overlay_opacity = theme["overlay_opacity"]

    return BackgroundResolution(
        image_url=slide.get("background_image") or None,
        overlay_color=overlay_color,
        overlay_opacity=overlay_opacity,
        background_opacity=_percent(slide.get("background_opacity"), DEFAULT_BACKGROUND_OPACITY),
    )


def configured_background_urls(snapshot: CacheSnapshot | None) -> list[str]:
    """Every image the admin configured, in first-seen order."""
    if snapshot is None:
        return []
    urls: list[str] = []
    settings = snapshot.first("settings") or {}
    candidates = [settings.get("countdown_background_image")]
    candidates.extend(s.get("background_image") for s in snapshot.get("slide_settings"))
    for url in candidates:
        if url and url not in urls:
            urls.append(url)
    return urls


class BackgroundCoordinator:
    """
    Owner of the painted ``BackgroundLayers``.

    Args:
        loader: Image loader used for preloading
        timers: One-shot timer source (defaults to the running event loop)
        snapshot_source: Zero-arg callable returning the current snapshot
        crossfade_ms: How long the previous layer stays during a crossfade
    """

    def __init__(
        self,
        loader: ImageLoader,
        timers: TimerScheduler | None = None,
        *,
        snapshot_source: Callable[[], CacheSnapshot | None] = lambda: None,
        crossfade_ms: int = CROSSFADE_MS,
    ) -> None:
        self._loader = loader
        self._timers = timers
        self._snapshot_source = snapshot_source
        self.crossfade_ms = crossfade_ms
        self._bus = EventBus()
        self._layers = BackgroundLayers()
        self._pending_url: str | None = None
        self._pending: BackgroundResolution | None = None
        self._crossfade: TimerHandle | None = None

    @property
    def layers(self) -> BackgroundLayers:
        return self._layers

    @property
    def pending_url(self) -> str | None:
        return self._pending_url

    @property
    def is_crossfading(self) -> bool:
        return self._crossfade is not None

    def subscribe(self, callback: Callable[[BackgroundLayers], None]) -> Callable[[], None]:
        return self._bus.subscribe(DisplayEvent.BACKGROUND_CHANGED, callback)

    def show(self, board: BoardInstance | None, boards: Sequence[BoardInstance] = (), index: int = 0) -> None:
        """Move the background to ``board``'s and warm the upcoming boards' images."""
        if board is None:
            return
        snapshot = self._snapshot_source()
        resolution = resolve_background(board, snapshot)
        url = resolution.image_url

        if url is not None and url != self._layers.current_image:
            if url == self._pending_url:
                self._pending = resolution
            elif self._loader.is_cached(url):
                self._pending_url = None
                self._swap(url, resolution)
            else:
                self._pending_url = url
                self._pending = resolution
                self._loader.preload(url, self._on_loaded)
        else:
            self._pending_url = None
            self._pending = None
            self._swap(url, resolution)

        self._preload_upcoming(boards, index, snapshot)

    def preload_all(self, urls: Iterable[str], on_complete: Callable[[], None]) -> None:
        """Warm every url, then call ``on_complete`` once (failures count as done)."""
        outstanding = {url for url in urls if url and not self._loader.is_cached(url)}
        if not outstanding:
            on_complete()
            return
        logger.info("Preloading %d background images", len(outstanding))
        finished = False

        def _done(url: str, error: ImageLoadFailure | None) -> None:
            nonlocal finished
            if error is not None:
                logger.warning("%s", error)
            outstanding.discard(url)
            if not outstanding and not finished:
                finished = True
                logger.info("Background images ready")
                on_complete()

        for url in list(outstanding):
            self._loader.preload(url, _done)

    def close(self) -> None:
        self._cancel_crossfade()
        self._pending_url = None
        self._pending = None
        self._bus.clear()

    def _on_loaded(self, url: str, error: ImageLoadFailure | None) -> None:
        if url != self._pending_url:
            logger.debug("Ignoring superseded background load %s", url)
            return
        resolution = self._pending or BackgroundResolution(image_url=url)
        self._pending_url = None
        self._pending = None
        if error is not None:
            logger.warning("%s; showing gradient", error)
            self._swap(None, resolution)
        else:
            self._swap(url, resolution)

    def _swap(self, url: str | None, resolution: BackgroundResolution) -> None:
        current = self._layers.current_image
        if url == current:
            # overlay only; image layers untouched
            updated = replace(
                self._layers,
                overlay_color=resolution.overlay_color,
                overlay_opacity=resolution.overlay_opacity,
                background_opacity=resolution.background_opacity,
            )
            if updated != self._layers:
                self._layers = updated
                self._bus.publish(DisplayEvent.BACKGROUND_CHANGED, updated)
            return

        self._cancel_crossfade()
        self._layers = BackgroundLayers(
            current_image=url,
            previous_image=current,
            overlay_color=resolution.overlay_color,
            overlay_opacity=resolution.overlay_opacity,
            background_opacity=resolution.background_opacity,
        )
        if current is not None:
            timers = self._timers or asyncio.get_running_loop()
            self._crossfade = timers.call_later(self.crossfade_ms / 1000.0, self._end_crossfade)
        self._bus.publish(DisplayEvent.BACKGROUND_CHANGED, self._layers)

    def _end_crossfade(self) -> None:
        self._crossfade = None
        if self._layers.previous_image is None:
            return
        self._layers = replace(self._layers, previous_image=None)
        self._bus.publish(DisplayEvent.BACKGROUND_CHANGED, self._layers)

    def _cancel_crossfade(self) -> None:
        if self._crossfade is not None:
            self._crossfade.cancel()
            self._crossfade = None

    def _preload_upcoming(self, boards: Sequence[BoardInstance], index: int, snapshot: CacheSnapshot | None) -> None:
        if len(boards) <= 1:
            return
        for step in range(1, UPCOMING_PRELOAD_COUNT + 1):
            upcoming = boards[(index + step) % len(boards)]
            url = resolve_background(upcoming, snapshot).image_url
            if url and url != self._pending_url and not self._loader.is_cached(url):
                self._loader.preload(url)
