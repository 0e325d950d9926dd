from __future__ import annotations

import asyncio
import logging
import os
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Callable, Coroutine, Optional, TypeVar

from smartboard.config import AppConfig
from smartboard.services.display.cache_store import DataCacheStore
from smartboard.services.protocols import EntityBackend, ImageLoader, KeyValueStore
from smartboard.utils.cache import TTLCache
from smartboard.utils.persistent_store import JsonFileStore
from smartboard.utils.time import wall_clock
from smartboard.workers.display_runtime import DisplayRuntime
from infrastructure.backend.entity_client import RestEntityBackend
from infrastructure.images.http_image_loader import HttpImageLoader
from infrastructure.logging.event_logger import DisplayEventLogger

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class DisplayContainer:
    """
    Aggregate the display core for one process and own the loop it runs on.

    The loop lives on a single dedicated thread; Flask request threads only
    reach the core through :meth:`call` and :meth:`run`.
    """

    config: AppConfig
    backend: EntityBackend
    storage: KeyValueStore
    image_loader: ImageLoader
    loop: asyncio.AbstractEventLoop = field(default_factory=asyncio.new_event_loop)
    runtime: Optional[DisplayRuntime] = None
    event_logger: Optional[DisplayEventLogger] = None
    _thread: Optional[threading.Thread] = None

    @classmethod
    def build(cls, config: AppConfig) -> "DisplayContainer":
        """Construct the container with production collaborators.

        Args:
            config: Application configuration
        """
        logger.info("Building DisplayContainer (backend %s)...", config.backend_base_url)
        backend = RestEntityBackend(config.backend_base_url, timeout=config.backend_timeout_seconds)
        storage = JsonFileStore(os.path.abspath(config.storage_dir))
        image_loader = HttpImageLoader(
            cache=TTLCache(ttl_seconds=config.image_cache_ttl_seconds, maxsize=config.image_cache_size),
            timeout=config.backend_timeout_seconds,
        )
        return cls(config=config, backend=backend, storage=storage, image_loader=image_loader)

    # ------------------------------------------------------------------
    # Loop thread
    # ------------------------------------------------------------------
    @property
    def started(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, observers: tuple = ()) -> None:
        """Start the loop thread and the runtime on it; idempotent."""
        if self.started:
            return
        self._thread = threading.Thread(target=self._run_loop, name="smartboard-display", daemon=True)
        self._thread.start()
        self.run(self._start_runtime(observers), timeout=10.0)
        logger.info("✓ Display runtime running on loop thread")

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    async def _start_runtime(self, observers: tuple) -> None:
        config = self.config
        cache = DataCacheStore(
            self.backend,
            self.storage,
            refresh_interval_seconds=config.cache_refresh_interval_seconds,
            min_refresh_delay_seconds=config.cache_min_refresh_delay_seconds,
            retry_seconds=config.cache_retry_seconds,
            request_delay_seconds=config.cache_request_delay_seconds,
            today=lambda: wall_clock(config.timezone)().date(),
        )
        runtime = DisplayRuntime(
            cache,
            self.image_loader,
            clock=wall_clock(config.timezone),
            tick_seconds=config.tick_seconds,
            crossfade_ms=config.crossfade_ms,
            observers=observers,
        )
        self.event_logger = DisplayEventLogger(cache, runtime.countdown, runtime.rotation, runtime.background)
        self.runtime = runtime
        await runtime.start()

    def call(self, fn: Callable[..., T], *args: Any, timeout: float = 5.0) -> T:
        """Run a plain function on the loop thread and return its result."""
        future: Future = Future()

        def _invoke() -> None:
            try:
                future.set_result(fn(*args))
            except BaseException as exc:
                future.set_exception(exc)

        self.loop.call_soon_threadsafe(_invoke)
        return future.result(timeout=timeout)

    def run(self, coro: Coroutine[Any, Any, T], *, timeout: float | None = 30.0) -> T:
        """Run a coroutine on the loop thread and wait for it."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop).result(timeout=timeout)

    def shutdown(self) -> None:
        """Release external resources before process exit."""
        if self.started:
            if self.runtime is not None:
                try:
                    self.call(self.runtime.stop)
                except Exception as e:
                    logger.warning(f"Failed to stop display runtime: {e}")
            if self.event_logger is not None:
                self.event_logger.close()
            self.loop.call_soon_threadsafe(self.loop.stop)
            self._thread.join(timeout=5.0)
        for resource in (self.image_loader, self.backend):
            close = getattr(resource, "close", None)
            if close is not None:
                close()
        logger.info("DisplayContainer shutdown complete.")
