from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os

from smartboard.config import load_config, setup_logging
from smartboard.domain.board import RenderFrame
from smartboard.services.display.cache_store import DataCacheStore
from smartboard.utils.cache import TTLCache
from smartboard.utils.persistent_store import JsonFileStore, MemoryStore
from smartboard.utils.time import wall_clock
from smartboard.workers.display_runtime import DisplayRuntime
from infrastructure.backend.entity_client import RestEntityBackend
from infrastructure.images.http_image_loader import HttpImageLoader
from infrastructure.logging.event_logger import DisplayEventLogger

logger = logging.getLogger(__name__)


class LoggingFrameObserver:
    """Headless rendering collaborator: one log line per board shown."""

    def __init__(self) -> None:
        self._last: tuple | None = None

    def on_frame(self, frame: RenderFrame) -> None:
        key = (
            frame.board.slide_key if frame.board else None,
            frame.index,
            frame.loading,
            frame.countdown.active,
        )
        if key == self._last:
            return
        self._last = key
        if frame.loading:
            logger.info("Frame: loading")
        elif frame.board is None:
            logger.info("Frame: no boards")
        else:
            logger.info(
                "Frame: %s '%s' %d/%d background=%s",
                frame.board.slide_key,
                frame.board.name,
                frame.index + 1,
                frame.count,
                frame.background.current_image or "gradient",
            )


def _build_cache(config, backend, storage) -> DataCacheStore:
    return DataCacheStore(
        backend,
        storage,
        refresh_interval_seconds=config.cache_refresh_interval_seconds,
        min_refresh_delay_seconds=config.cache_min_refresh_delay_seconds,
        retry_seconds=config.cache_retry_seconds,
        request_delay_seconds=config.cache_request_delay_seconds,
        today=lambda: wall_clock(config.timezone)().date(),
    )


async def _refresh_once(cache: DataCacheStore) -> dict:
    await cache.force_refresh()
    status = cache.status()
    cache.close()
    return status


async def _run(config, cache: DataCacheStore, loader: HttpImageLoader) -> None:
    runtime = DisplayRuntime(
        cache,
        loader,
        clock=wall_clock(config.timezone),
        tick_seconds=config.tick_seconds,
        crossfade_ms=config.crossfade_ms,
        observers=(LoggingFrameObserver(),),
    )
    event_logger = DisplayEventLogger(cache, runtime.countdown, runtime.rotation, runtime.background)
    try:
        await runtime.run_forever()
    finally:
        event_logger.close()
        runtime.stop()


def main(argv: list[str] | None = None) -> int:
    """Run the display runtime without starting the web server."""
    parser = argparse.ArgumentParser(prog="smartboard-display")
    parser.add_argument("--backend-url", help="Override SMARTBOARD_BACKEND_URL")
    parser.add_argument("--storage-dir", help="Override SMARTBOARD_STORAGE_DIR")
    parser.add_argument(
        "--no-persist",
        action="store_true",
        help="Keep the cache in memory only (nothing written to disk)",
    )
    parser.add_argument(
        "--refresh-once",
        action="store_true",
        help="Load every collection once, print the cache status as JSON and exit",
    )
    args = parser.parse_args(argv)

    config = load_config()
    if args.backend_url:
        config.backend_base_url = args.backend_url
    if args.storage_dir:
        config.storage_dir = args.storage_dir
    setup_logging(debug=config.DEBUG, log_dir=config.log_dir)

    backend = RestEntityBackend(config.backend_base_url, timeout=config.backend_timeout_seconds)
    storage = MemoryStore() if args.no_persist else JsonFileStore(os.path.abspath(config.storage_dir))
    loader = HttpImageLoader(
        cache=TTLCache(ttl_seconds=config.image_cache_ttl_seconds, maxsize=config.image_cache_size),
        timeout=config.backend_timeout_seconds,
    )

    try:
        if args.refresh_once:
            status = asyncio.run(_refresh_once(_build_cache(config, backend, storage)))
            print(json.dumps(status, indent=2, ensure_ascii=False))
            return 0 if status["loaded"] else 1

        logger.info("Display runtime running headless (press Ctrl+C to stop)")
        asyncio.run(_run(config, _build_cache(config, backend, storage), loader))
    except KeyboardInterrupt:
        logger.info("Stopping display runtime...")
    finally:
        loader.close()
        backend.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
