"""
HTTP image loader for background preloading.

Downloads run in a worker thread; completions are reported back on the
display loop. Bytes are kept in a bounded TTL cache so a board that comes
round again does not download its background twice.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable

import requests

from smartboard.domain.exceptions import ImageLoadFailure
from smartboard.utils.cache import TTLCache

logger = logging.getLogger(__name__)

LoadCallback = Callable[[str, "ImageLoadFailure | None"], None]


class HttpImageLoader:
    """``ImageLoader`` backed by ``requests`` and ``TTLCache``."""

    def __init__(
        self,
        *,
        cache: TTLCache | None = None,
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ) -> None:
        self._cache = cache or TTLCache(ttl_seconds=6 * 3600, maxsize=32)
        self.timeout = timeout
        self._session = session or requests.Session()
        self._inflight: dict[str, list[LoadCallback | None]] = {}
        self._tasks: set[asyncio.Task] = set()

    def is_cached(self, url: str) -> bool:
        return self._cache.contains(url)

    def cache_stats(self) -> dict:
        return self._cache.get_stats()

    def preload(self, url: str, on_done: LoadCallback | None = None) -> None:
        if self.is_cached(url):
            if on_done is not None:
                on_done(url, None)
            return
        waiting = self._inflight.get(url)
        if waiting is not None:
            waiting.append(on_done)
            return
        self._inflight[url] = [on_done]
        task = asyncio.get_running_loop().create_task(self._load(url))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _load(self, url: str) -> None:
        error: ImageLoadFailure | None = None
        try:
            content = await asyncio.to_thread(self._download, url)
            self._cache.set(url, content)
            logger.debug("Cached background %s (%d bytes)", url, len(content))
        except Exception as exc:
            error = ImageLoadFailure(url, exc)
        finally:
            callbacks = self._inflight.pop(url, [])
        for callback in callbacks:
            if callback is not None:
                callback(url, error)

    def _download(self, url: str) -> bytes:
        response = self._session.get(url, timeout=self.timeout)
        response.raise_for_status()
        content_type = response.headers.get("Content-Type", "")
        if content_type and not content_type.startswith("image/"):
            raise ValueError(f"not an image (Content-Type {content_type})")
        return response.content

    def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
        self._inflight.clear()
        self._session.close()
