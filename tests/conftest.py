"""
Shared test fixtures for the SmartBoard display test suite.

Provides:
- A manual clock for loop timers (FakeTimers), so rotation, refresh and
  crossfade timing is tested without sleeping
- An in-memory entity backend with per-entity failure injection
- An image loader whose downloads complete only when a test says so
- A snapshot factory for seeding cached data

Usage:
    def test_example(timers, backend):
        backend.records["Settings"] = [{"theme_preset": "dark"}]
        ...
        timers.advance(120)
"""

from __future__ import annotations

import heapq
import itertools
import logging
from datetime import datetime, timezone
from typing import Any, Callable

import pytest

from smartboard.domain.snapshot import CacheSnapshot
from smartboard.utils.persistent_store import MemoryStore

# ---------------------------------------------------------------------------
# Logging: keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("smartboard").setLevel(logging.WARNING)
logging.getLogger("infrastructure").setLevel(logging.WARNING)


# ============================ Fake collaborators ============================


class FakeHandle:
    def __init__(self, when: float) -> None:
        self.when = when
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimers:
    """``call_later`` against a manual clock; ``advance`` fires due callbacks in order."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, FakeHandle, Callable[..., Any], tuple]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeHandle:
        handle = FakeHandle(self.now + delay)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle, callback, args))
        return handle

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, handle, callback, args = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = when
            callback(*args)
        self.now = target

    @property
    def pending(self) -> list[FakeHandle]:
        return [entry[2] for entry in self._queue if not entry[2].cancelled]

    def next_delay(self) -> float | None:
        live = sorted(handle.when for handle in self.pending)
        return live[0] - self.now if live else None


class FakeBackend:
    """EntityBackend keyed by entity name, recording every call."""

    def __init__(self) -> None:
        self.records: dict[str, list[dict[str, Any]]] = {}
        self.failing: set[str] = set()
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    def _get(self, method: str, entity: str) -> list[dict[str, Any]]:
        self.calls.append((method, entity))
        if entity in self.failing:
            raise ConnectionError(f"{entity} unavailable")
        return [dict(record) for record in self.records.get(entity, [])]

    async def list(self, entity, sort=None, limit=None):
        records = self._get("list", entity)
        return records[:limit] if limit is not None else records

    async def filter(self, entity, query, sort=None):
        records = self._get("filter", entity)
        return [r for r in records if all(r.get(k) == v for k, v in query.items())]

    def count(self, entity: str) -> int:
        return sum(1 for _, name in self.calls if name == entity)

    def close(self) -> None:
        self.closed = True


class FakeImageLoader:
    """ImageLoader whose loads stay pending until ``complete`` is called."""

    def __init__(self) -> None:
        self.cached: set[str] = set()
        self.requests: list[str] = []
        self._pending: dict[str, list] = {}

    def is_cached(self, url: str) -> bool:
        return url in self.cached

    def preload(self, url, on_done=None):
        self.requests.append(url)
        self._pending.setdefault(url, []).append(on_done)

    def complete(self, url: str, error=None) -> None:
        if error is None:
            self.cached.add(url)
        for callback in self._pending.pop(url, []):
            if callback is not None:
                callback(url, error)

    def complete_all(self) -> None:
        for url in list(self._pending):
            self.complete(url)

    @property
    def pending_urls(self) -> list[str]:
        return list(self._pending)


class RecordingObserver:
    def __init__(self) -> None:
        self.frames: list = []

    def on_frame(self, frame) -> None:
        self.frames.append(frame)


async def no_sleep(_seconds: float) -> None:
    return None


# ================================ Fixtures =================================


@pytest.fixture()
def timers():
    return FakeTimers()


@pytest.fixture()
def backend():
    return FakeBackend()


@pytest.fixture()
def image_loader():
    return FakeImageLoader()


@pytest.fixture()
def memory_store():
    return MemoryStore()


@pytest.fixture()
def observer():
    return RecordingObserver()


@pytest.fixture()
def fast_sleep():
    """Awaitable replacement for the pause between backend requests."""
    return no_sleep


@pytest.fixture()
def make_snapshot():
    """Factory: ``make_snapshot(settings={...}, daily_zmanim={...}, slide_settings=[...])``."""

    def _make(
        *,
        loaded_at: datetime | None = None,
        settings: dict[str, Any] | None = None,
        daily_zmanim: dict[str, Any] | None = None,
        **collections: list[dict[str, Any]],
    ) -> CacheSnapshot:
        data: dict[str, list[dict[str, Any]]] = dict(collections)
        if settings is not None:
            data["settings"] = [settings]
        if daily_zmanim is not None:
            data["daily_zmanim"] = [daily_zmanim]
        return CacheSnapshot(
            collections=data,
            last_load_time=loaded_at or datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc),
        )

    return _make
