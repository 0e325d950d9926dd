"""
Data Cache Store
================

Keeps a complete snapshot of every backend collection the boards need, so a
board transition never triggers a network call.

Features:
- Restores the last snapshot from durable storage at construction
- Serves stale data immediately while a background refresh runs
- Coalesces concurrent load requests into one sequential load
- Keeps the previous value of any collection that fails to load
- Re-arms a single refresh timer after every load (2 h by default)

All methods run on the display event loop; the durable write runs in a
worker thread so a slow or locked store never stalls it.
"""
from __future__ import annotations

import asyncio
import json
import logging
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Iterable

from smartboard.constants import (
    CACHE_MIN_REFRESH_DELAY_SECONDS,
    CACHE_REFRESH_INTERVAL_SECONDS,
    CACHE_REQUEST_DELAY_SECONDS,
    CACHE_RETRY_SECONDS,
    CACHE_STORAGE_KEY,
)
from smartboard.defaults import DEFAULT_COLLECTIONS, CollectionSpec
from smartboard.domain.exceptions import FetchFailure, PersistenceFailure
from smartboard.domain.snapshot import CacheSnapshot
from smartboard.enums.events import DisplayEvent
from smartboard.services.protocols import EntityBackend, KeyValueStore, TimerHandle, TimerScheduler
from smartboard.utils.event_bus import EventBus
from smartboard.utils.time import utc_now

logger = logging.getLogger(__name__)


class DataCacheStore:
    """
    Owner of the current ``CacheSnapshot``.

    Args:
        backend: Source of collection records
        storage: Durable key-value store for the persisted snapshot
        collections: Which collections to load, in load order
        refresh_interval_seconds: Age at which a snapshot counts as stale
        min_refresh_delay_seconds: Floor for the next refresh timer
        retry_seconds: Delay before retrying a cycle in which nothing loaded
        request_delay_seconds: Pause between consecutive collection requests
        timers: One-shot timer source (defaults to the running event loop)
        clock: Aware UTC "now", used for load timestamps and staleness
        today: Local calendar date, used for date-filtered collections
        sleep: Awaitable pause between requests
    """

    def __init__(
        self,
        backend: EntityBackend,
        storage: KeyValueStore,
        *,
        collections: Iterable[CollectionSpec] = DEFAULT_COLLECTIONS,
        refresh_interval_seconds: float = CACHE_REFRESH_INTERVAL_SECONDS,
        min_refresh_delay_seconds: float = CACHE_MIN_REFRESH_DELAY_SECONDS,
        retry_seconds: float = CACHE_RETRY_SECONDS,
        request_delay_seconds: float = CACHE_REQUEST_DELAY_SECONDS,
        timers: TimerScheduler | None = None,
        clock: Callable[[], datetime] = utc_now,
        today: Callable[[], date] = date.today,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        storage_key: str = CACHE_STORAGE_KEY,
    ) -> None:
        self._backend = backend
        self._storage = storage
        self._collections = tuple(collections)
        self.refresh_interval_seconds = float(refresh_interval_seconds)
        self.min_refresh_delay_seconds = float(min_refresh_delay_seconds)
        self.retry_seconds = float(retry_seconds)
        self.request_delay_seconds = float(request_delay_seconds)
        self._timers = timers
        self._clock = clock
        self._today = today
        self._sleep = sleep
        self.storage_key = storage_key

        self._bus = EventBus()
        self._refresh_handle: TimerHandle | None = None
        self._load_task: asyncio.Task | None = None
        self._waiters: list[asyncio.Future] = []
        self._closed = False
        self._load_count = 0

        self._snapshot: CacheSnapshot | None = self._restore()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    @property
    def snapshot(self) -> CacheSnapshot | None:
        return self._snapshot

    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None

    @property
    def is_loading(self) -> bool:
        return self._load_task is not None and not self._load_task.done()

    @property
    def load_count(self) -> int:
        """Number of load sequences started since construction."""
        return self._load_count

    def is_expired(self, now: datetime | None = None) -> bool:
        if self._snapshot is None:
            return True
        return self._snapshot.age_seconds(now or self._clock()) >= self.refresh_interval_seconds

    def status(self) -> dict[str, Any]:
        snapshot = self._snapshot
        now = self._clock()
        return {
            "loaded": snapshot is not None,
            "stale": self.is_expired(now),
            "loading": self.is_loading,
            "last_load_time": snapshot.last_load_time.isoformat() if snapshot else None,
            "age_seconds": round(snapshot.age_seconds(now), 3) if snapshot else None,
            "collections": {name: len(records) for name, records in snapshot.collections.items()}
            if snapshot
            else {},
        }

    def subscribe(self, callback: Callable[[CacheSnapshot], None]) -> Callable[[], None]:
        """Call ``callback(snapshot)`` after each published load; returns the unsubscriber."""
        return self._bus.subscribe(DisplayEvent.CACHE_UPDATED, callback)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        """Arm the refresh timer for a snapshot restored from storage."""
        if self._snapshot is not None:
            self.schedule_refresh()

    def close(self) -> None:
        self._closed = True
        self._cancel_refresh()
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()
        self._load_task = None
        for waiter in self._waiters:
            if not waiter.done():
                waiter.cancel()
        self._waiters.clear()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    async def ensure_loaded(self) -> CacheSnapshot:
        """
        Return a usable snapshot as soon as one exists.

        Fresh data is returned as-is. Stale data is returned immediately while
        a background load runs. With no data at all, waits for the first
        successful load (retrying on the failure delay until one succeeds).
        """
        snapshot = self._snapshot
        if snapshot is not None:
            self.schedule_refresh()
            if self.is_expired():
                logger.info("Cache snapshot is stale (age %.0fs); refreshing in background",
                            snapshot.age_seconds(self._clock()))
                self._ensure_load_task()
            return snapshot

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        self._ensure_load_task()
        return await waiter

    async def load_all(self) -> CacheSnapshot | None:
        """
        Load every collection, or join the load already in flight.

        Returns the snapshot current after the load (the previous one when the
        whole cycle failed).
        """
        task = self._ensure_load_task()
        return await asyncio.shield(task)

    async def force_refresh(self) -> CacheSnapshot | None:
        return await self.load_all()

    def schedule_refresh(self, delay: float | None = None) -> None:
        """(Re)arm the single refresh timer; ``delay`` defaults to the remaining snapshot lifetime."""
        if self._closed:
            return
        self._cancel_refresh()
        if delay is None:
            delay = self._next_refresh_delay()
        timers = self._timers or asyncio.get_running_loop()
        self._refresh_handle = timers.call_later(delay, self._on_refresh_timer)
        logger.debug("Next cache refresh in %.1fs", delay)

    def _next_refresh_delay(self) -> float:
        if self._snapshot is None:
            return self.min_refresh_delay_seconds
        remaining = self.refresh_interval_seconds - self._snapshot.age_seconds(self._clock())
        return max(remaining, self.min_refresh_delay_seconds)

    def _cancel_refresh(self) -> None:
        if self._refresh_handle is not None:
            self._refresh_handle.cancel()
            self._refresh_handle = None

    def _on_refresh_timer(self) -> None:
        self._refresh_handle = None
        if not self._closed:
            self._ensure_load_task()

    def _ensure_load_task(self) -> asyncio.Task:
        if self._load_task is not None and not self._load_task.done():
            return self._load_task
        self._load_count += 1
        task = asyncio.get_running_loop().create_task(self._run_load())
        task.add_done_callback(self._on_load_done)
        self._load_task = task
        return task

    def _on_load_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Cache load crashed: %s", exc, exc_info=exc)
            self.schedule_refresh(self.retry_seconds)

    async def _run_load(self) -> CacheSnapshot | None:
        self._cancel_refresh()
        previous = self._snapshot
        collections: dict[str, Any] = dict(previous.collections) if previous else {}
        today = self._today()
        loaded = 0

        for position, spec in enumerate(self._collections):
            if position:
                await self._sleep(self.request_delay_seconds)
            try:
                collections[spec.name] = await self._fetch(spec, today)
                loaded += 1
            except Exception as exc:
                failure = FetchFailure(spec.name, exc)
                logger.warning("%s; keeping previous value", failure)

        if loaded == 0:
            logger.error(
                "Cache load failed for all %d collections; retrying in %.0fs",
                len(self._collections),
                self.retry_seconds,
            )
            self.schedule_refresh(self.retry_seconds)
            return previous

        snapshot = CacheSnapshot(collections=collections, last_load_time=self._clock())
        self._publish(snapshot)
        await asyncio.to_thread(self._persist, snapshot)
        logger.info("Cache loaded %d/%d collections", loaded, len(self._collections))
        return snapshot

    async def _fetch(self, spec: CollectionSpec, today: date) -> list[dict[str, Any]]:
        query = spec.resolved_query(today)
        if query is None:
            records = await self._backend.list(spec.entity, sort=spec.sort, limit=spec.limit)
        else:
            records = await self._backend.filter(spec.entity, query, sort=spec.sort)
            if spec.limit is not None:
                records = records[: spec.limit]
        if not isinstance(records, list):
            raise TypeError(f"expected a list of records, got {type(records).__name__}")
        return records

    def _publish(self, snapshot: CacheSnapshot) -> None:
        self._snapshot = snapshot
        for waiter in self._waiters:
            if not waiter.done():
                waiter.set_result(snapshot)
        self._waiters.clear()
        self._bus.publish(DisplayEvent.CACHE_UPDATED, snapshot)
        self.schedule_refresh()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def _persist(self, snapshot: CacheSnapshot) -> None:
        try:
            self._storage.set(self.storage_key, json.dumps(snapshot.to_dict(), ensure_ascii=False))
        except PersistenceFailure as exc:
            logger.warning("Cache snapshot not persisted: %s", exc)
        except (TypeError, ValueError) as exc:
            logger.warning("Cache snapshot not serializable: %s", exc)

    def _restore(self) -> CacheSnapshot | None:
        try:
            raw = self._storage.get(self.storage_key)
        except PersistenceFailure as exc:
            logger.warning("Stored cache unreadable: %s", exc)
            return None
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except ValueError as exc:
            logger.warning("Stored cache is corrupt, starting cold: %s", exc)
            return None
        snapshot = CacheSnapshot.from_dict(data)
        if snapshot is None:
            logger.warning("Stored cache has an unexpected shape, starting cold")
        else:
            logger.info("Restored cache snapshot from %s", snapshot.last_load_time.isoformat())
        return snapshot
