"""
Service protocols (structural typing interfaces).

Protocols let the display units declare the *minimal* surface they depend on
without importing the concrete class, which keeps the core free of HTTP,
filesystem and Socket.IO imports and makes tests trivially fakeable.

Usage
-----
In a consumer::

    class DataCacheStore:
        def __init__(self, backend: "EntityBackend", storage: "KeyValueStore", ...): ...

At runtime ``RestEntityBackend``, ``JsonFileStore`` and an asyncio event loop
already satisfy these protocols via structural subtyping; no explicit
inheritance needed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from smartboard.domain.board import RenderFrame
    from smartboard.domain.exceptions import ImageLoadFailure


@runtime_checkable
class EntityBackend(Protocol):
    """Remote data source for the cached collections."""

    async def list(self, entity: str, sort: str | None = None, limit: int | None = None) -> list[dict[str, Any]]:
        """Return every record of ``entity``, optionally sorted (``-field`` = descending)."""
        ...

    async def filter(self, entity: str, query: dict[str, Any], sort: str | None = None) -> list[dict[str, Any]]:
        """Return records of ``entity`` whose fields equal every value in ``query``."""
        ...


@runtime_checkable
class KeyValueStore(Protocol):
    """Durable string storage, one value per key."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        """Raises ``PersistenceFailure`` when the write cannot be made durable."""
        ...


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class TimerScheduler(Protocol):
    """One-shot timers; ``asyncio.AbstractEventLoop`` satisfies this."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        ...


@runtime_checkable
class ImageLoader(Protocol):
    """Fetches background images ahead of display."""

    def is_cached(self, url: str) -> bool:
        ...

    def preload(self, url: str, on_done: Callable[[str, "ImageLoadFailure | None"], None] | None = None) -> None:
        """
        Start loading ``url``; ``on_done(url, error)`` runs on the display loop
        when the load finishes, with ``error`` None on success.
        """
        ...


@runtime_checkable
class FrameObserver(Protocol):
    """Rendering collaborator receiving every frame the runtime pushes."""

    def on_frame(self, frame: "RenderFrame") -> None:
        ...
