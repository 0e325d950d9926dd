"""
Cache snapshot: a complete, immutable copy of every cached collection.

A load never edits a published snapshot; it builds the next one from the
previous collections plus whatever it fetched, then swaps the reference.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from smartboard.utils.time import coerce_datetime


def _freeze(collections: Mapping[str, Iterable[dict[str, Any]]]) -> Mapping[str, tuple[dict[str, Any], ...]]:
    return MappingProxyType({name: tuple(records) for name, records in collections.items()})


@dataclass(frozen=True)
class CacheSnapshot:
    """Collections keyed by name plus the instant the load finished (UTC)."""

    collections: Mapping[str, tuple[dict[str, Any], ...]]
    last_load_time: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "collections", _freeze(self.collections))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CacheSnapshot):
            return NotImplemented
        return self.last_load_time == other.last_load_time and dict(self.collections) == dict(other.collections)

    def get(self, name: str) -> tuple[dict[str, Any], ...]:
        """Records of a collection; empty when it was never loaded."""
        return self.collections.get(name, ())

    def first(self, name: str) -> dict[str, Any] | None:
        records = self.get(name)
        return records[0] if records else None

    def has(self, name: str) -> bool:
        return name in self.collections

    def age_seconds(self, now: datetime) -> float:
        return (now - self.last_load_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible form used for durable storage."""
        return {
            "collections": {name: list(records) for name, records in self.collections.items()},
            "last_load_time": self.last_load_time.isoformat(),
        }

    @staticmethod
    def from_dict(data: Any) -> "CacheSnapshot" | None:
        """Rebuild a stored snapshot; None when the payload is unusable."""
        if not isinstance(data, dict):
            return None
        loaded_at = coerce_datetime(data.get("last_load_time"))
        collections = data.get("collections")
        if loaded_at is None or not isinstance(collections, dict):
            return None
        cleaned: dict[str, list[dict[str, Any]]] = {}
        for name, records in collections.items():
            if isinstance(records, list):
                cleaned[str(name)] = [r for r in records if isinstance(r, dict)]
        return CacheSnapshot(collections=cleaned, last_load_time=loaded_at)
