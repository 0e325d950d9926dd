"""
REST entity backend.

Talks to the admin backend's generic entity endpoint::

    GET {base_url}/api/entities?entity=<Name>

which returns every record of the entity, either as a bare JSON list or
wrapped as ``{"data": [...]}``. Filtering and sorting happen here, on the
device. Requests are blocking, so each call runs in a worker thread and the
result comes back to the event loop.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)


def _sort_records(records: list[dict[str, Any]], sort: str | None) -> list[dict[str, Any]]:
    """Sort by ``field`` or ``-field`` (descending); records missing the field go last."""
    if not sort:
        return records
    descending = sort.startswith("-")
    field = sort.lstrip("-+")
    present = [r for r in records if r.get(field) is not None]
    missing = [r for r in records if r.get(field) is None]
    try:
        present.sort(key=lambda r: r[field], reverse=descending)
    except TypeError:
        present.sort(key=lambda r: str(r[field]), reverse=descending)
    return present + missing


def _matches(record: dict[str, Any], query: dict[str, Any]) -> bool:
    return all(record.get(key) == value for key, value in query.items())


class RestEntityBackend:
    """``EntityBackend`` over HTTP using a shared ``requests.Session``."""

    def __init__(self, base_url: str, *, timeout: float = 10.0, session: requests.Session | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.setdefault("Accept", "application/json")

    def _get_entity(self, entity: str) -> list[dict[str, Any]]:
        response = self._session.get(
            f"{self.base_url}/api/entities",
            params={"entity": entity},
            timeout=self.timeout,
        )
        response.raise_for_status()
        body = response.json()
        if isinstance(body, dict):
            body = body.get("data", body.get("items"))
        if not isinstance(body, list):
            raise ValueError(f"Unexpected response shape for entity {entity}")
        records = [record for record in body if isinstance(record, dict)]
        logger.debug("Fetched %d %s records", len(records), entity)
        return records

    async def list(self, entity: str, sort: str | None = None, limit: int | None = None) -> list[dict[str, Any]]:
        records = await asyncio.to_thread(self._get_entity, entity)
        records = _sort_records(records, sort)
        return records[:limit] if limit is not None else records

    async def filter(self, entity: str, query: dict[str, Any], sort: str | None = None) -> list[dict[str, Any]]:
        records = await asyncio.to_thread(self._get_entity, entity)
        return _sort_records([r for r in records if _matches(r, query)], sort)

    def close(self) -> None:
        self._session.close()
