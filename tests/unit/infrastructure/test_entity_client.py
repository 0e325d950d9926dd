import asyncio

import pytest
import requests

from infrastructure.backend.entity_client import RestEntityBackend


class FakeResponse:
    def __init__(self, body, status_code=200, headers=None, content=b""):
        self._body = body
        self.status_code = status_code
        self.headers = headers or {}
        self.content = content

    def json(self):
        return self._body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, responses):
        self.responses = responses
        self.headers = {}
        self.requests = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.requests.append({"url": url, "params": params, "timeout": timeout})
        entity = (params or {}).get("entity")
        return self.responses.get(entity) or self.responses[url]

    def close(self):
        self.closed = True


HALACHOT = [
    {"title": "b", "order": 2, "active": True},
    {"title": "none", "active": True},
    {"title": "a", "order": 1, "active": True},
    {"title": "off", "order": 0, "active": False},
]


def test_list_sorts_and_limits():
    session = FakeSession({"Halacha": FakeResponse(HALACHOT)})
    backend = RestEntityBackend("http://admin.local/", timeout=3, session=session)

    records = asyncio.run(backend.list("Halacha", sort="order", limit=3))

    assert [r["title"] for r in records] == ["off", "a", "b"]
    assert session.requests[0] == {
        "url": "http://admin.local/api/entities",
        "params": {"entity": "Halacha"},
        "timeout": 3,
    }
    assert session.headers["Accept"] == "application/json"


def test_filter_matches_query_and_sorts_descending():
    session = FakeSession({"Halacha": FakeResponse({"data": HALACHOT})})
    backend = RestEntityBackend("http://admin.local", session=session)

    records = asyncio.run(backend.filter("Halacha", {"active": True}, sort="-order"))

    assert [r["title"] for r in records] == ["b", "a", "none"]


def test_http_error_propagates():
    session = FakeSession({"Settings": FakeResponse([], status_code=503)})
    backend = RestEntityBackend("http://admin.local", session=session)

    with pytest.raises(requests.HTTPError):
        asyncio.run(backend.list("Settings"))


def test_unexpected_shape_is_rejected():
    session = FakeSession({"Settings": FakeResponse({"error": "nope"})})
    backend = RestEntityBackend("http://admin.local", session=session)

    with pytest.raises(ValueError):
        asyncio.run(backend.list("Settings"))


def test_close_closes_session():
    session = FakeSession({})
    RestEntityBackend("http://admin.local", session=session).close()

    assert session.closed
