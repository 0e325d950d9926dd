"""Board Control API
==================

Read the current frame, drive the rotation by hand and manage the cache.

Routes:
    GET    /api/board/state               — Current render frame
    POST   /api/board/next                — Advance one board
    POST   /api/board/previous            — Go back one board
    POST   /api/board/jump/<slide_key>    — Show a specific board
    GET    /api/board/cache               — Cache status
    POST   /api/board/cache/refresh       — Reload every collection
    POST   /api/board/preview             — Show an unsaved playlist
    DELETE /api/board/preview             — Back to the stored playlist
    GET    /api/board/ping                — Liveness
"""

from __future__ import annotations

import asyncio
import logging

from flask import Blueprint, Response, current_app, request

from smartboard.domain.exceptions import RuntimeUnavailable, ValidationError
from smartboard.schemas.board import BoardFramePayload, CacheStatusPayload
from smartboard.utils.http import error_response, safe_route, success_response
from smartboard.utils.time import iso_now

logger = logging.getLogger(__name__)

board_api = Blueprint("board_api", __name__)


def _get_container():
    container = current_app.config.get("CONTAINER")
    if container is None or container.runtime is None:
        raise RuntimeUnavailable("Display runtime not started")
    return container


def _frame_payload(container) -> dict:
    runtime = container.runtime
    frame = runtime.latest_frame or container.call(runtime.build_frame)
    payload = BoardFramePayload.from_frame(frame, rotation_state=runtime.rotation_state.value)
    return payload.model_dump()


def _manual(action, *args) -> Response:
    container = _get_container()
    moved = container.call(action(container.runtime), *args)
    if not moved:
        return error_response("Rotation is paused for the countdown or has no boards", 409)
    return success_response(_frame_payload(container))


@board_api.get("/state")
@safe_route("Failed to read board state")
def get_state() -> Response:
    return success_response(_frame_payload(_get_container()))


@board_api.post("/next")
@safe_route("Failed to advance board")
def next_board() -> Response:
    return _manual(lambda runtime: runtime.next)


@board_api.post("/previous")
@safe_route("Failed to go back a board")
def previous_board() -> Response:
    return _manual(lambda runtime: runtime.previous)


@board_api.post("/jump/<slide_key>")
@safe_route("Failed to jump to board")
def jump_to_board(slide_key: str) -> Response:
    """Show the first board whose slide key matches; 404 when none is in rotation."""
    return _manual(lambda runtime: runtime.jump_to, slide_key)


@board_api.get("/cache")
@safe_route("Failed to read cache status")
def cache_status() -> Response:
    container = _get_container()
    status = container.call(container.runtime.cache.status)
    return success_response(CacheStatusPayload(**status).model_dump())


@board_api.post("/cache/refresh")
@safe_route("Failed to refresh cache")
def refresh_cache() -> Response:
    """Reload every collection.

    Query parameters:
        wait (bool, optional) — block until the load finishes (default false)
    """
    container = _get_container()
    cache = container.runtime.cache
    wait = request.args.get("wait", "false").lower() in {"1", "true", "yes"}
    if wait:
        container.run(cache.force_refresh(), timeout=120.0)
        status = container.call(cache.status)
        return success_response(CacheStatusPayload(**status).model_dump())
    asyncio.run_coroutine_threadsafe(cache.force_refresh(), container.loop)
    return success_response({"refreshing": True}, 202)


@board_api.post("/preview")
@safe_route("Failed to apply preview playlist")
def set_preview() -> Response:
    """Body: ``{"entries": [<BoardSchedule record>, ...]}``"""
    body = request.get_json(silent=True) or {}
    entries = body.get("entries")
    if not isinstance(entries, list) or not entries:
        raise ValidationError("'entries' must be a non-empty list")
    container = _get_container()
    container.call(container.runtime.set_preview, entries)
    return success_response(_frame_payload(container))


@board_api.delete("/preview")
@safe_route("Failed to clear preview playlist")
def clear_preview() -> Response:
    container = _get_container()
    container.call(container.runtime.set_preview, None)
    return success_response(_frame_payload(container))


@board_api.get("/ping")
def ping() -> Response:
    return success_response({"status": "ok", "timestamp": iso_now()})
