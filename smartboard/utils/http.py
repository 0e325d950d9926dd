"""JSON envelope helpers for the board control API."""
from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from flask import Response, jsonify

from smartboard.domain.exceptions import SmartBoardError
from smartboard.utils.time import iso_now

_log = logging.getLogger(__name__)

# Server-side failures never echo internals to the client
_SERVER_ERROR_MESSAGES: dict[int, str] = {
    500: "An internal error occurred",
    503: "Display runtime not ready",
}


def _envelope(ok: bool, data: Any, error: dict | None, status: int, **extra: Any) -> Response:
    response = jsonify({"ok": ok, "data": data, "error": error, **extra})
    response.status_code = status
    return response


def success_response(data: dict | list | None = None, status: int = 200) -> Response:
    return _envelope(True, data, None, status)


def error_response(message: str, status: int = 500, *, details: dict | None = None) -> Response:
    extra = {"details": details} if details else {}
    return _envelope(False, None, {"message": message, "timestamp": iso_now()}, status, **extra)


def safe_error(exc: BaseException, status: int = 500, *, context: str = "") -> Response:
    """Log ``exc`` with its traceback and answer with a generic message for ``status``."""
    _log.error("API error [%s] %s: %s", status, context, exc, exc_info=exc)
    return error_response(_SERVER_ERROR_MESSAGES.get(status, _SERVER_ERROR_MESSAGES[500]), status)


def safe_route(error_message: str = "An internal error occurred") -> Callable:
    """Map ``SmartBoardError.http_status`` onto the response; anything else is a logged 500.

    Client errors (4xx) keep the exception text and its ``detail`` dict.
    """

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Response:
            try:
                return fn(*args, **kwargs)
            except SmartBoardError as exc:
                if exc.http_status >= 500:
                    return safe_error(exc, exc.http_status, context=error_message)
                return error_response(str(exc) or error_message, exc.http_status, details=exc.detail or None)
            except Exception as exc:
                return safe_error(exc, 500, context=error_message)

        return wrapper

    return decorator
