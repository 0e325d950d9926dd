from __future__ import annotations

import atexit
import contextlib
import logging
import signal
import threading
from typing import Any

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from smartboard.config import load_config, setup_logging
from smartboard.extensions import init_extensions, socketio


def create_app(
    config_overrides: dict[str, Any] | None = None,
    *,
    container=None,
    bootstrap_runtime: bool = False,
) -> Flask:
    """Build the display control app.

    Args:
        config_overrides: AppConfig field overrides keyed by field name
        container: Prebuilt DisplayContainer (tests pass a stub)
        bootstrap_runtime: Start the display loop thread and push frames over Socket.IO
    """
    config = load_config()
    if config_overrides:
        for key, value in config_overrides.items():
            setattr(config, key if hasattr(config, key) else key.lower(), value)

    setup_logging(debug=config.DEBUG, log_dir=config.log_dir)

    flask_app = Flask(__name__)
    flask_app.config.update(config.as_flask_config())
    flask_app.config["JSON_AS_ASCII"] = False

    init_extensions(flask_app, config.socketio_cors_origins)

    if container is None:
        from smartboard.services.container import DisplayContainer

        container = DisplayContainer.build(config)
    flask_app.config["CONTAINER"] = container

    # ── Graceful shutdown handlers ──────────────────────────────────
    _shutdown_lock = threading.Lock()
    _shutdown_done = False

    def _graceful_shutdown(reason: str = "unknown") -> None:
        nonlocal _shutdown_done
        with _shutdown_lock:
            if _shutdown_done:
                return
            _shutdown_done = True
        logging.info("Graceful shutdown initiated (%s)", reason)
        try:
            container.shutdown()
        except Exception as exc:
            logging.warning("Error during graceful shutdown: %s", exc)

    def _signal_handler(signum: int, _frame: object) -> None:
        sig_name = signal.Signals(signum).name
        logging.info("Received %s — shutting down", sig_name)
        _graceful_shutdown(sig_name)
        raise SystemExit(0)

    if bootstrap_runtime:
        atexit.register(_graceful_shutdown, "atexit")
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(OSError, ValueError):
                signal.signal(sig, _signal_handler)

    # Domain exceptions carry their own ``http_status``
    @flask_app.errorhandler(Exception)
    def _handle_unhandled(exc):
        if not request.path.startswith("/api/"):
            raise exc
        from smartboard.domain.exceptions import SmartBoardError
        from smartboard.utils.http import error_response, safe_error

        if isinstance(exc, HTTPException):
            status = int(exc.code or 500)
            if status >= 500:
                return safe_error(exc, status, context="http-exception")
            return error_response(exc.description or "Request failed", status)
        if isinstance(exc, SmartBoardError):
            status = exc.http_status
            if status >= 500:
                return safe_error(exc, status, context=type(exc).__name__)
            return error_response(str(exc) or "Request failed", status)
        return safe_error(exc, 500, context="unhandled")

    from smartboard.blueprints.api.board import board_api

    flask_app.register_blueprint(board_api, url_prefix="/api/board")

    for bp_name in flask_app.blueprints:
        logging.info(f" Registered blueprint: {bp_name}")

    if bootstrap_runtime:
        from smartboard.utils.emitters import BoardEmitter

        emitter = BoardEmitter(socketio, rotation_state=lambda: container.runtime.rotation_state.value)
        container.start(observers=(emitter,))
    else:
        logging.info("Skipping display runtime bootstrap (bootstrap_runtime=False)")

    logging.getLogger(__name__).info("SmartBoard display application initialized successfully.")
    return flask_app


__all__ = ["create_app", "socketio"]
