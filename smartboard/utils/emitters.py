"""
WebSocket Emitters
=====================================

Purpose:
    Push render frames to browser displays over Socket.IO.

Usage:
    Instantiate BoardEmitter with the app's SocketIO instance and register it
    as a frame observer on the display runtime. Every frame the runtime pushes
    is validated into a ``BoardFramePayload`` and broadcast on ``/board``.
"""

import logging
from typing import Callable

from flask_socketio import SocketIO

from smartboard.domain.board import RenderFrame
from smartboard.enums.events import WebSocketEvent
from smartboard.schemas.board import BoardFramePayload

logger = logging.getLogger("emitters")

WS_EVENT_BOARD_FRAME = WebSocketEvent.BOARD_FRAME.value

SOCKETIO_NAMESPACE_BOARD = "/board"


class BoardEmitter:
    """
    Frame observer that broadcasts each frame to connected displays.

    Attributes:
        sio: The Socket.IO SocketIO instance for emitting events.
        rotation_state: Optional zero-arg callable giving the current rotation
            state name, included in every payload.
    """

    def __init__(
        self,
        sio: SocketIO,
        *,
        namespace: str = SOCKETIO_NAMESPACE_BOARD,
        rotation_state: Callable[[], str] | None = None,
    ):
        self.sio = sio
        self.namespace = namespace
        self._rotation_state = rotation_state
        self._last_board_key: str | None = None

    def emit(self, event: str, payload: dict, room: str | None = None) -> None:
        try:
            self.sio.emit(event, payload, room=room, namespace=self.namespace)
        except Exception as e:
            logger.exception("[Emitter] Failed to emit event '%s' to room '%s': %s", event, room, e)

    def on_frame(self, frame: RenderFrame) -> None:
        state = self._rotation_state() if self._rotation_state else "rotating"
        payload = BoardFramePayload.from_frame(frame, rotation_state=state)
        board_key = frame.board.slide_key if frame.board else None
        if board_key != self._last_board_key:
            logger.debug("Emitting board '%s' to namespace '%s'", board_key, self.namespace)
            self._last_board_key = board_key
        self.emit(WS_EVENT_BOARD_FRAME, payload.model_dump())
