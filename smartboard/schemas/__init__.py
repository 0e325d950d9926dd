from smartboard.schemas.board import (
    BackgroundPayload,
    BoardFramePayload,
    BoardPayload,
    CacheStatusPayload,
    CountdownPayload,
    CountdownRemainingPayload,
)

__all__ = [
    "BackgroundPayload",
    "BoardFramePayload",
    "BoardPayload",
    "CacheStatusPayload",
    "CountdownPayload",
    "CountdownRemainingPayload",
]
