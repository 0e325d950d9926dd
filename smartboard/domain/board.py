"""
Derived display values: board instances, countdown state, background layers
and the frame pushed to rendering collaborators.

All of these are rebuilt, never edited in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from smartboard.constants import (
    COUNTDOWN_SLIDE_KEY,
    DEFAULT_BACKGROUND_OPACITY,
    DEFAULT_OVERLAY_COLOR,
    DEFAULT_OVERLAY_OPACITY,
)
from smartboard.enums.board import BoardKind


@dataclass(frozen=True)
class BoardInstance:
    """One displayable board produced by the schedule evaluator."""

    board_ref: BoardKind
    name: str
    duration_ms: int
    slide_key: str
    props: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.props, MappingProxyType):
            object.__setattr__(self, "props", MappingProxyType(dict(self.props)))

    @property
    def is_countdown(self) -> bool:
        return self.slide_key == COUNTDOWN_SLIDE_KEY

    def same_slot(self, other: "BoardInstance" | None) -> bool:
        """Same board in the rotation, ignoring refreshed props."""
        return (
            other is not None
            and other.slide_key == self.slide_key
            and other.name == self.name
            and other.duration_ms == self.duration_ms
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "board_ref": self.board_ref.value,
            "name": self.name,
            "duration_ms": self.duration_ms,
            "slide_key": self.slide_key,
            "props": dict(self.props),
        }


@dataclass(frozen=True)
class CountdownRemaining:
    minutes: int
    seconds: int

    @property
    def total_seconds(self) -> int:
        return self.minutes * 60 + self.seconds

    def to_dict(self) -> dict[str, int]:
        return {"minutes": self.minutes, "seconds": self.seconds}


@dataclass(frozen=True)
class CountdownState:
    active: bool = False
    remaining: CountdownRemaining | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "active": self.active,
            "remaining": self.remaining.to_dict() if self.remaining else None,
        }


INACTIVE_COUNTDOWN = CountdownState()


@dataclass(frozen=True)
class BackgroundResolution:
    """What the background for a given board should look like."""

    image_url: str | None = None
    overlay_color: str = DEFAULT_OVERLAY_COLOR
    overlay_opacity: float = DEFAULT_OVERLAY_OPACITY
    background_opacity: float = DEFAULT_BACKGROUND_OPACITY


@dataclass(frozen=True)
class BackgroundLayers:
    """
    What is actually painted right now.

    ``previous_image`` is only set during a crossfade; ``current_image`` None
    means the static gradient shows through.
    """

    current_image: str | None = None
    previous_image: str | None = None
    overlay_color: str = DEFAULT_OVERLAY_COLOR
    overlay_opacity: float = DEFAULT_OVERLAY_OPACITY
    background_opacity: float = DEFAULT_BACKGROUND_OPACITY

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_image": self.current_image,
            "previous_image": self.previous_image,
            "overlay_color": self.overlay_color,
            "overlay_opacity": self.overlay_opacity,
            "background_opacity": self.background_opacity,
        }


@dataclass(frozen=True)
class RenderFrame:
    """One push to the rendering collaborator."""

    board: BoardInstance | None
    index: int
    count: int
    background: BackgroundLayers
    countdown: CountdownState = INACTIVE_COUNTDOWN
    font_scale: float = 1.0
    transition_ms: int = 1000
    loading: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "board": self.board.to_dict() if self.board else None,
            "index": self.index,
            "count": self.count,
            "background": self.background.to_dict(),
            "countdown": self.countdown.to_dict(),
            "font_scale": self.font_scale,
            "transition_ms": self.transition_ms,
            "loading": self.loading,
        }
