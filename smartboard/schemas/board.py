from typing import Any, Literal

from pydantic import BaseModel, Field

from smartboard.domain.board import RenderFrame

RotationStateName = Literal["rotating", "suspended_for_countdown"]


class BoardPayload(BaseModel):
    """The board currently on screen."""

    board_ref: str
    name: str
    duration_ms: int = Field(ge=0)
    slide_key: str
    props: dict[str, Any] = Field(default_factory=dict)


class BackgroundPayload(BaseModel):
    current_image: str | None = None
    previous_image: str | None = None
    overlay_color: str = "#000000"
    overlay_opacity: float = Field(0.3, ge=0.0, le=1.0)
    background_opacity: float = Field(1.0, ge=0.0, le=1.0)


class CountdownRemainingPayload(BaseModel):
    minutes: int = Field(ge=0)
    seconds: int = Field(ge=0, le=59)


class CountdownPayload(BaseModel):
    active: bool = False
    remaining: CountdownRemainingPayload | None = None


class BoardFramePayload(BaseModel):
    """Payload for ``board_frame`` pushes and ``GET /api/board/state``."""

    schema_version: int = Field(default=1)

    board: BoardPayload | None = None
    index: int = Field(0, ge=0)
    count: int = Field(0, ge=0)
    background: BackgroundPayload = Field(default_factory=BackgroundPayload)
    countdown: CountdownPayload = Field(default_factory=CountdownPayload)
    font_scale: float = Field(1.0, gt=0.0)
    transition_ms: int = Field(1000, ge=0)
    loading: bool = False
    rotation_state: RotationStateName = "rotating"

    @classmethod
    def from_frame(cls, frame: RenderFrame, *, rotation_state: str = "rotating") -> "BoardFramePayload":
        return cls.model_validate({**frame.to_dict(), "rotation_state": rotation_state})


class CacheStatusPayload(BaseModel):
    """Payload for ``GET /api/board/cache``."""

    loaded: bool
    stale: bool
    loading: bool = False
    last_load_time: str | None = None
    age_seconds: float | None = None
    collections: dict[str, int] = Field(default_factory=dict)
