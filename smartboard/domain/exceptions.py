"""Centralized exception hierarchy for the SmartBoard display core.

All display failures inherit from :class:`SmartBoardError` so that the few
places allowed to catch broadly (source boundaries, the control API) can do
so with a single clause, while the failure sites themselves raise the
specific subclass.

None of these ever reach the render path: each is caught where the I/O
happens and turned into "keep the last good state".

Hierarchy
---------
::

    SmartBoardError (base, maps to 500)
    ├── ValidationError           (400, bad control-API input)
    ├── NotFoundError             (404, no such board in the rotation)
    ├── FetchFailure              (502, one backend collection failed)
    ├── PersistenceFailure        (500, durable storage unavailable)
    ├── ImageLoadFailure          (502, background asset could not load)
    ├── ScheduleMisconfiguration  (400, unparsable playlist entry field)
    └── RuntimeUnavailable        (503, display loop not running)
"""

from __future__ import annotations


class SmartBoardError(Exception):
    """Base exception for all SmartBoard errors.

    Parameters
    ----------
    message:
        Human-readable description (logged server-side).
    detail:
        Optional machine-readable context dict for structured logging.
    """

    http_status: int = 500

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


class ValidationError(SmartBoardError):
    """Caller supplied invalid input (HTTP 400)."""

    http_status: int = 400


class NotFoundError(SmartBoardError):
    """Requested board is not part of the current rotation (HTTP 404)."""

    http_status: int = 404


class FetchFailure(SmartBoardError):
    """A single collection failed during a cache load."""

    http_status: int = 502

    def __init__(self, collection: str, cause: BaseException | None = None) -> None:
        super().__init__(f"Failed to fetch collection '{collection}': {cause}", detail={"collection": collection})
        self.collection = collection
        self.cause = cause


class PersistenceFailure(SmartBoardError):
    """Durable key-value storage is unavailable, full or denied."""

    http_status: int = 500


class ImageLoadFailure(SmartBoardError):
    """A background image could not be downloaded or decoded."""

    http_status: int = 502

    def __init__(self, url: str, cause: BaseException | None = None) -> None:
        super().__init__(f"Failed to load background image {url}: {cause}", detail={"url": url})
        self.url = url
        self.cause = cause


class ScheduleMisconfiguration(SmartBoardError):
    """A playlist entry carries an unparsable time window or duration."""

    http_status: int = 400


class RuntimeUnavailable(SmartBoardError):
    """The display loop is not running in this process."""

    http_status: int = 503
