"""
Display core: cache, schedule evaluation, countdown, rotation and backgrounds.
"""
from smartboard.services.display.background_coordinator import (
    BackgroundCoordinator,
    configured_background_urls,
    resolve_background,
)
from smartboard.services.display.cache_store import DataCacheStore
from smartboard.services.display.countdown_monitor import CountdownMonitor, compute_countdown
from smartboard.services.display.rotation_controller import RotationController, RotationUpdate
from smartboard.services.display.schedule_evaluator import evaluate_schedule, resolve_playlist

__all__ = [
    "BackgroundCoordinator",
    "CountdownMonitor",
    "DataCacheStore",
    "RotationController",
    "RotationUpdate",
    "compute_countdown",
    "configured_background_urls",
    "evaluate_schedule",
    "resolve_background",
    "resolve_playlist",
]
