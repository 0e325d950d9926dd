"""
Workers module for the display loop.

This module contains:
- display_runtime: the tick that drives cache, countdown, schedule, rotation and backgrounds
- display_cli: headless runner (``smartboard-display``)
"""

__all__ = [
    "display_runtime",
    "display_cli",
]
