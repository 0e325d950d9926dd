"""
Display constants shared across the rotation core.
"""

# Durable storage key for the cached snapshot (bump the suffix on format changes)
CACHE_STORAGE_KEY = "smartboard:dataCache:v2"

# Cache refresh cadence
CACHE_REFRESH_INTERVAL_SECONDS = 2 * 60 * 60
CACHE_MIN_REFRESH_DELAY_SECONDS = 5
CACHE_RETRY_SECONDS = 60
CACHE_REQUEST_DELAY_SECONDS = 0.15

# Shabbat handover window: Friday from 08:00, Saturday through 20:59.
# Literal thresholds, not derived from candle lighting or nightfall.
FRIDAY_CUTOFF_HOUR = 8
SATURDAY_CUTOFF_HOUR = 20

# Countdown windows (minutes before sunrise)
WEEKDAY_COUNTDOWN_MINUTES = 40
SHABBAT_COUNTDOWN_MINUTES = 70

# Countdown board
COUNTDOWN_SLIDE_KEY = "Countdown"
COUNTDOWN_BOARD_NAME = "ספירה לאחור"

# Background layers
CROSSFADE_MS = 800
UPCOMING_PRELOAD_COUNT = 2
DEFAULT_OVERLAY_COLOR = "#000000"
DEFAULT_OVERLAY_OPACITY = 0.3
DEFAULT_BACKGROUND_OPACITY = 1.0

# Schedule entries
DEFAULT_DURATION_SECONDS = 10

# Presentation scalars
DEFAULT_FONT_SIZE_PERCENT = 100
DEFAULT_TRANSITION_SECONDS = 1.0

# Runtime tick
TICK_SECONDS = 1.0
