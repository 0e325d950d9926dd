"""
Configuration for the SmartBoard display core
=============================================
Runtime settings for the rotation surface, the data cache and the control API.
Defaults are tuned for small unattended displays (tablets, TV sticks, Raspberry Pi):
long cache refresh, slow retry, no remote default images.
Setups the logging configuration as well.
"""

import os
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number.") from None


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    environment: str = field(default_factory=lambda: os.getenv("SMARTBOARD_ENV", "development"))
    secret_key: str = field(default_factory=lambda: os.getenv("SMARTBOARD_SECRET_KEY", "SmartBoardDevSecretKey"))
    DEBUG: bool = field(default_factory=lambda: _env_bool("SMARTBOARD_DEBUG", False))
    log_level: str = field(default_factory=lambda: os.getenv("SMARTBOARD_LOG_LEVEL", "INFO"))
    log_dir: str = field(default_factory=lambda: os.getenv("SMARTBOARD_LOG_DIR", "logs"))

    # Web surface
    host: str = field(default_factory=lambda: os.getenv("SMARTBOARD_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env_int("SMARTBOARD_PORT", 8000))
    socketio_cors_origins: str = field(default_factory=lambda: os.getenv("SMARTBOARD_SOCKETIO_CORS", "*"))

    # Backend data access
    backend_base_url: str = field(default_factory=lambda: os.getenv("SMARTBOARD_BACKEND_URL", "http://localhost:3000"))
    backend_timeout_seconds: float = field(default_factory=lambda: _env_float("SMARTBOARD_BACKEND_TIMEOUT", 10.0))

    # Durable storage (snapshot survives restarts)
    storage_dir: str = field(default_factory=lambda: os.getenv("SMARTBOARD_STORAGE_DIR", "var"))

    # Data cache
    cache_refresh_interval_seconds: int = field(
        default_factory=lambda: _env_int("SMARTBOARD_CACHE_REFRESH_SECONDS", 2 * 60 * 60)
    )
    cache_min_refresh_delay_seconds: int = field(
        default_factory=lambda: _env_int("SMARTBOARD_CACHE_MIN_REFRESH_DELAY", 5)
    )
    cache_retry_seconds: int = field(default_factory=lambda: _env_int("SMARTBOARD_CACHE_RETRY_SECONDS", 60))
    cache_request_delay_seconds: float = field(
        default_factory=lambda: _env_float("SMARTBOARD_CACHE_REQUEST_DELAY", 0.15)
    )

    # Rotation surface
    tick_seconds: float = field(default_factory=lambda: _env_float("SMARTBOARD_TICK_SECONDS", 1.0))
    crossfade_ms: int = field(default_factory=lambda: _env_int("SMARTBOARD_CROSSFADE_MS", 800))
    timezone: str | None = field(default_factory=lambda: os.getenv("SMARTBOARD_TIMEZONE") or None)

    # Background images
    image_cache_size: int = field(default_factory=lambda: _env_int("SMARTBOARD_IMAGE_CACHE_SIZE", 32))
    image_cache_ttl_seconds: int = field(
        default_factory=lambda: _env_int("SMARTBOARD_IMAGE_CACHE_TTL", 6 * 60 * 60)
    )

    _DEFAULT_SECRET_KEY: str = field(default="SmartBoardDevSecretKey", init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.environment == "production" and self.secret_key == self._DEFAULT_SECRET_KEY:
            raise RuntimeError(
                "SECURITY ERROR: Cannot use default secret key in production!\n"
                "Set SMARTBOARD_SECRET_KEY environment variable to a secure random value."
            )

    def as_flask_config(self) -> dict[str, Any]:
        """Render configuration values for Flask application."""
        return {
            "ENV": self.environment,
            "SECRET_KEY": self.secret_key,
            "DEBUG": self.DEBUG,
            "STORAGE_DIR": self.storage_dir,
            "BACKEND_BASE_URL": self.backend_base_url,
        }


def validate_config(config: AppConfig) -> list[str]:
    """Return human-readable warnings for questionable settings."""
    warnings: list[str] = []

    if config.cache_refresh_interval_seconds < 60:
        warnings.append(
            f"cache_refresh_interval_seconds={config.cache_refresh_interval_seconds} "
            "refetches every collection more than once a minute"
        )
    if config.cache_min_refresh_delay_seconds <= 0:
        warnings.append("cache_min_refresh_delay_seconds must be positive; refresh timer may thrash")
    if config.tick_seconds <= 0 or config.tick_seconds > 1:
        warnings.append(f"tick_seconds={config.tick_seconds} breaks the per-second countdown display")
    if config.timezone:
        try:
            from zoneinfo import ZoneInfo

            ZoneInfo(config.timezone)
        except Exception:
            warnings.append(f"Unknown timezone: {config.timezone}")

    storage = Path(config.storage_dir)
    if storage.exists() and not storage.is_dir():
        warnings.append(f"Storage path is not a directory: {config.storage_dir}")

    return warnings


def setup_logging(debug: bool = False, log_dir: str = "logs") -> None:
    """Setup logging configuration."""
    import logging
    import sys
    from logging.handlers import RotatingFileHandler

    log_level = logging.DEBUG if debug else logging.INFO

    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid duplicate handlers when create_app is called multiple times
    has_console = any(getattr(h, "name", "") == "smartboard_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "smartboard_file" for h in root.handlers)
    added_handler = False

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "smartboard_console"
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if not has_file:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "smartboard.log"),
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = "smartboard_file"
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    for handler in root.handlers:
        if getattr(handler, "name", "") in {"smartboard_console", "smartboard_file"}:
            handler.setLevel(log_level)

    if added_handler:
        root.info(f"Logging initialized at level: {logging.getLevelName(log_level)}")

    # Socket.IO polling logs every few seconds; too much I/O for SD cards
    if _env_bool("SMARTBOARD_SILENCE_SOCKETIO", True):
        logging.getLogger("werkzeug").setLevel(logging.WARNING)
        logging.getLogger("socketio").setLevel(logging.WARNING)
        logging.getLogger("engineio").setLevel(logging.WARNING)


def load_config() -> AppConfig:
    """Helper for callers to load and validate configuration."""
    import logging

    config = AppConfig()
    logger = logging.getLogger("config_loader")
    for warning in validate_config(config):
        logger.warning("Configuration: %s", warning)
    return config
