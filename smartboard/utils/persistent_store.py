"""Small persistent key-value stores for the display's durable cache.

``JsonFileStore`` keeps one file per key under a ``var/`` style directory,
written with an advisory lock and an atomic replace so a crash mid-write
never leaves a truncated file behind. ``MemoryStore`` is the in-process
equivalent used by tests and by ``--no-persist`` runs.
"""
from __future__ import annotations

import logging
import os
import re
import threading
import time

from smartboard.domain.exceptions import PersistenceFailure

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class FileLock:
    """Simple file-lock using a lockfile (cross-platform, advisory).

    Note: This is a lightweight lock suitable for single-writer or low-contention
    scenarios on a display device. It uses atomic creation of a .lock file and
    retries until timeout. A lock file older than ``stale_after`` seconds is
    left over from a process that died while holding it and is removed.
    """

    def __init__(
        self, lock_path: str, timeout: float = 5.0, retry: float = 0.05, stale_after: float = 30.0
    ) -> None:
        self.lock_path = lock_path
        self.timeout = float(timeout)
        self.retry = float(retry)
        self.stale_after = float(stale_after)
        self._acquired = False

    def acquire(self) -> bool:
        start = time.monotonic()
        while True:
            try:
                fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
                os.close(fd)
                self._acquired = True
                return True
            except FileExistsError:
                if self._break_if_stale():
                    continue
                if (time.monotonic() - start) >= self.timeout:
                    return False
                time.sleep(self.retry)

    def _break_if_stale(self) -> bool:
        try:
            age = time.time() - os.path.getmtime(self.lock_path)
        except FileNotFoundError:
            return True
        if age < self.stale_after:
            return False
        logger.warning("Removing stale lock file %s (%.0fs old)", self.lock_path, age)
        try:
            os.unlink(self.lock_path)
        except FileNotFoundError:
            pass
        return True

    def release(self) -> None:
        try:
            if self._acquired and os.path.exists(self.lock_path):
                os.unlink(self.lock_path)
        finally:
            self._acquired = False

    def __enter__(self):
        if not self.acquire():
            raise TimeoutError(f"Failed to acquire file lock: {self.lock_path}")
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()


class JsonFileStore:
    """Key-value store writing each key to ``<directory>/<safe key>.json``."""

    def __init__(self, directory: str, *, lock_timeout: float = 5.0, stale_lock_seconds: float = 30.0) -> None:
        self.directory = directory
        self.lock_timeout = lock_timeout
        self.stale_lock_seconds = stale_lock_seconds
        os.makedirs(directory, exist_ok=True)

    def path_for(self, key: str) -> str:
        safe = _UNSAFE_CHARS.sub("_", key).strip("_") or "default"
        return os.path.join(self.directory, f"{safe}.json")

    def get(self, key: str) -> str | None:
        """Stored text for ``key``; None when absent or unreadable."""
        path = self.path_for(key)
        if not os.path.exists(path):
            return None
        try:
            with FileLock(path + ".lock", timeout=self.lock_timeout, stale_after=self.stale_lock_seconds):
                with open(path, "r", encoding="utf-8") as fh:
                    return fh.read()
        except (OSError, TimeoutError) as e:
            logger.warning("Failed to read store key %s: %s", key, e)
            return None

    def set(self, key: str, value: str) -> None:
        """
        Replace the stored text for ``key``.

        Raises:
            PersistenceFailure: the directory is missing, full or not writable,
                or the lock could not be taken.
        """
        path = self.path_for(key)
        tmp = path + ".tmp"
        try:
            with FileLock(path + ".lock", timeout=self.lock_timeout, stale_after=self.stale_lock_seconds):
                with open(tmp, "w", encoding="utf-8") as fh:
                    fh.write(value)
                os.replace(tmp, path)
        except (OSError, TimeoutError) as e:
            raise PersistenceFailure(f"Failed to write store key {key}: {e}", detail={"key": key}) from e


class MemoryStore:
    """Process-local store with the same contract as ``JsonFileStore``."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
