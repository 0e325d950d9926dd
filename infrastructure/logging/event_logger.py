# infrastructure/logging/event_logger.py
import logging

from smartboard.enums.events import DisplayEvent

logger = logging.getLogger("smartboard.transitions")


class DisplayEventLogger:
    """Listens for display events and writes one log line per transition."""

    def __init__(self, cache, countdown, rotation, background=None):
        self._unsubscribers = [
            cache.subscribe(self.log_cache_updated),
            countdown.subscribe(DisplayEvent.COUNTDOWN_ENTERED, self.log_countdown_entered),
            countdown.subscribe(DisplayEvent.COUNTDOWN_EXITED, self.log_countdown_exited),
            rotation.subscribe(self.log_board_changed),
        ]
        if background is not None:
            self._unsubscribers.append(background.subscribe(self.log_background_changed))

    def log_cache_updated(self, snapshot):
        try:
            sizes = ", ".join(f"{name}={len(records)}" for name, records in snapshot.collections.items())
            logger.info(f"🔄 Cache refreshed at {snapshot.last_load_time.isoformat()} ({sizes})")
        except AttributeError:
            logger.info("🔄 Cache refreshed")

    def log_countdown_entered(self, state):
        remaining = state.remaining
        if remaining is not None:
            logger.info(f"⏳ Sunrise countdown started: {remaining.minutes:02d}:{remaining.seconds:02d} left")
        else:
            logger.info("⏳ Sunrise countdown started")

    def log_countdown_exited(self, state):
        logger.info("🌅 Sunrise countdown finished; rotation resumes")

    def log_board_changed(self, update):
        if update.board is None:
            logger.info("⏸️ No eligible boards; display idle")
            return
        logger.info(
            f"📺 Board → {update.board.slide_key} '{update.board.name}' "
            f"({update.index + 1}/{len(update.boards)}, {update.state.value})"
        )

    def log_background_changed(self, layers):
        logger.debug(f"🖼️ Background → {layers.current_image or 'gradient'}")

    def close(self):
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
