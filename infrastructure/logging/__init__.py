from infrastructure.logging.event_logger import DisplayEventLogger

__all__ = ["DisplayEventLogger"]
