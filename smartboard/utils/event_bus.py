"""
Lightweight EventBus used to couple the display units.

Key invariants (enforced by call sites + tests):
  - Event topics come from enums in smartboard.enums.events (DisplayEvent).
  - Delivery is synchronous on the publishing thread (the display loop), in
    subscription order.
  - A failing subscriber is logged and never stops delivery to the others.
"""
import logging
import threading
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Iterable

from pydantic import BaseModel

from smartboard.enums.events import DisplayEvent

logger = logging.getLogger(__name__)


class EventBus:
    """
    Handles event-driven communication between display units.

    One instance per owner (not a process singleton) so tests and multiple
    runtimes never share a routing table.
    """

    def __init__(self) -> None:
        self.subscribers: Dict[Hashable, list[Callable[[Any], None]]] = defaultdict(list)
        self.lock = threading.Lock()
        self._published = 0
        self._subscriber_errors = 0

    def subscribe(self, event_name: DisplayEvent | str, callback: Callable[[Any], None]) -> Callable[[], None]:
        """
        Subscribes a callback function to an event.

        Args:
            event_name: The enum topic (preferred) or raw string.
            callback: Function to call when the event occurs.

        Returns:
            A callable that removes the subscription; calling it twice is harmless.
        """
        name = event_name.value if isinstance(event_name, Enum) else event_name
        with self.lock:
            self.subscribers[name].append(callback)

        def unsubscribe() -> None:
            with self.lock:
                callbacks = self.subscribers.get(name, [])
                try:
                    callbacks.remove(callback)
                except ValueError:
                    return

        return unsubscribe

    def publish(self, event_name: DisplayEvent | str, data: Any | None = None) -> None:
        """
        Publishes an event, calling all subscribed callback functions.

        Args:
            event_name: The enum topic (preferred) or raw string.
            data: Payload object. Pydantic models are dumped to a dict;
                dataclasses and primitives are passed through unchanged.
        """
        name = event_name.value if isinstance(event_name, Enum) else event_name

        if isinstance(data, BaseModel):
            payload: Any = data.model_dump()
        else:
            payload = data

        with self.lock:
            callbacks: Iterable[Callable[[Any], None]] = list(self.subscribers.get(name, []))
        self._published += 1
        for callback in callbacks:
            try:
                callback(payload)
            except Exception as exc:
                self._subscriber_errors += 1
                logger.error("Error in callback for event %s: %s", name, exc, exc_info=True)

    def listener(self, event_name: DisplayEvent | str) -> Callable[[Callable[[Any], None]], Callable[[Any], None]]:
        """Decorator for subscribing a function to an event at definition time."""

        def decorator(func: Callable[[Any], None]) -> Callable[[Any], None]:
            self.subscribe(event_name, func)
            return func

        return decorator

    def clear(self) -> None:
        with self.lock:
            self.subscribers.clear()

    def get_metrics(self) -> Dict[str, Any]:
        """Return lightweight metrics for health endpoints/logging."""
        with self.lock:
            subscriber_count = sum(len(values) for values in self.subscribers.values())
        return {
            "published": self._published,
            "subscriber_errors": self._subscriber_errors,
            "subscribers": subscriber_count,
        }
