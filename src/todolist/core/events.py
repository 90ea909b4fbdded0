# src/todolist/core/events.py

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

E = TypeVar("E")

Listener = Callable[[E], None]


class EventBus(Generic[E]):
    """
    Minimal synchronous publish/subscribe channel.

    - listeners are called in subscription order, on the publisher's thread
    - a failing listener is logged and skipped; it never breaks the publisher
    """

    def __init__(self, name: str = "events") -> None:
        self._name = name
        self._listeners: list[Listener[E]] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener[E]) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(listener)

        return _unsubscribe

    def unsubscribe(self, listener: Listener[E]) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def publish(self, event: E) -> None:
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("%s listener failed event=%r", self._name, event)

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)
