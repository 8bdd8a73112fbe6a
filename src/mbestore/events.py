"""Domain events emitted after successful branch operations."""

import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

BRANCHES_CREATED = "branches-created"
BRANCHES_UPDATED = "branches-updated"
BRANCHES_DELETED = "branches-deleted"

Listener = Callable[[Any], None]


class EventEmitter:
    """Fire-and-forget event emitter.

    Listeners run synchronously in registration order. A failing listener is
    logged and never affects the operation that emitted the event.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {}

    def on(self, event: str, listener: Listener) -> None:
        """Register a listener for an event name."""
        self._listeners.setdefault(event, []).append(listener)

    def off(self, event: str, listener: Listener) -> None:
        """Remove a listener; unknown listeners are ignored."""
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def listeners(self, event: str) -> List[Listener]:
        return list(self._listeners.get(event, []))

    def emit(self, event: str, payload: Any) -> None:
        """Call every listener registered for ``event`` with ``payload``."""
        for listener in self.listeners(event):
            try:
                listener(payload)
            except Exception as e:
                logger.error(f"Listener for {event} failed: {e}")
