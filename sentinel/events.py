"""
Sentinel Event Bus — in-process publish-subscribe.

Everything that a display layer re-renders on goes through here: the
per-second code batch, slot-state changes and user notifications.

Event types:
  codes.updated          — a full batch of freshly generated codes
  vault.slot_committed   — a single slot was saved
  vault.pasted           — a paste filled one or more slots
  vault.paste_expired    — the just-pasted highlight window ended
  selection.changed      — the selected identity changed
  notify                 — a user-facing notification

Envelope format:
  {
    "timestamp": "ISO 8601",
    "type": "<event_type>",
    "source": "<producing component>",
    "payload": {...}
  }

Usage:
    from sentinel.events import EventBus

    bus = EventBus()
    unsubscribe = bus.subscribe("codes.updated", lambda event: print(event["payload"]))
    bus.publish("codes.updated", {"codes": {...}}, source="ticker")
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

# Subscribe to this to receive every event
ALL_EVENTS = "*"

# Notification levels
SUCCESS = "success"
INFO = "info"
REMINDER = "reminder"

Handler = Callable[[dict[str, Any]], None]


def _make_envelope(event_type: str, payload: dict[str, Any], *, source: str) -> dict[str, Any]:
    """Create a standardized event envelope."""
    return {
        "timestamp": datetime.now(UTC).isoformat(),
        "type": event_type,
        "source": source,
        "payload": payload,
    }


class EventBus:
    """Synchronous fan-out of events to registered handlers."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: Handler) -> Callable[[], None]:
        """Register ``handler`` for ``event_type`` (or ALL_EVENTS).

        Returns a callable that removes the subscription.
        """
        self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(
        self,
        event_type: str,
        payload: dict[str, Any] | None = None,
        *,
        source: str = "unknown",
    ) -> dict[str, Any]:
        """Deliver an event to its subscribers and return the envelope.

        Never raises — handler failures are logged but non-fatal.
        """
        event = _make_envelope(event_type, payload or {}, source=source)
        handlers = [*self._handlers.get(event_type, []), *self._handlers.get(ALL_EVENTS, [])]
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error("Event bus: handler error for %s: %s", event_type, e)
        return event

    def notify(
        self,
        message: str,
        level: str = SUCCESS,
        *,
        category: str = "",
        source: str = "session",
    ) -> dict[str, Any]:
        """Publish a user-facing notification."""
        return self.publish(
            "notify",
            {"message": message, "level": level, "category": category},
            source=source,
        )

    def clear(self) -> None:
        """Drop all subscriptions. Only for testing."""
        self._handlers.clear()
