# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-memory event bus for SchoolHub.

EventBus is the default NotificationSink. Services publish lifecycle
notifications to it; subscribers (the Redis forwarder, tests, audit
hooks) receive them by exact topic or fnmatch pattern.

Handler failures are logged and never reach the publisher.

Example:
    from src.infrastructure.events import get_event_bus, EventTypes

    event_bus = get_event_bus()

    async def on_enrolled(event):
        print(event.payload["student_id"])

    event_bus.subscribe(EventTypes.Student.ENROLLED, on_enrolled)
    event_bus.subscribe("classroom:*", on_any_classroom_event)

    await event_bus.publish(EventTypes.Student.ENROLLED, {"student_id": "..."})
"""

import asyncio
import fnmatch
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable
from uuid import uuid4

from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

EventHandler = Callable[["EventData"], Awaitable[None]]

DEFAULT_HISTORY_SIZE = 100


@dataclass
class EventData:
    """Container for event data with metadata.

    Attributes:
        event_type: The topic string.
        payload: The event payload data.
        event_id: Unique event identifier.
        timestamp: When the event was published.
    """

    event_type: str
    payload: dict[str, Any]
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: Any = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }


class EventBus:
    """In-memory async event bus with pattern matching support.

    Designed for single-process async use; cross-process delivery goes
    through RedisEventForwarder.

    Attributes:
        _handlers: Mapping of exact topics to handler lists.
        _pattern_handlers: Mapping of wildcard patterns to handler lists.
        _history: The most recently published events, oldest first.
    """

    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE) -> None:
        """Initialize the event bus.

        Args:
            history_size: How many recent events to keep for inspection.
        """
        self._handlers: dict[str, list[EventHandler]] = {}
        self._pattern_handlers: dict[str, list[EventHandler]] = {}
        self._history: deque[EventData] = deque(maxlen=history_size)
        self._event_count = 0

    @staticmethod
    def _is_pattern(event_type: str) -> bool:
        return "*" in event_type or "?" in event_type

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe a handler to a topic or pattern.

        Args:
            event_type: Topic string or pattern with wildcards.
            handler: Async function called with the EventData.
        """
        registry = self._pattern_handlers if self._is_pattern(event_type) else self._handlers
        registry.setdefault(event_type, []).append(handler)
        logger.debug("Subscribed handler to: %s", event_type)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> bool:
        """Unsubscribe a handler from a topic or pattern.

        Returns:
            True if handler was found and removed, False otherwise.
        """
        registry = self._pattern_handlers if self._is_pattern(event_type) else self._handlers
        handlers = registry.get(event_type)
        if not handlers or handler not in handlers:
            return False

        handlers.remove(handler)
        if not handlers:
            del registry[event_type]
        return True

    def _matching_handlers(self, event_type: str) -> list[EventHandler]:
        handlers = list(self._handlers.get(event_type, []))
        for pattern, pattern_handlers in self._pattern_handlers.items():
            if fnmatch.fnmatch(event_type, pattern):
                handlers.extend(pattern_handlers)
        return handlers

    async def publish(self, event_type: str, payload: dict[str, Any]) -> EventData:
        """Publish an event to all matching subscribers.

        Handlers run concurrently. Errors in individual handlers are
        logged and do not affect other handlers or the publisher.

        Args:
            event_type: The topic string.
            payload: Event data dictionary.

        Returns:
            EventData object with event metadata.
        """
        event = EventData(event_type=event_type, payload=payload)
        self._event_count += 1
        self._history.append(event)

        handlers = self._matching_handlers(event_type)
        if not handlers:
            logger.debug("No handlers for event: %s", event_type)
            return event

        async def safe_call(handler: EventHandler) -> None:
            try:
                await handler(event)
            except Exception as e:
                logger.error(
                    "Handler error for event %s: %s",
                    event_type,
                    str(e),
                    exc_info=True,
                )

        await asyncio.gather(*(safe_call(handler) for handler in handlers))
        return event

    def recent(self, event_type: str | None = None) -> list[EventData]:
        """Recently published events, optionally filtered by topic pattern."""
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if fnmatch.fnmatch(e.event_type, event_type)]

    def clear(self) -> None:
        """Remove all subscriptions and history."""
        self._handlers.clear()
        self._pattern_handlers.clear()
        self._history.clear()

    def get_stats(self) -> dict[str, Any]:
        """Get event bus statistics."""
        return {
            "exact_subscriptions": len(self._handlers),
            "pattern_subscriptions": len(self._pattern_handlers),
            "total_handlers": sum(len(h) for h in self._handlers.values())
            + sum(len(h) for h in self._pattern_handlers.values()),
            "events_published": self._event_count,
        }


# Singleton instance
_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get the singleton event bus instance."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Reset the event bus singleton.

    Useful for testing to ensure clean state between tests.
    """
    global _event_bus
    if _event_bus is not None:
        _event_bus.clear()
    _event_bus = None
