# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification infrastructure.

This package provides:
- NotificationSink: the publish(topic, payload) contract services depend on
- EventBus: in-memory pattern-matching implementation of that contract
- RedisEventForwarder: republishes bus events on Redis pub/sub
- EventTypes: topic constants
"""

from src.infrastructure.events.bus import (
    EventBus,
    EventData,
    EventHandler,
    get_event_bus,
    reset_event_bus,
)
from src.infrastructure.events.forwarder import (
    RedisEventForwarder,
    start_event_forwarder,
    stop_event_forwarder,
)
from src.infrastructure.events.sink import NotificationSink, NullNotificationSink
from src.infrastructure.events.types import EventTypes

__all__ = [
    "EventBus",
    "EventData",
    "EventHandler",
    "EventTypes",
    "NotificationSink",
    "NullNotificationSink",
    "RedisEventForwarder",
    "get_event_bus",
    "reset_event_bus",
    "start_event_forwarder",
    "stop_event_forwarder",
]
