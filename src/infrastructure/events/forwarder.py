# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Forward in-process events to Redis pub/sub.

Architecture:
    Service -> EventBus -> RedisEventForwarder -> Redis channel
    (<prefix>:<entity>:<action>)

The forwarder subscribes to every topic at startup. A failed publish is
logged and dropped; notifications carry no delivery guarantee.

Example:
    forwarder = await start_event_forwarder(get_event_bus(), redis, settings.events)
    ...
    await stop_event_forwarder()
"""

import logging

from src.core.config.settings import EventSettings
from src.infrastructure.cache.redis_client import RedisClient
from src.infrastructure.events.bus import EventBus, EventData

logger = logging.getLogger(__name__)


class RedisEventForwarder:
    """Republishes EventBus events on Redis channels.

    Attributes:
        _bus: Source event bus.
        _redis: Connected Redis client.
        _prefix: Channel prefix.
        _forwarded: Number of events successfully published.
        _failed: Number of events dropped after a Redis error.
    """

    SUBSCRIPTION = "*"

    def __init__(self, bus: EventBus, redis: RedisClient, settings: EventSettings) -> None:
        """Initialize the forwarder.

        Args:
            bus: Event bus to listen on.
            redis: Redis client to publish through.
            settings: Channel prefix configuration.
        """
        self._bus = bus
        self._redis = redis
        self._prefix = settings.channel_prefix
        self._started = False
        self._forwarded = 0
        self._failed = 0

    def channel_for(self, event_type: str) -> str:
        """Redis channel for a topic."""
        return f"{self._prefix}:{event_type}"

    def start(self) -> None:
        """Subscribe to every topic on the bus."""
        if self._started:
            return
        self._bus.subscribe(self.SUBSCRIPTION, self._forward)
        self._started = True
        logger.info("Event forwarder started (prefix=%s)", self._prefix)

    def stop(self) -> None:
        """Unsubscribe from the bus."""
        if not self._started:
            return
        self._bus.unsubscribe(self.SUBSCRIPTION, self._forward)
        self._started = False
        logger.info(
            "Event forwarder stopped (forwarded=%d, failed=%d)",
            self._forwarded,
            self._failed,
        )

    async def _forward(self, event: EventData) -> None:
        try:
            await self._redis.publish(self.channel_for(event.event_type), event.to_dict())
            self._forwarded += 1
        except Exception as e:
            self._failed += 1
            logger.warning("Failed to forward event %s: %s", event.event_type, e)

    def get_stats(self) -> dict[str, int | bool]:
        """Forwarding counters."""
        return {
            "started": self._started,
            "forwarded": self._forwarded,
            "failed": self._failed,
        }


_forwarder: RedisEventForwarder | None = None


async def start_event_forwarder(
    bus: EventBus,
    redis: RedisClient,
    settings: EventSettings,
) -> RedisEventForwarder:
    """Create and start the global forwarder."""
    global _forwarder
    if _forwarder is None:
        _forwarder = RedisEventForwarder(bus, redis, settings)
    _forwarder.start()
    return _forwarder


async def stop_event_forwarder() -> None:
    """Stop and discard the global forwarder."""
    global _forwarder
    if _forwarder is not None:
        _forwarder.stop()
        _forwarder = None
