# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Advisory cache for school documents.

SchoolCache never raises. Every Redis failure is logged as a warning and
reported as a miss (get) or as False (set, invalidate), so a cache outage
only costs a database read.

Keys:
    school:<id>    serialized school document
"""

import logging
from typing import Any

from src.core.config.settings import CacheSettings
from src.infrastructure.cache.redis_client import RedisClient

logger = logging.getLogger(__name__)


class SchoolCache:
    """Read-through / invalidate-on-write cache for schools.

    Attributes:
        _client: Redis client, or None when caching is unavailable.
        _settings: Cache TTL and key prefix.
    """

    def __init__(self, client: RedisClient | None, settings: CacheSettings | None = None) -> None:
        """Initialize the cache.

        Args:
            client: Connected Redis client; None disables caching.
            settings: Cache settings (defaults when omitted).
        """
        self._client = client
        self._settings = settings or CacheSettings()

    @property
    def enabled(self) -> bool:
        """Check if a backing client is configured and caching is on."""
        return self._client is not None and self._settings.enabled

    def school_key(self, school_id: str) -> str:
        """Cache key of a school document."""
        return f"{self._settings.key_prefix}{school_id}"

    async def get(self, school_id: str) -> dict[str, Any] | None:
        """Return the cached school document, or None on miss or failure."""
        if not self.enabled:
            return None
        try:
            value = await self._client.get(self.school_key(school_id))
        except Exception as e:
            logger.warning("School cache read failed for %s: %s", school_id, e)
            return None
        return value if isinstance(value, dict) else None

    async def set(self, school: dict[str, Any]) -> bool:
        """Store a school document with the configured TTL."""
        if not self.enabled:
            return False
        try:
            await self._client.set(
                self.school_key(school["id"]),
                school,
                expire_seconds=self._settings.school_ttl_seconds,
            )
            return True
        except Exception as e:
            logger.warning("School cache write failed for %s: %s", school.get("id"), e)
            return False

    async def invalidate(self, school_id: str) -> bool:
        """Drop a school's cache entry."""
        if not self.enabled:
            return False
        try:
            await self._client.delete(self.school_key(school_id))
            return True
        except Exception as e:
            logger.warning("School cache invalidation failed for %s: %s", school_id, e)
            return False
