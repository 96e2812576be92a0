# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the school document cache."""

from unittest.mock import AsyncMock

import pytest

from src.core.config.settings import CacheSettings
from src.infrastructure.cache import RedisError, SchoolCache

SCHOOL_ID = "65f0c2a1b3d4e5f6a7b8c9d0"


@pytest.fixture
def redis() -> AsyncMock:
    """Redis client double."""
    return AsyncMock()


class TestSchoolCache:
    """Tests for SchoolCache."""

    @pytest.mark.asyncio
    async def test_set_uses_ttl(self, redis: AsyncMock) -> None:
        """Test documents are stored under school:<id> with the TTL."""
        cache = SchoolCache(redis, CacheSettings(school_ttl_seconds=60))

        assert await cache.set({"id": SCHOOL_ID, "name": "Springfield Elementary"}) is True

        redis.set.assert_awaited_once_with(
            f"school:{SCHOOL_ID}",
            {"id": SCHOOL_ID, "name": "Springfield Elementary"},
            expire_seconds=60,
        )

    @pytest.mark.asyncio
    async def test_get_hit_and_miss(self, redis: AsyncMock) -> None:
        """Test a dict is a hit and anything else a miss."""
        cache = SchoolCache(redis)

        redis.get.return_value = {"id": SCHOOL_ID}
        assert await cache.get(SCHOOL_ID) == {"id": SCHOOL_ID}

        redis.get.return_value = "stale-string"
        assert await cache.get(SCHOOL_ID) is None

    @pytest.mark.asyncio
    async def test_invalidate_drops_school_key(self, redis: AsyncMock) -> None:
        """Test invalidation deletes exactly the school document key."""
        cache = SchoolCache(redis)

        assert await cache.invalidate(SCHOOL_ID) is True

        redis.delete.assert_awaited_once_with(f"school:{SCHOOL_ID}")

    @pytest.mark.asyncio
    async def test_failures_are_swallowed(self, redis: AsyncMock) -> None:
        """Test Redis errors never escape the cache."""
        redis.get.side_effect = RedisError("read failed")
        redis.set.side_effect = ConnectionError("write failed")
        redis.delete.side_effect = TimeoutError("delete timed out")
        cache = SchoolCache(redis)

        assert await cache.get(SCHOOL_ID) is None
        assert await cache.set({"id": SCHOOL_ID}) is False
        assert await cache.invalidate(SCHOOL_ID) is False

    @pytest.mark.asyncio
    async def test_disabled_cache(self, redis: AsyncMock) -> None:
        """Test a disabled or clientless cache never touches Redis."""
        disabled = SchoolCache(redis, CacheSettings(enabled=False))
        clientless = SchoolCache(None)

        assert await disabled.get(SCHOOL_ID) is None
        assert await clientless.set({"id": SCHOOL_ID}) is False
        redis.get.assert_not_awaited()
