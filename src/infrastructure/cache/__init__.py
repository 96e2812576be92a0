# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Redis cache infrastructure.

Example:
    from src.infrastructure.cache import SchoolCache, get_redis_or_none, init_redis

    # Initialize at application startup
    await init_redis(settings)

    cache = SchoolCache(get_redis_or_none(), settings.cache)
    school = await cache.get(school_id)

    # Cleanup at shutdown
    await close_redis()
"""

from src.infrastructure.cache.redis_client import (
    RedisClient,
    RedisError,
    close_redis,
    get_redis,
    get_redis_or_none,
    init_redis,
)
from src.infrastructure.cache.school_cache import SchoolCache

__all__ = [
    "RedisClient",
    "RedisError",
    "SchoolCache",
    "close_redis",
    "get_redis",
    "get_redis_or_none",
    "init_redis",
]
