# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for SchoolHub.

Settings are Pydantic models loaded from environment variables and an
optional .env file.

Example:
    >>> from src.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.cache.school_ttl_seconds)
    3600
"""

from src.core.config.settings import (
    APISettings,
    CacheSettings,
    CORSSettings,
    DatabaseSettings,
    EventSettings,
    JWTSettings,
    RateLimitSettings,
    RedisSettings,
    SecuritySettings,
    Settings,
    SuperAdminSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "RedisSettings",
    "CacheSettings",
    "EventSettings",
    "JWTSettings",
    "SecuritySettings",
    "SuperAdminSettings",
    "RateLimitSettings",
    "CORSSettings",
    "APISettings",
]
