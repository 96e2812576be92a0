# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure.

This package provides SQLAlchemy async connections, the ORM models and the
EntityStore gateway the domain services read and write through.

Example:
    from src.infrastructure.database import EntityStore, get_session

    async with get_session() as session:
        store = EntityStore(session)
        school = await store.get_school(school_id)
"""

from src.infrastructure.database.connection import (
    build_engine,
    build_sessionmaker,
    check_database_connection,
    close_database,
    get_engine,
    get_session,
    get_sessionmaker,
    init_database,
)
from src.infrastructure.database.store import EntityStore

__all__ = [
    "build_engine",
    "build_sessionmaker",
    "check_database_connection",
    "close_database",
    "get_engine",
    "get_session",
    "get_sessionmaker",
    "init_database",
    "EntityStore",
]
