# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

Every test gets its own SQLite database file (aiosqlite) with the full
schema, an EventBus that records published notifications and a
SchoolCache over an AsyncMock Redis client.

Services expire nothing on commit but a rollback does expire loaded
objects, so tests keep plain string ids and re-read rows through the
store after an operation fails.
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from src.core.config.settings import CacheSettings
from src.domains.classroom import ClassroomService
from src.domains.context import ServiceContext
from src.domains.school import SchoolService
from src.domains.student import StudentService
from src.infrastructure.cache import SchoolCache
from src.infrastructure.database.connection import build_engine, build_sessionmaker
from src.infrastructure.database.models import Base, Classroom, School, Student
from src.infrastructure.events import EventBus


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """Create a file-backed SQLite engine with every table."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'schoolhub.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory configured like the application's."""
    return build_sessionmaker(engine)


@pytest.fixture
async def db(sessionmaker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Database session used by the services under test."""
    async with sessionmaker() as session:
        yield session


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def event_bus() -> EventBus:
    """Event bus that keeps every published notification."""
    return EventBus()


@pytest.fixture
def redis_mock() -> AsyncMock:
    """Redis client double; every read is a miss."""
    client = AsyncMock()
    client.get.return_value = None
    client.set.return_value = None
    client.delete.return_value = 1
    return client


@pytest.fixture
def school_cache(redis_mock: AsyncMock) -> SchoolCache:
    """School cache over the Redis double."""
    return SchoolCache(redis_mock, CacheSettings())


@pytest.fixture
def ctx(db: AsyncSession, school_cache: SchoolCache, event_bus: EventBus) -> ServiceContext:
    """Service context shared by the service fixtures."""
    return ServiceContext(db=db, cache=school_cache, notifier=event_bus)


@pytest.fixture
def school_service(ctx: ServiceContext) -> SchoolService:
    """SchoolService under test."""
    return SchoolService(ctx)


@pytest.fixture
def classroom_service(ctx: ServiceContext) -> ClassroomService:
    """ClassroomService under test."""
    return ClassroomService(ctx)


@pytest.fixture
def student_service(ctx: ServiceContext) -> StudentService:
    """StudentService under test."""
    return StudentService(ctx)


# =============================================================================
# Data Fixtures
# =============================================================================


@pytest.fixture
def sample_address() -> dict[str, str]:
    """Valid school address."""
    return {
        "street": "742 Evergreen Terrace",
        "city": "Springfield",
        "state": "OR",
        "zip_code": "97403",
    }


@pytest.fixture
def sample_contact() -> dict[str, str]:
    """Valid school contact details."""
    return {"email": "office@springfield.edu", "phone": "+15551234567"}


@pytest.fixture
def make_school(
    school_service: SchoolService,
    sample_address: dict[str, str],
    sample_contact: dict[str, str],
) -> Callable[..., Awaitable[School]]:
    """Factory creating active schools with unique names."""
    counter = {"n": 0}

    async def factory(name: str | None = None, **overrides: Any) -> School:
        counter["n"] += 1
        return await school_service.create_school(
            name=name or f"Test School {counter['n']}",
            address=overrides.get("address", sample_address),
            contact_info=overrides.get("contact_info", sample_contact),
            admin_id=overrides.get("admin_id"),
        )

    return factory


@pytest.fixture
def make_classroom(
    classroom_service: ClassroomService,
) -> Callable[..., Awaitable[Classroom]]:
    """Factory creating empty classrooms with unique names."""
    counter = {"n": 0}

    async def factory(
        school_id: str,
        capacity: int = 30,
        name: str | None = None,
        resources: list[str] | None = None,
    ) -> Classroom:
        counter["n"] += 1
        return await classroom_service.create_classroom(
            school_id,
            name or f"Room {100 + counter['n']}",
            capacity,
            resources or [],
        )

    return factory


@pytest.fixture
def make_student(
    student_service: StudentService,
) -> Callable[..., Awaitable[Student]]:
    """Factory enrolling active students with unique emails."""
    counter = {"n": 0}

    async def factory(
        school_id: str,
        classroom_id: str | None = None,
        grade: int = 5,
        email: str | None = None,
    ) -> Student:
        counter["n"] += 1
        return await student_service.enroll_student(
            school_id,
            first_name="Lisa",
            last_name="Simpson",
            email=email or f"student{counter['n']}@springfield.edu",
            grade=grade,
            classroom_id=classroom_id,
        )

    return factory


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (in-process ASGI app)"
    )
