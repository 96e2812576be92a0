# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fixtures for API tests against the in-process ASGI app.

The app runs without its lifespan: requests get sessions from the
per-test SQLite database through a ``get_db`` override, Redis is never
initialized so the school cache is disabled, and rate limiting is off
unless a test switches it back on.
"""

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.api.app import create_app
from src.api.dependencies import get_db, get_password_hasher
from src.api.middleware.rate_limit import limiter
from src.core.config import get_settings
from src.domains.auth.jwt import JWTManager
from src.domains.auth.password import PasswordHasher
from src.domains.context import ServiceContext
from src.domains.user import UserService
from src.infrastructure.database.models import User
from src.infrastructure.events import reset_event_bus

SUPERADMIN_EMAIL = "root@schoolhub.io"
SUPERADMIN_PASSWORD = "root-password-1"


@pytest.fixture
def app(sessionmaker: async_sessionmaker[AsyncSession]) -> Iterator[FastAPI]:
    """Application wired to the test database."""
    reset_event_bus()
    application = create_app()

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with sessionmaker() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_password_hasher] = lambda: PasswordHasher(rounds=4)
    limiter.enabled = False
    yield application
    limiter.enabled = True
    limiter.reset()
    application.dependency_overrides.clear()
    reset_event_bus()


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client talking to the app in-process."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def jwt_manager() -> JWTManager:
    """Token issuer sharing the app's signing settings."""
    return JWTManager(get_settings().jwt)


@pytest.fixture
async def superadmin(db: AsyncSession) -> User:
    """Stored superadmin account."""
    service = UserService(ServiceContext(db=db), PasswordHasher(rounds=4))
    return await service.create_user(SUPERADMIN_EMAIL, SUPERADMIN_PASSWORD, "superadmin")


@pytest.fixture
def auth_headers(jwt_manager: JWTManager) -> Callable[..., dict[str, str]]:
    """Build an Authorization header for an arbitrary caller."""

    def build(
        user_id: str = "65f0c2a1b3d4e5f6a7b8c9d0",
        role: str = "superadmin",
        school_id: str | None = None,
    ) -> dict[str, str]:
        token = jwt_manager.create_access_token(user_id, role, school_id=school_id)
        return {"Authorization": f"Bearer {token.access_token}"}

    return build


@pytest.fixture
def superadmin_headers(
    superadmin: User,
    auth_headers: Callable[..., dict[str, str]],
) -> dict[str, str]:
    """Authorization header of the stored superadmin."""
    return auth_headers(superadmin.id, "superadmin")


@pytest.fixture
def school_body() -> dict[str, Any]:
    """Valid school creation body."""
    return {
        "name": "Springfield Elementary",
        "address": {
            "street": "742 Evergreen Terrace",
            "city": "Springfield",
            "state": "OR",
            "zip_code": "97403",
        },
        "contact_info": {"email": "office@springfield.edu", "phone": "+15551234567"},
    }


@pytest.fixture
def create_school_via_api(
    client: httpx.AsyncClient,
    superadmin_headers: dict[str, str],
    school_body: dict[str, Any],
) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Create a school through the API and return its document."""

    async def create(name: str | None = None) -> dict[str, Any]:
        body = {**school_body, "name": name or school_body["name"]}
        response = await client.post("/api/v1/schools", json=body, headers=superadmin_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return create
