# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get authenticated users and enforce school scope
- Get service instances

Example:
    @router.get("/schools/{school_id}/students")
    async def list_students(
        current_user: SchoolScopedUser,
        service: StudentServiceDep,
    ):
        ...
"""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, Path, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import CurrentUser, get_current_user
from src.core.config import get_settings
from src.core.errors import AccessDeniedError, AuthRequiredError
from src.domains.auth.jwt import JWTManager
from src.domains.auth.password import PasswordHasher
from src.domains.classroom import ClassroomService
from src.domains.context import ServiceContext
from src.domains.school import SchoolService
from src.domains.student import StudentService
from src.domains.user import UserService
from src.infrastructure.cache import SchoolCache, get_redis_or_none
from src.infrastructure.database.connection import get_sessionmaker
from src.infrastructure.events import get_event_bus

logger = logging.getLogger(__name__)

OBJECT_ID_PATTERN = r"^[0-9a-fA-F]{24}$"


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session.

    Services commit their own units of work; the session is only closed here.

    Yields:
        AsyncSession for the request.
    """
    async with get_sessionmaker()() as session:
        yield session


async def get_service_context(
    db: AsyncSession = Depends(get_db),
) -> ServiceContext:
    """Bundle the session, school cache and notification bus for services.

    Args:
        db: Request database session.

    Returns:
        ServiceContext for this request.
    """
    settings = get_settings()
    return ServiceContext(
        db=db,
        cache=SchoolCache(get_redis_or_none(), settings.cache),
        notifier=get_event_bus(),
    )


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_auth(request: Request) -> CurrentUser:
    """Require authenticated user.

    Args:
        request: HTTP request.

    Returns:
        CurrentUser.

    Raises:
        InvalidTokenError: If a bearer token was sent but rejected.
        AuthRequiredError: If no credentials were sent.
    """
    user = get_current_user(request)
    if user is None:
        auth_error = getattr(request.state, "auth_error", None)
        if auth_error is not None:
            raise auth_error
        raise AuthRequiredError()
    return user


def require_superadmin(
    current_user: CurrentUser = Depends(require_auth),
) -> CurrentUser:
    """Require a superadmin.

    Raises:
        AccessDeniedError: If the user is not a superadmin.
    """
    if not current_user.is_superadmin:
        raise AccessDeniedError(
            "Superadmin access required",
            details={"role": current_user.role},
        )
    return current_user


def require_school_access(
    school_id: Annotated[str, Path(pattern=OBJECT_ID_PATTERN)],
    current_user: CurrentUser = Depends(require_auth),
) -> CurrentUser:
    """Require access to the school named in the path.

    Superadmins reach every school; school admins only their own.

    Raises:
        AccessDeniedError: If the user may not act on this school.
    """
    if not current_user.can_access_school(school_id):
        logger.warning(
            "User %s denied access to school %s",
            current_user.id,
            school_id,
        )
        raise AccessDeniedError(
            "Access to this school is not allowed",
            details={"school_id": school_id},
        )
    return current_user


# =========================================================================
# Service Dependencies
# =========================================================================


def get_jwt_manager() -> JWTManager:
    """Get JWT manager instance."""
    return JWTManager(get_settings().jwt)


def get_password_hasher() -> PasswordHasher:
    """Get password hasher instance."""
    return PasswordHasher.from_settings(get_settings().security)


def get_school_service(
    ctx: ServiceContext = Depends(get_service_context),
) -> SchoolService:
    """Get SchoolService instance."""
    return SchoolService(ctx)


def get_classroom_service(
    ctx: ServiceContext = Depends(get_service_context),
) -> ClassroomService:
    """Get ClassroomService instance."""
    return ClassroomService(ctx)


def get_student_service(
    ctx: ServiceContext = Depends(get_service_context),
) -> StudentService:
    """Get StudentService instance."""
    return StudentService(ctx)


def get_user_service(
    ctx: ServiceContext = Depends(get_service_context),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
) -> UserService:
    """Get UserService instance."""
    return UserService(
        ctx,
        password_hasher,
        jwt_manager=jwt_manager,
        security=get_settings().security,
    )


# =========================================================================
# Type Aliases for Cleaner Endpoint Signatures
# =========================================================================

SchoolIdPath = Annotated[str, Path(pattern=OBJECT_ID_PATTERN, description="School id")]
AuthenticatedUser = Annotated[CurrentUser, Depends(require_auth)]
SuperAdminUser = Annotated[CurrentUser, Depends(require_superadmin)]
SchoolScopedUser = Annotated[CurrentUser, Depends(require_school_access)]
SchoolServiceDep = Annotated[SchoolService, Depends(get_school_service)]
ClassroomServiceDep = Annotated[ClassroomService, Depends(get_classroom_service)]
StudentServiceDep = Annotated[StudentService, Depends(get_student_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
