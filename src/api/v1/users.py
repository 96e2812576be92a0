# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin account management API endpoints.

Every endpoint here requires a superadmin:
- POST / - Create an admin account
- GET / - List accounts
- GET /{user_id} - Get an account
- POST /{user_id}/deactivate - Deactivate an account
- POST /schools/{school_id}/admins - Bind a school admin to a school
- GET /schools/{school_id}/admins - List a school's admins
"""

import logging
from typing import Annotated, Literal

from fastapi import APIRouter, Path, Query, status

from src.api.dependencies import (
    OBJECT_ID_PATTERN,
    SchoolIdPath,
    SuperAdminUser,
    UserServiceDep,
)
from src.models.common import OkResponse, SuccessResponse
from src.models.user import AssignSchoolRequest, UserCreateRequest

logger = logging.getLogger(__name__)

router = APIRouter()

UserIdPath = Annotated[str, Path(pattern=OBJECT_ID_PATTERN, description="User id")]


@router.post(
    "",
    response_model=OkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create admin account",
)
async def create_user(
    data: UserCreateRequest,
    current_user: SuperAdminUser,
    service: UserServiceDep,
) -> OkResponse:
    """Create a superadmin or school admin account."""
    logger.info("Creating %s account %s, by=%s", data.role, data.email, current_user.id)
    user = await service.create_user(
        email=data.email,
        password=data.password,
        role=data.role,
        school_id=data.school_id,
    )
    return OkResponse(data=user.to_dict())


@router.get("", response_model=OkResponse, summary="List admin accounts")
async def list_users(
    current_user: SuperAdminUser,
    service: UserServiceDep,
    role: Annotated[Literal["superadmin", "school_admin"] | None, Query()] = None,
    school_id: Annotated[str | None, Query(pattern=OBJECT_ID_PATTERN)] = None,
    user_status: Annotated[Literal["active", "inactive"] | None, Query(alias="status")] = None,
) -> OkResponse:
    """List accounts filtered by role, school and status."""
    users = await service.list_users(role=role, school_id=school_id, status=user_status)
    return OkResponse(data=[u.to_dict() for u in users])


@router.get("/{user_id}", response_model=OkResponse, summary="Get admin account")
async def get_user(
    user_id: UserIdPath,
    current_user: SuperAdminUser,
    service: UserServiceDep,
) -> OkResponse:
    """Get one account."""
    user = await service.get_user(user_id.lower())
    return OkResponse(data=user.to_dict())


@router.post(
    "/{user_id}/deactivate",
    response_model=OkResponse,
    summary="Deactivate admin account",
)
async def deactivate_user(
    user_id: UserIdPath,
    current_user: SuperAdminUser,
    service: UserServiceDep,
) -> OkResponse:
    """Deactivate an account; its tokens stop passing login checks."""
    await service.deactivate_user(user_id.lower())
    return OkResponse(data=SuccessResponse())


@router.post(
    "/schools/{school_id}/admins",
    response_model=OkResponse,
    summary="Assign school admin",
)
async def assign_school_admin(
    school_id: SchoolIdPath,
    data: AssignSchoolRequest,
    current_user: SuperAdminUser,
    service: UserServiceDep,
) -> OkResponse:
    """Bind a school admin to a school."""
    await service.assign_admin_to_school(school_id.lower(), data.user_id)
    return OkResponse(data=SuccessResponse())


@router.get(
    "/schools/{school_id}/admins",
    response_model=OkResponse,
    summary="List school admins",
)
async def list_school_admins(
    school_id: SchoolIdPath,
    current_user: SuperAdminUser,
    service: UserServiceDep,
) -> OkResponse:
    """Active school admins of a school."""
    admins = await service.get_school_admins(school_id)
    return OkResponse(data=[u.to_dict() for u in admins])
