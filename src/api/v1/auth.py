# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication API endpoints.

This module provides endpoints for admin authentication:
- POST /login - Exchange email and password for an access token
- GET /me - Get the current user
- PUT /password - Change the current user's password

Example:
    POST /api/v1/auth/login
    {
        "email": "admin@school.edu",
        "password": "secret-password"
    }
"""

import logging

from fastapi import APIRouter, Request

from src.api.dependencies import AuthenticatedUser, UserServiceDep
from src.api.middleware.rate_limit import get_ip_only, limiter, login_limit
from src.models.auth import ChangePasswordRequest, LoginRequest, TokenResponse
from src.models.common import OkResponse, SuccessResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/login",
    response_model=OkResponse,
    summary="Log in",
    description="Authenticate with email and password. Rate limited per IP.",
)
@limiter.limit(login_limit, key_func=get_ip_only)
async def login(
    request: Request,
    data: LoginRequest,
    service: UserServiceDep,
) -> OkResponse:
    """Authenticate an admin and issue an access token.

    Repeated failures lock the account for a while; a locked account is
    answered with ACCOUNT_LOCKED even when the password is right.
    """
    result = await service.login(data.email, data.password)
    return OkResponse(
        data=TokenResponse(
            access_token=result.token.access_token,
            token_type=result.token.token_type,
            expires_in=result.token.expires_in,
            user=result.user.to_dict(),
        ),
    )


@router.get("/me", response_model=OkResponse, summary="Current user")
async def me(current_user: AuthenticatedUser, service: UserServiceDep) -> OkResponse:
    """Return the stored account of the authenticated caller."""
    user = await service.get_user(current_user.id)
    return OkResponse(data=user.to_dict())


@router.put("/password", response_model=OkResponse, summary="Change password")
async def change_password(
    data: ChangePasswordRequest,
    current_user: AuthenticatedUser,
    service: UserServiceDep,
) -> OkResponse:
    """Change the caller's password after checking the current one."""
    await service.change_password(
        current_user.id,
        data.current_password,
        data.new_password,
    )
    logger.info("Password changed via API for user %s", current_user.id)
    return OkResponse(data=SuccessResponse())
