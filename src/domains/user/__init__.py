# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User domain package.

This package provides administrator account management:
- UserService: account creation, login with lockout, password changes,
  deactivation and school assignment

Example:
    >>> from src.domains.user import UserService
    >>> service = UserService(ctx, password_hasher, jwt_manager)
    >>> user = await service.create_user("admin@school.edu", "password123", "superadmin")
"""

from src.domains.user.service import LoginResult, UserService

__all__ = [
    "LoginResult",
    "UserService",
]
