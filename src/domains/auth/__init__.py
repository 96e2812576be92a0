# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain services.

This module provides the credential primitives used by the user service
and the API layer:
- JWT access token creation and validation
- Password hashing with bcrypt

Exports:
    PasswordHasher: Secure password hashing using bcrypt.
    JWTManager: JWT token creation and validation.
    TokenPayload: Decoded token claims.
    AccessToken: Issued token with its lifetime.
"""

from src.domains.auth.jwt import AccessToken, JWTManager, TokenPayload
from src.domains.auth.password import PasswordHasher

__all__ = [
    "AccessToken",
    "JWTManager",
    "PasswordHasher",
    "TokenPayload",
]
