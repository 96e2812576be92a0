# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

This package provides middleware for request processing:
- RequestContextMiddleware: Request id binding and access logging.
- AuthMiddleware: JWT authentication.
- limiter: slowapi rate limiter shared by the routers.

Exports:
    AuthMiddleware: JWT authentication middleware.
    CurrentUser: Authenticated caller.
    RequestContextMiddleware: Request id middleware.
    limiter: Rate limiter instance.
"""

from src.api.middleware.auth import AuthMiddleware, CurrentUser
from src.api.middleware.rate_limit import limiter
from src.api.middleware.request_context import RequestContextMiddleware

__all__ = [
    "AuthMiddleware",
    "CurrentUser",
    "RequestContextMiddleware",
    "limiter",
]
