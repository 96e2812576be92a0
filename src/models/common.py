# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared API model types."""

from typing import Annotated, Any

from pydantic import BaseModel, Field, StringConstraints

ObjectIdStr = Annotated[
    str,
    StringConstraints(pattern=r"^[0-9a-fA-F]{24}$", to_lower=True),
]
"""24-hex-character entity identifier."""

Reason = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]


class Pagination(BaseModel):
    """Pagination block returned with listings."""

    page: int
    limit: int
    total: int
    pages: int


class PageParams(BaseModel):
    """Page and limit query parameters."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)


class OkResponse(BaseModel):
    """Success envelope used by every endpoint.

    Attributes:
        ok: Always True.
        data: Endpoint-specific payload.
    """

    ok: bool = True
    data: Any = None


class SuccessResponse(BaseModel):
    """Payload of operations that only report success."""

    success: bool = True
