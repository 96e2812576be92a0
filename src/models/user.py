# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin account request models."""

from typing import Literal

from pydantic import BaseModel, EmailStr, Field, model_validator

from src.models.common import ObjectIdStr


class UserCreateRequest(BaseModel):
    """Request to create an admin account."""

    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    role: Literal["superadmin", "school_admin"]
    school_id: ObjectIdStr | None = None

    @model_validator(mode="after")
    def check_school_binding(self) -> "UserCreateRequest":
        """School admins need a school; superadmins must not have one."""
        if self.role == "school_admin" and self.school_id is None:
            raise ValueError("school_id is required for school admins")
        if self.role == "superadmin" and self.school_id is not None:
            raise ValueError("superadmins are not bound to a school")
        return self


class AssignSchoolRequest(BaseModel):
    """Request to bind a school admin to a school."""

    user_id: ObjectIdStr
