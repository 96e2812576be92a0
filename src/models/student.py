# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student request models."""

from typing import Annotated

from pydantic import BaseModel, EmailStr, Field, StringConstraints

from src.models.common import ObjectIdStr, Reason

PersonName = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=2, max_length=50, pattern=r"^[a-zA-Z\s'-]+$"),
]
Grade = Annotated[int, Field(ge=1, le=12)]


class StudentCreateRequest(BaseModel):
    """Request to enroll a student."""

    first_name: PersonName
    last_name: PersonName
    email: EmailStr
    grade: Grade
    classroom_id: ObjectIdStr | None = None


class StudentUpdateRequest(BaseModel):
    """Request to update a student.

    Sending ``classroom_id: null`` explicitly unassigns the student; leaving
    it out keeps the current classroom.
    """

    first_name: PersonName | None = None
    last_name: PersonName | None = None
    grade: Grade | None = None
    classroom_id: ObjectIdStr | None = None


class StudentTransferRequest(BaseModel):
    """Request to move a student to another school."""

    to_school_id: ObjectIdStr
    reason: Reason


class StudentDeactivateRequest(BaseModel):
    """Request to deactivate a student."""

    reason: Reason
