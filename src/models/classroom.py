# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classroom request models."""

from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, Field, StringConstraints

from src.infrastructure.database.models import MAX_CLASSROOM_CAPACITY, MIN_CLASSROOM_CAPACITY

ClassroomResource = Literal[
    "Projector",
    "Whiteboard",
    "Computers",
    "Lab Equipment",
    "Smart Board",
    "Audio System",
    "Document Camera",
]


def _unique(resources: list[str]) -> list[str]:
    if len(set(resources)) != len(resources):
        raise ValueError("Resources must be unique")
    return resources


ClassroomName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]
Capacity = Annotated[int, Field(ge=MIN_CLASSROOM_CAPACITY, le=MAX_CLASSROOM_CAPACITY, strict=True)]
Resources = Annotated[list[ClassroomResource], AfterValidator(_unique)]


class ClassroomCreateRequest(BaseModel):
    """Request to create a classroom."""

    name: ClassroomName
    capacity: Capacity
    resources: Resources = Field(default_factory=list)


class ClassroomUpdateRequest(BaseModel):
    """Request to update a classroom. At least one field is required."""

    name: ClassroomName | None = None
    capacity: Capacity | None = None
    resources: Resources | None = None
    status: Literal["active", "maintenance", "inactive"] | None = None
