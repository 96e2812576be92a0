# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classroom management API endpoints.

All endpoints are scoped to one school:
- POST /schools/{school_id}/classrooms - Create a classroom
- GET /schools/{school_id}/classrooms - List active classrooms
- GET /schools/{school_id}/classrooms/stats - Classroom statistics
- GET /schools/{school_id}/classrooms/{classroom_id} - Get a classroom
- PUT /schools/{school_id}/classrooms/{classroom_id} - Update a classroom
- DELETE /schools/{school_id}/classrooms/{classroom_id} - Delete an empty classroom
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from src.api.dependencies import (
    OBJECT_ID_PATTERN,
    ClassroomServiceDep,
    SchoolIdPath,
    SchoolScopedUser,
)
from src.models.common import OkResponse, SuccessResponse
from src.models.classroom import ClassroomCreateRequest, ClassroomUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schools/{school_id}/classrooms")

ClassroomIdPath = Annotated[str, Path(pattern=OBJECT_ID_PATTERN, description="Classroom id")]


@router.post(
    "",
    response_model=OkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create classroom",
)
async def create_classroom(
    school_id: SchoolIdPath,
    data: ClassroomCreateRequest,
    current_user: SchoolScopedUser,
    service: ClassroomServiceDep,
) -> OkResponse:
    """Create an empty classroom in an active school."""
    classroom = await service.create_classroom(
        school_id,
        data.name,
        data.capacity,
        data.resources,
    )
    return OkResponse(data=classroom.to_dict())


@router.get("", response_model=OkResponse, summary="List classrooms")
async def list_classrooms(
    school_id: SchoolIdPath,
    current_user: SchoolScopedUser,
    service: ClassroomServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> OkResponse:
    """List the school's active classrooms, newest first."""
    result = await service.get_classrooms(school_id, page=page, limit=limit)
    return OkResponse(
        data={
            "classrooms": [c.to_dict() for c in result.items],
            "pagination": result.pagination,
        },
    )


@router.get("/stats", response_model=OkResponse, summary="Classroom statistics")
async def get_classroom_stats(
    school_id: SchoolIdPath,
    current_user: SchoolScopedUser,
    service: ClassroomServiceDep,
) -> OkResponse:
    """Classroom counts by status and seat usage."""
    return OkResponse(data=await service.get_classroom_stats(school_id))


@router.get("/{classroom_id}", response_model=OkResponse, summary="Get classroom")
async def get_classroom(
    school_id: SchoolIdPath,
    classroom_id: ClassroomIdPath,
    current_user: SchoolScopedUser,
    service: ClassroomServiceDep,
) -> OkResponse:
    """Get an active classroom."""
    classroom = await service.get_classroom(classroom_id, school_id)
    return OkResponse(data=classroom.to_dict())


@router.put("/{classroom_id}", response_model=OkResponse, summary="Update classroom")
async def update_classroom(
    school_id: SchoolIdPath,
    classroom_id: ClassroomIdPath,
    data: ClassroomUpdateRequest,
    current_user: SchoolScopedUser,
    service: ClassroomServiceDep,
) -> OkResponse:
    """Update name, capacity, resources or status.

    A capacity below the current occupancy is rejected with INVALID_OPERATION.
    """
    classroom = await service.update_classroom(
        classroom_id,
        school_id,
        data.model_dump(exclude_none=True),
    )
    return OkResponse(data=classroom.to_dict())


@router.delete("/{classroom_id}", response_model=OkResponse, summary="Delete classroom")
async def delete_classroom(
    school_id: SchoolIdPath,
    classroom_id: ClassroomIdPath,
    current_user: SchoolScopedUser,
    service: ClassroomServiceDep,
) -> OkResponse:
    """Soft-delete an empty classroom."""
    await service.delete_classroom(classroom_id, school_id)
    logger.info("Classroom %s deleted via API, by=%s", classroom_id, current_user.id)
    return OkResponse(data=SuccessResponse())
