# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student management API endpoints.

All endpoints are scoped to the school the student currently belongs to:
- POST /schools/{school_id}/students - Enroll a student
- GET /schools/{school_id}/students - List active students
- GET /schools/{school_id}/students/stats - Student statistics
- GET /schools/{school_id}/students/{student_id} - Get a student
- PUT /schools/{school_id}/students/{student_id} - Update a student
- POST /schools/{school_id}/students/{student_id}/transfer - Transfer to another school
- POST /schools/{school_id}/students/{student_id}/deactivate - Deactivate a student

Example:
    POST /api/v1/schools/65f0c0ffee0000000000abcd/students
    {
        "first_name": "Lisa",
        "last_name": "Simpson",
        "email": "lisa@springfield.edu",
        "grade": 2,
        "classroom_id": "65f0c0ffee0000000000beef"
    }
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from src.api.dependencies import (
    OBJECT_ID_PATTERN,
    SchoolIdPath,
    SchoolScopedUser,
    StudentServiceDep,
)
from src.models.common import OkResponse, SuccessResponse
from src.models.student import (
    StudentCreateRequest,
    StudentDeactivateRequest,
    StudentTransferRequest,
    StudentUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schools/{school_id}/students")

StudentIdPath = Annotated[str, Path(pattern=OBJECT_ID_PATTERN, description="Student id")]


@router.post(
    "",
    response_model=OkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll student",
)
async def enroll_student(
    school_id: SchoolIdPath,
    data: StudentCreateRequest,
    current_user: SchoolScopedUser,
    service: StudentServiceDep,
) -> OkResponse:
    """Enroll a student, optionally seating them in a classroom.

    A full classroom is answered with CLASSROOM_FULL and nothing is stored.
    """
    student = await service.enroll_student(
        school_id,
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        grade=data.grade,
        classroom_id=data.classroom_id,
    )
    return OkResponse(data=student.to_dict())


@router.get("", response_model=OkResponse, summary="List students")
async def list_students(
    school_id: SchoolIdPath,
    current_user: SchoolScopedUser,
    service: StudentServiceDep,
    classroom_id: Annotated[str | None, Query(pattern=OBJECT_ID_PATTERN)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> OkResponse:
    """List active students, optionally of one classroom."""
    result = await service.get_students(
        school_id,
        classroom_id=classroom_id,
        page=page,
        limit=limit,
    )
    return OkResponse(
        data={
            "students": [s.to_dict() for s in result.items],
            "pagination": result.pagination,
        },
    )


@router.get("/stats", response_model=OkResponse, summary="Student statistics")
async def get_student_stats(
    school_id: SchoolIdPath,
    current_user: SchoolScopedUser,
    service: StudentServiceDep,
) -> OkResponse:
    """Student counts by status and grade."""
    return OkResponse(data=await service.get_student_stats(school_id))


@router.get("/{student_id}", response_model=OkResponse, summary="Get student")
async def get_student(
    school_id: SchoolIdPath,
    student_id: StudentIdPath,
    current_user: SchoolScopedUser,
    service: StudentServiceDep,
) -> OkResponse:
    """Get an active student."""
    student = await service.get_student(student_id, school_id)
    return OkResponse(data=student.to_dict())


@router.put("/{student_id}", response_model=OkResponse, summary="Update student")
async def update_student(
    school_id: SchoolIdPath,
    student_id: StudentIdPath,
    data: StudentUpdateRequest,
    current_user: SchoolScopedUser,
    service: StudentServiceDep,
) -> OkResponse:
    """Update names, grade or classroom.

    Sending ``"classroom_id": null`` unassigns the student.
    """
    student = await service.update_student(
        student_id,
        school_id,
        data.model_dump(exclude_unset=True),
    )
    return OkResponse(data=student.to_dict())


@router.post(
    "/{student_id}/transfer",
    response_model=OkResponse,
    summary="Transfer student",
)
async def transfer_student(
    school_id: SchoolIdPath,
    student_id: StudentIdPath,
    data: StudentTransferRequest,
    current_user: SchoolScopedUser,
    service: StudentServiceDep,
) -> OkResponse:
    """Move the student to another active school."""
    logger.info(
        "Transfer requested for student %s: %s -> %s, by=%s",
        student_id,
        school_id,
        data.to_school_id,
        current_user.id,
    )
    student = await service.transfer_student(
        student_id,
        school_id,
        data.to_school_id,
        data.reason,
    )
    return OkResponse(data=student.to_dict())


@router.post(
    "/{student_id}/deactivate",
    response_model=OkResponse,
    summary="Deactivate student",
)
async def deactivate_student(
    school_id: SchoolIdPath,
    student_id: StudentIdPath,
    data: StudentDeactivateRequest,
    current_user: SchoolScopedUser,
    service: StudentServiceDep,
) -> OkResponse:
    """Deactivate the student and free their seat."""
    await service.deactivate_student(student_id, school_id, data.reason)
    return OkResponse(data=SuccessResponse())
