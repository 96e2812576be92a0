# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School management API endpoints.

This module provides endpoints for school management:
- POST / - Create a new school
- GET / - List schools with search, sorting and live counts
- GET /{school_id} - Get school details
- PUT /{school_id} - Update school
- DELETE /{school_id} - Cascading soft delete
- GET /{school_id}/stats - Student and classroom statistics
- GET /{school_id}/deletion-status - Partial-deletion report
- POST /{school_id}/reconcile - Recompute classroom occupancy counters

Access:
- superadmin: Full access to all schools
- school_admin: Read and update access to their own school only

Example:
    POST /api/v1/schools
    {
        "name": "Springfield Elementary",
        "address": {"street": "742 Evergreen Terrace", "city": "Springfield",
                    "state": "OR", "zip_code": "97403"},
        "contact_info": {"email": "office@springfield.edu", "phone": "+15551234567"}
    }
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, status

from src.api.dependencies import (
    SchoolIdPath,
    SchoolScopedUser,
    SchoolServiceDep,
    SuperAdminUser,
)
from src.domains.school import school_document
from src.models.common import OkResponse
from src.models.school import SchoolCreateRequest, SchoolListParams, SchoolUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=OkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create school",
    description="Create a new school. Requires superadmin access.",
)
async def create_school(
    data: SchoolCreateRequest,
    current_user: SuperAdminUser,
    service: SchoolServiceDep,
) -> OkResponse:
    """Create a new school."""
    logger.info("Creating school: name=%s, by=%s", data.name, current_user.id)
    school = await service.create_school(
        name=data.name,
        address=data.address.model_dump(),
        contact_info=data.contact_info.model_dump(),
        admin_id=current_user.id,
    )
    return OkResponse(data=school_document(school))


@router.get(
    "",
    response_model=OkResponse,
    summary="List schools",
    description="List schools with filtering. Requires superadmin access.",
)
async def list_schools(
    params: Annotated[SchoolListParams, Query()],
    current_user: SuperAdminUser,
    service: SchoolServiceDep,
) -> OkResponse:
    """List schools with pagination."""
    page = await service.get_schools(
        page=params.page,
        limit=params.limit,
        status=params.status,
        sort_by=params.sort_by,
        sort_order=params.sort_order,
        search_term=params.search_term,
    )
    return OkResponse(data={"schools": page.items, "pagination": page.pagination})


@router.get("/{school_id}", response_model=OkResponse, summary="Get school")
async def get_school(
    school_id: SchoolIdPath,
    current_user: SchoolScopedUser,
    service: SchoolServiceDep,
) -> OkResponse:
    """Get school details."""
    return OkResponse(data=await service.get_school(school_id))


@router.put("/{school_id}", response_model=OkResponse, summary="Update school")
async def update_school(
    school_id: SchoolIdPath,
    data: SchoolUpdateRequest,
    current_user: SchoolScopedUser,
    service: SchoolServiceDep,
) -> OkResponse:
    """Update a school's name, address, contact info or status.

    Only the fields present in the body are changed.
    """
    school = await service.update_school(school_id, data.model_dump(exclude_none=True))
    return OkResponse(data=school_document(school))


@router.delete(
    "/{school_id}",
    response_model=OkResponse,
    summary="Delete school",
    description="Soft-delete a school together with its students and classrooms.",
)
async def delete_school(
    school_id: SchoolIdPath,
    current_user: SuperAdminUser,
    service: SchoolServiceDep,
) -> OkResponse:
    """Soft-delete a school and everything in it."""
    logger.info("Deleting school %s, by=%s", school_id, current_user.id)
    return OkResponse(data=await service.delete_school(school_id, deleted_by=current_user.id))


@router.get("/{school_id}/stats", response_model=OkResponse, summary="School statistics")
async def get_school_stats(
    school_id: SchoolIdPath,
    current_user: SchoolScopedUser,
    service: SchoolServiceDep,
) -> OkResponse:
    """School info with student and classroom statistics."""
    return OkResponse(data=await service.get_school_stats(school_id))


@router.get(
    "/{school_id}/deletion-status",
    response_model=OkResponse,
    summary="Deletion recovery report",
)
async def get_deletion_status(
    school_id: SchoolIdPath,
    current_user: SuperAdminUser,
    service: SchoolServiceDep,
) -> OkResponse:
    """Report how far a school's deletion got. Read-only."""
    return OkResponse(data=await service.recover_partial_delete(school_id))


@router.post(
    "/{school_id}/reconcile",
    response_model=OkResponse,
    summary="Reconcile classroom occupancy",
)
async def reconcile_occupancy(
    school_id: SchoolIdPath,
    current_user: SchoolScopedUser,
    service: SchoolServiceDep,
) -> OkResponse:
    """Recompute every classroom counter of the school from live counts."""
    return OkResponse(data=await service.reconcile_occupancy(school_id))
