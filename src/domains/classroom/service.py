# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classroom service for classroom management within a school.

This module provides the ClassroomService that handles:
- Classroom creation with per-school name uniqueness
- Listing and lookup of active classrooms
- Updates, including capacity changes through the seat ledger
- Occupancy-gated soft delete
- Classroom statistics

Example:
    >>> service = ClassroomService(ctx)
    >>> classroom = await service.create_classroom(school_id, "Room 101", 30, ["Projector"])
    >>> await service.update_classroom(classroom.id, school_id, {"capacity": 25})
"""

import logging
from typing import Any, Iterable

from sqlalchemy.exc import IntegrityError

from src.core.errors import (
    InvalidInputError,
    InvalidOperationError,
    ResourceExistsError,
    ResourceNotFoundError,
    SchoolInactiveError,
)
from src.domains.capacity import CapacityLedger
from src.domains.context import (
    Page,
    ServiceContext,
    build_pagination,
    normalize_paging,
    service_operation,
)
from src.infrastructure.database.models import (
    CLASSROOM_RESOURCES,
    MAX_CLASSROOM_CAPACITY,
    MIN_CLASSROOM_CAPACITY,
    Classroom,
)
from src.infrastructure.events import EventTypes
from src.utils.datetime import utc_now
from src.utils.ids import parse_object_id

logger = logging.getLogger(__name__)

CLASSROOM_UPDATE_FIELDS = ("name", "capacity", "resources", "status")
EDITABLE_CLASSROOM_STATUSES = ("active", "maintenance", "inactive")


class ClassroomService:
    """Service for managing classrooms.

    Attributes:
        _ctx: Shared service context.
        _db: Async database session.
        _store: Entity store.
        _ledger: Classroom seat ledger.
    """

    def __init__(self, ctx: ServiceContext) -> None:
        """Initialize the classroom service.

        Args:
            ctx: Shared service context.
        """
        self._ctx = ctx
        self._db = ctx.db
        self._store = ctx.store
        self._ledger = CapacityLedger(ctx.db)

    @service_operation("create_classroom")
    async def create_classroom(
        self,
        school_id: str,
        name: str,
        capacity: int,
        resources: Iterable[str] | None = None,
    ) -> Classroom:
        """Create an empty active classroom.

        Args:
            school_id: Owning school, which must be active.
            name: Classroom name, unique among the school's live classrooms.
            capacity: Number of seats (1-100).
            resources: Equipment from CLASSROOM_RESOURCES.

        Returns:
            The created classroom.

        Raises:
            SchoolInactiveError: If the school is missing or not active.
            ResourceExistsError: If the name is already used in the school.
            InvalidInputError: If capacity or resources are out of range.
        """
        school = await self._store.get_school(school_id)
        if school is None or not school.is_active:
            raise SchoolInactiveError(
                "School not found or inactive",
                details={"school_id": school_id},
            )

        name = self._clean_name(name)
        self._check_capacity(capacity)
        resources = self._clean_resources(resources or [])

        if await self._store.find_classroom_by_name(school.id, name) is not None:
            raise self._name_taken(school.id, name)

        classroom = Classroom(
            school_id=school.id,
            name=name,
            capacity=capacity,
            current_students=0,
            resources=resources,
            status="active",
        )
        self._store.add(classroom)
        try:
            await self._db.commit()
        except IntegrityError as e:
            raise self._name_taken(school.id, name) from e

        logger.info("Created classroom %s (%s) in school %s", classroom.id, name, school.id)
        await self._ctx.notify(
            EventTypes.Classroom.CREATED,
            {"classroom_id": classroom.id, "school_id": school.id},
        )
        return classroom

    @service_operation("get_classrooms")
    async def get_classrooms(self, school_id: str, page: int = 1, limit: int = 10) -> Page:
        """List a school's active classrooms, newest first.

        Raises:
            ResourceNotFoundError: If the school does not exist.
        """
        page, limit, offset = normalize_paging(page, limit)
        school = await self._store.get_school(school_id, include_deleted=True)
        if school is None:
            raise ResourceNotFoundError(
                "School not found",
                details={"resource": "School", "id": school_id},
            )

        classrooms, total = await self._store.list_classrooms(
            school.id,
            offset=offset,
            limit=limit,
        )
        return Page(classrooms, build_pagination(page, limit, total))

    @service_operation("get_classroom")
    async def get_classroom(self, classroom_id: str, school_id: str) -> Classroom:
        """Get an active classroom of a school.

        Raises:
            ResourceNotFoundError: If no active classroom matches.
        """
        classroom = await self._store.get_classroom(
            classroom_id,
            school_id=school_id,
            statuses=("active",),
        )
        if classroom is None:
            raise self._not_found(classroom_id, school_id)
        return classroom

    @service_operation("update_classroom")
    async def update_classroom(
        self,
        classroom_id: str,
        school_id: str,
        updates: dict[str, Any],
    ) -> Classroom:
        """Update a classroom's name, capacity, resources or status.

        A capacity below the current occupancy is rejected and leaves the
        classroom unchanged.

        Raises:
            InvalidInputError: If no updatable field is given or a value is
                out of range.
            ResourceNotFoundError: If the classroom does not exist.
            ResourceExistsError: If the new name is taken in the school.
            InvalidOperationError: If the new capacity is below occupancy.
        """
        changes = {k: v for k, v in updates.items() if k in CLASSROOM_UPDATE_FIELDS}
        if not changes:
            raise InvalidInputError(
                "No valid update fields provided",
                details={"allowed_fields": list(CLASSROOM_UPDATE_FIELDS)},
            )

        if "name" in changes:
            changes["name"] = self._clean_name(changes["name"])
        if "capacity" in changes:
            self._check_capacity(changes["capacity"])
        if "resources" in changes:
            changes["resources"] = self._clean_resources(changes["resources"] or [])
        if "status" in changes and changes["status"] not in EDITABLE_CLASSROOM_STATUSES:
            raise InvalidInputError(
                "Invalid classroom status",
                details={"status": changes["status"], "allowed": list(EDITABLE_CLASSROOM_STATUSES)},
            )

        classroom = await self._store.get_classroom(classroom_id, school_id=school_id)
        if classroom is None:
            raise self._not_found(classroom_id, school_id)

        if "name" in changes and changes["name"] != classroom.name:
            existing = await self._store.find_classroom_by_name(
                classroom.school_id,
                changes["name"],
                exclude_id=classroom.id,
            )
            if existing is not None:
                raise self._name_taken(classroom.school_id, changes["name"])

        if "capacity" in changes and changes["capacity"] != classroom.capacity:
            classroom = await self._ledger.resize(
                classroom.id,
                classroom.school_id,
                changes["capacity"],
            )

        if "name" in changes:
            classroom.name = changes["name"]
        if "resources" in changes:
            classroom.resources = changes["resources"]
        if "status" in changes:
            classroom.status = changes["status"]
        classroom.updated_at = utc_now()

        try:
            await self._db.commit()
        except IntegrityError as e:
            raise self._name_taken(classroom.school_id, changes.get("name", "")) from e

        logger.info("Updated classroom %s: %s", classroom.id, ", ".join(sorted(changes)))
        await self._ctx.notify(
            EventTypes.Classroom.UPDATED,
            {"classroom_id": classroom.id, "school_id": classroom.school_id, "updates": changes},
        )
        return classroom

    @service_operation("delete_classroom")
    async def delete_classroom(self, classroom_id: str, school_id: str) -> dict[str, bool]:
        """Soft-delete an empty classroom.

        Occupancy is checked against both the live count and the stored
        counter, and the delete itself only applies while the counter is zero.

        Raises:
            ResourceNotFoundError: If the classroom does not exist.
            InvalidOperationError: If any student occupies the classroom.
        """
        classroom = await self._store.get_classroom(classroom_id, school_id=school_id)
        if classroom is None:
            raise self._not_found(classroom_id, school_id)

        live = await self._ledger.live_occupancy(classroom.id)
        occupied = max(live, classroom.current_students)
        if occupied > 0:
            raise InvalidOperationError(
                "Cannot delete classroom with active students",
                details={"classroom_id": classroom.id, "current_students": occupied},
            )

        deleted = await self._store.soft_delete_empty_classroom(
            classroom.id,
            deleted_at=utc_now(),
            updated_at=utc_now(),
        )
        if not deleted:
            refreshed = await self._store.get_classroom(classroom.id, include_deleted=True)
            raise InvalidOperationError(
                "Cannot delete classroom with active students",
                details={
                    "classroom_id": classroom.id,
                    "current_students": refreshed.current_students if refreshed else None,
                },
            )

        await self._db.commit()

        logger.info("Deleted classroom %s in school %s", classroom.id, classroom.school_id)
        await self._ctx.notify(
            EventTypes.Classroom.DELETED,
            {"classroom_id": classroom.id, "school_id": classroom.school_id},
        )
        return {"success": True}

    @service_operation("get_classroom_stats")
    async def get_classroom_stats(self, school_id: str) -> dict[str, Any]:
        """Classroom counts by status and seat usage for one school.

        Raises:
            ResourceNotFoundError: If the school does not exist.
        """
        school = await self._store.get_school(school_id)
        if school is None:
            raise ResourceNotFoundError(
                "School not found",
                details={"resource": "School", "id": school_id},
            )

        by_status = await self._store.classroom_status_counts(school.id)
        by_status.pop("deleted", None)
        total = sum(by_status.values())
        active = by_status.get("active", 0)

        return {
            "school_id": school.id,
            "total": total,
            "active": active,
            "inactive": total - active,
            "by_status": by_status,
            "capacity": await self._store.capacity_totals(school.id),
        }

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _not_found(classroom_id: str, school_id: str) -> ResourceNotFoundError:
        return ResourceNotFoundError(
            "Classroom not found",
            details={"resource": "Classroom", "id": classroom_id, "school_id": school_id},
        )

    @staticmethod
    def _name_taken(school_id: str, name: str) -> ResourceExistsError:
        return ResourceExistsError(
            "Classroom with this name already exists",
            details={"resource": "Classroom", "field": "name", "value": name, "school_id": school_id},
        )

    @staticmethod
    def _clean_name(name: Any) -> str:
        cleaned = name.strip() if isinstance(name, str) else ""
        if not cleaned:
            raise InvalidInputError("Classroom name is required", details={"field": "name"})
        return cleaned

    @staticmethod
    def _check_capacity(capacity: Any) -> None:
        if (
            isinstance(capacity, bool)
            or not isinstance(capacity, int)
            or not MIN_CLASSROOM_CAPACITY <= capacity <= MAX_CLASSROOM_CAPACITY
        ):
            raise InvalidInputError(
                f"Capacity must be between {MIN_CLASSROOM_CAPACITY} and {MAX_CLASSROOM_CAPACITY}",
                details={"capacity": capacity},
            )

    @staticmethod
    def _clean_resources(resources: Iterable[str]) -> list[str]:
        cleaned = list(dict.fromkeys(resources))
        unknown = [r for r in cleaned if r not in CLASSROOM_RESOURCES]
        if unknown:
            raise InvalidInputError(
                "Unknown classroom resources",
                details={"resources": unknown, "allowed": list(CLASSROOM_RESOURCES)},
            )
        return cleaned
