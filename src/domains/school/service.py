# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School service for the tenant school lifecycle.

This module provides the SchoolService that handles:
- School CRUD operations with case-insensitive name uniqueness
- Read-through caching of school documents
- School statistics
- Cascading soft delete and the partial-delete diagnostic
- Occupancy reconciliation for a school's classrooms

The cascade runs students, then classrooms, then the school inside one
transaction. ``deletion_started_at`` is written first and kept afterwards,
so the recovery report can tell an interrupted deletion from a finished one.

Example:
    >>> service = SchoolService(ctx)
    >>> school = await service.create_school(
    ...     "Springfield Elementary",
    ...     {"street": "1 Main St", "city": "Springfield", "state": "IL", "zip_code": "62701"},
    ...     {"email": "office@springfield.edu", "phone": "+15555550100"},
    ...     admin_id=None,
    ... )
    >>> summary = await service.delete_school(school.id)
"""

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError

from src.core.errors import (
    InvalidInputError,
    ResourceExistsError,
    ResourceNotFoundError,
)
from src.domains.capacity import CapacityLedger
from src.domains.classroom.service import ClassroomService
from src.domains.context import (
    Page,
    ServiceContext,
    build_pagination,
    normalize_paging,
    service_operation,
)
from src.domains.student.service import StudentService
from src.infrastructure.database.models import SCHOOL_STATUSES, School
from src.infrastructure.events import EventTypes
from src.utils.datetime import format_iso, utc_now
from src.utils.ids import parse_object_id

logger = logging.getLogger(__name__)

SCHOOL_UPDATE_FIELDS = ("name", "address", "contact_info", "status")
EDITABLE_SCHOOL_STATUSES = ("active", "inactive")
ADDRESS_FIELDS = ("street", "city", "state", "zip_code")
CONTACT_FIELDS = ("email", "phone")
SORT_ORDERS = ("asc", "desc")

SYSTEM_ACTOR = "SYSTEM"
DELETION_REASON = "SCHOOL_DELETE"
DELETION_ORDER = ("students", "classrooms", "school")


def school_document(school: School) -> dict[str, Any]:
    """JSON-safe school representation shared by the cache and the API."""
    doc = school.to_dict()
    for key in ("created_at", "updated_at", "deleted_at"):
        doc[key] = format_iso(doc[key])
    return doc


class SchoolService:
    """Service for managing tenant schools.

    Handles school CRUD, statistics, the cascading soft delete and its
    recovery report.

    Attributes:
        _ctx: Shared service context.
        _db: Async database session.
        _store: Entity store.
        _cache: School document cache.
    """

    def __init__(self, ctx: ServiceContext) -> None:
        """Initialize the school service.

        Args:
            ctx: Shared service context.
        """
        self._ctx = ctx
        self._db = ctx.db
        self._store = ctx.store
        self._cache = ctx.cache

    @service_operation("validate_school_exists")
    async def validate_school_exists(
        self,
        school_id: str,
        include_deleted: bool = False,
    ) -> School:
        """Get a school or fail.

        Args:
            school_id: School identifier.
            include_deleted: Also accept soft-deleted schools.

        Raises:
            ResourceNotFoundError: If no matching school exists.
        """
        school = await self._store.get_school(school_id, include_deleted=include_deleted)
        if school is None:
            raise ResourceNotFoundError(
                "School not found",
                details={"resource": "School", "id": school_id},
            )
        return school

    @service_operation("create_school")
    async def create_school(
        self,
        name: str,
        address: dict[str, Any],
        contact_info: dict[str, Any],
        admin_id: str | None = None,
    ) -> School:
        """Create a new active school.

        Args:
            name: School name, unique case-insensitively across all schools.
            address: street, city, state and zip_code.
            contact_info: email and phone.
            admin_id: Administrator creating the school.

        Returns:
            The created school.

        Raises:
            InvalidInputError: If the name, address or contact info is incomplete.
            ResourceExistsError: If the name is already taken.
        """
        name = self._clean_name(name)
        address = self._clean_fields(address, ADDRESS_FIELDS, "address")
        contact_info = self._clean_fields(contact_info, CONTACT_FIELDS, "contact_info")
        if admin_id is not None:
            admin_id = parse_object_id(admin_id, "admin_id")

        if await self._store.find_school_by_name(name) is not None:
            raise self._name_taken(name)

        school = School(
            name=name,
            street=address["street"],
            city=address["city"],
            state=address["state"],
            zip_code=address["zip_code"],
            email=contact_info["email"].lower(),
            phone=contact_info["phone"],
            status="active",
            admin_id=admin_id,
            created_by=admin_id,
            student_count=0,
            classroom_count=0,
            active_teacher_count=0,
        )
        self._store.add(school)
        try:
            await self._db.commit()
        except IntegrityError as e:
            raise self._name_taken(name) from e

        await self._cache.set(school_document(school))

        logger.info("Created school %s (%s)", school.id, school.name)
        await self._ctx.notify(
            EventTypes.School.CREATED,
            {"school_id": school.id, "admin_id": admin_id, "school_name": school.name},
        )
        return school

    @service_operation("get_school")
    async def get_school(self, school_id: str) -> dict[str, Any]:
        """Get a school document, served from cache when possible.

        Raises:
            ResourceNotFoundError: If the school does not exist or is deleted.
        """
        school_id = parse_object_id(school_id, "school_id")

        cached = await self._cache.get(school_id)
        if cached is not None and cached.get("status") != "deleted":
            return cached

        school = await self._store.get_school(school_id)
        if school is None:
            raise ResourceNotFoundError(
                "School not found",
                details={"resource": "School", "id": school_id},
            )

        doc = school_document(school)
        await self._cache.set(doc)
        return doc

    @service_operation("get_schools")
    async def get_schools(
        self,
        page: int = 1,
        limit: int = 10,
        status: str | None = "active",
        sort_by: str = "created_at",
        sort_order: str = "desc",
        search_term: str = "",
    ) -> Page:
        """List schools with search, sorting and live counts.

        Args:
            page: 1-based page number.
            limit: Page size.
            status: Status filter; empty for every non-deleted school.
            sort_by: name, created_at or student_count.
            sort_order: asc or desc.
            search_term: Case-insensitive substring of name or city.

        Returns:
            Page of school documents whose metadata carries live active
            student and classroom counts.

        Raises:
            InvalidInputError: If sorting or filter parameters are invalid.
        """
        page, limit, offset = normalize_paging(page, limit)
        if sort_order not in SORT_ORDERS:
            raise InvalidInputError(
                "Invalid sort order",
                details={"sort_order": sort_order, "allowed": list(SORT_ORDERS)},
            )
        if status and status not in SCHOOL_STATUSES:
            raise InvalidInputError(
                "Invalid status filter",
                details={"status": status, "allowed": list(SCHOOL_STATUSES)},
            )

        schools, total = await self._store.list_schools(
            status=status or None,
            search_term=search_term.strip() or None,
            sort_by=sort_by,
            descending=sort_order == "desc",
            offset=offset,
            limit=limit,
        )

        counts = await self._store.live_counts_by_school([s.id for s in schools])
        items = []
        for school in schools:
            doc = school_document(school)
            live = counts[school.id]
            doc["metadata"] = {
                **doc["metadata"],
                "student_count": live["active_students"],
                "classroom_count": live["active_classrooms"],
            }
            items.append(doc)

        return Page(items, build_pagination(page, limit, total))

    @service_operation("get_school_stats")
    async def get_school_stats(self, school_id: str) -> dict[str, Any]:
        """School info with student and classroom statistics.

        Raises:
            ResourceNotFoundError: If the school does not exist or is deleted.
        """
        school = await self.validate_school_exists(school_id)

        student_stats = await StudentService(self._ctx).get_student_stats(school.id)
        classroom_stats = await ClassroomService(self._ctx).get_classroom_stats(school.id)

        return {
            "school_info": {
                "id": school.id,
                "name": school.name,
                "status": school.status,
                "created_at": format_iso(school.created_at),
                "last_updated": format_iso(school.updated_at),
                "contact_info": school.contact_info,
                "address": school.address,
            },
            "student_stats": student_stats,
            "classroom_stats": classroom_stats,
        }

    @service_operation("update_school")
    async def update_school(self, school_id: str, updates: dict[str, Any]) -> School:
        """Update a school's name, address, contact info or status.

        Address and contact info are merged field by field.

        Raises:
            InvalidInputError: If no updatable field is given or a value is invalid.
            ResourceNotFoundError: If the school does not exist or is deleted.
            ResourceExistsError: If the new name is taken.
        """
        changes = {k: v for k, v in updates.items() if k in SCHOOL_UPDATE_FIELDS}
        if not changes:
            raise InvalidInputError(
                "No valid update fields provided",
                details={"allowed_fields": list(SCHOOL_UPDATE_FIELDS)},
            )
        if "status" in changes and changes["status"] not in EDITABLE_SCHOOL_STATUSES:
            raise InvalidInputError(
                "Invalid school status",
                details={"status": changes["status"], "allowed": list(EDITABLE_SCHOOL_STATUSES)},
            )

        school = await self.validate_school_exists(school_id)

        if "name" in changes:
            changes["name"] = self._clean_name(changes["name"])
            if await self._store.find_school_by_name(changes["name"], exclude_id=school.id):
                raise self._name_taken(changes["name"])
            school.name = changes["name"]

        if "address" in changes:
            address = self._clean_fields(
                {**school.address, **(changes["address"] or {})},
                ADDRESS_FIELDS,
                "address",
            )
            school.street = address["street"]
            school.city = address["city"]
            school.state = address["state"]
            school.zip_code = address["zip_code"]
            changes["address"] = address

        if "contact_info" in changes:
            contact_info = self._clean_fields(
                {**school.contact_info, **(changes["contact_info"] or {})},
                CONTACT_FIELDS,
                "contact_info",
            )
            school.email = contact_info["email"].lower()
            school.phone = contact_info["phone"]
            changes["contact_info"] = contact_info

        if "status" in changes:
            school.status = changes["status"]

        school.updated_at = utc_now()
        try:
            await self._db.commit()
        except IntegrityError as e:
            raise self._name_taken(changes.get("name", school.name)) from e

        await self._cache.invalidate(school.id)

        logger.info("Updated school %s: %s", school.id, ", ".join(sorted(changes)))
        await self._ctx.notify(
            EventTypes.School.UPDATED,
            {"school_id": school.id, "updates": changes},
        )
        return school

    @service_operation("delete_school")
    async def delete_school(
        self,
        school_id: str,
        deleted_by: str | None = None,
    ) -> dict[str, Any]:
        """Soft-delete a school with its students and classrooms.

        The deletion_started_at marker is committed on its own first. The
        cascade then runs in a second transaction, so a cascade that fails
        leaves the marker behind for recover_partial_delete to report.

        Args:
            school_id: School to delete.
            deleted_by: Acting user id; recorded as SYSTEM when omitted.

        Returns:
            Dictionary with success, message, deletion_summary and the
            deleted school document.

        Raises:
            ResourceNotFoundError: If the school does not exist or is deleted.
        """
        school = await self.validate_school_exists(school_id)

        before = {
            "students": await self._store.count_students(school.id, exclude_status="deleted"),
            "classrooms": await self._store.count_classrooms(school.id, exclude_status="deleted"),
        }

        now = utc_now()
        school.deletion_started_at = now
        await self._db.commit()

        students_deleted = await self._store.soft_delete_students(
            school.id,
            deleted_at=now,
            updated_at=now,
        )
        classrooms_deleted = await self._store.soft_delete_classrooms(
            school.id,
            current_students=0,
            deleted_at=now,
            updated_at=now,
        )

        previous_status = school.status
        school.status = "deleted"
        school.deleted_at = now
        school.updated_at = now
        school.deleted_by = deleted_by or SYSTEM_ACTOR
        school.deletion_reason = DELETION_REASON

        await self._db.commit()

        await self._cache.invalidate(school.id)

        deletion_summary = {
            "students": {"before": before["students"], "deleted": students_deleted},
            "classrooms": {"before": before["classrooms"], "deleted": classrooms_deleted},
        }
        logger.info(
            "Deleted school %s: %d students, %d classrooms",
            school.id,
            students_deleted,
            classrooms_deleted,
        )
        await self._ctx.notify(
            EventTypes.School.DELETED,
            {
                "school_id": school.id,
                "school_name": school.name,
                "timestamp": now.isoformat(),
                "deletion_summary": deletion_summary,
                "metadata": {
                    "previous_status": previous_status,
                    "deletion_order": list(DELETION_ORDER),
                },
            },
        )

        return {
            "success": True,
            "message": "School and related entities successfully deleted",
            "deletion_summary": deletion_summary,
            "school": school_document(school),
        }

    @service_operation("recover_partial_delete")
    async def recover_partial_delete(self, school_id: str) -> dict[str, Any]:
        """Report how far a school's deletion got. Never repairs anything.

        Returns:
            Dictionary with per-table states ({name, deleted_count,
            total_count}) and the flags partially_deleted, fully_deleted,
            recovery_needed and deletion_in_progress.

        Raises:
            ResourceNotFoundError: If the school does not exist at all.
        """
        school = await self.validate_school_exists(school_id, include_deleted=True)

        student_counts = await self._store.student_status_counts(school.id)
        classroom_counts = await self._store.classroom_status_counts(school.id)

        states = [
            {
                "name": "schools",
                "deleted_count": 1 if school.status == "deleted" else 0,
                "total_count": 1,
            },
            {
                "name": "students",
                "deleted_count": student_counts.get("deleted", 0),
                "total_count": sum(student_counts.values()),
            },
            {
                "name": "classrooms",
                "deleted_count": classroom_counts.get("deleted", 0),
                "total_count": sum(classroom_counts.values()),
            },
        ]

        school_deleted = school.status == "deleted"
        children_remaining = any(
            s["deleted_count"] < s["total_count"] for s in states if s["name"] != "schools"
        )
        deletion_in_progress = school.deletion_started_at is not None and not school_deleted

        report = {
            "school_id": school.id,
            "states": states,
            "partially_deleted": any(
                0 < s["deleted_count"] < s["total_count"] for s in states
            ),
            "fully_deleted": all(s["deleted_count"] == s["total_count"] for s in states),
            "recovery_needed": deletion_in_progress or (school_deleted and children_remaining),
            "deletion_in_progress": deletion_in_progress,
        }
        if report["recovery_needed"]:
            logger.warning("School %s needs deletion recovery: %s", school.id, states)
        return report

    @service_operation("reconcile_occupancy")
    async def reconcile_occupancy(self, school_id: str) -> dict[str, Any]:
        """Recompute every classroom counter of a school from live counts.

        Raises:
            ResourceNotFoundError: If the school does not exist or is deleted.
        """
        school = await self.validate_school_exists(school_id)

        reports = await CapacityLedger(self._db).reconcile_school(school.id)
        await self._db.commit()
        await self._cache.invalidate(school.id)

        corrected = [r for r in reports if r.corrected]
        for report in corrected:
            await self._ctx.notify(
                EventTypes.Classroom.RECONCILED,
                {"school_id": school.id, **report.to_dict()},
            )

        logger.info(
            "Reconciled %d classrooms in school %s (%d corrected)",
            len(reports),
            school.id,
            len(corrected),
        )
        return {
            "school_id": school.id,
            "classrooms": [r.to_dict() for r in reports],
            "corrected": len(corrected),
        }

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _name_taken(name: str) -> ResourceExistsError:
        return ResourceExistsError(
            "School with this name already exists",
            details={"resource": "School", "field": "name", "value": name},
        )

    @staticmethod
    def _clean_name(name: Any) -> str:
        cleaned = name.strip() if isinstance(name, str) else ""
        if not cleaned:
            raise InvalidInputError("School name is required", details={"field": "name"})
        return cleaned

    @staticmethod
    def _clean_fields(
        values: dict[str, Any] | None,
        fields: tuple[str, ...],
        group: str,
    ) -> dict[str, str]:
        values = values or {}
        cleaned: dict[str, str] = {}
        for name in fields:
            value = values.get(name)
            value = value.strip() if isinstance(value, str) else ""
            if not value:
                raise InvalidInputError(
                    f"{name} is required in {group}",
                    details={"field": f"{group}.{name}"},
                )
            cleaned[name] = value
        return cleaned
