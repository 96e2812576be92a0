# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student service for enrollment, transfers and deactivation.

This module provides the StudentService that handles:
- Enrollment with optional classroom placement
- Student listing, lookup and updates
- Cross-school transfers with history
- Deactivation and per-school statistics

Every write runs in the caller's session and commits once, so the student
row and the classroom seat counters change together or not at all. Seat
accounting is delegated to CapacityLedger.

Example:
    >>> service = StudentService(ServiceContext(db, cache, event_bus))
    >>> student = await service.enroll_student(
    ...     school_id, "Ada", "Lovelace", "ada@example.com", 7, classroom_id
    ... )
    >>> await service.transfer_student(student.id, school_id, other_id, "Relocation")
"""

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError

from src.core.errors import (
    InvalidInputError,
    InvalidTransferError,
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
from src.infrastructure.database.models import School, Student
from src.infrastructure.events import EventTypes
from src.utils.datetime import utc_now
from src.utils.ids import parse_object_id

logger = logging.getLogger(__name__)

STUDENT_UPDATE_FIELDS = ("first_name", "last_name", "grade", "classroom_id")
MIN_GRADE = 1
MAX_GRADE = 12


class StudentService:
    """Service for the student lifecycle.

    Attributes:
        _ctx: Shared service context.
        _db: Async database session.
        _store: Entity store.
        _ledger: Classroom seat ledger.
    """

    def __init__(self, ctx: ServiceContext) -> None:
        """Initialize the student service.

        Args:
            ctx: Shared service context.
        """
        self._ctx = ctx
        self._db = ctx.db
        self._store = ctx.store
        self._ledger = CapacityLedger(ctx.db)

    # =========================================================================
    # Commands
    # =========================================================================

    @service_operation("enroll_student")
    async def enroll_student(
        self,
        school_id: str,
        first_name: str,
        last_name: str,
        email: str,
        grade: int,
        classroom_id: str | None = None,
    ) -> Student:
        """Enroll a new active student, optionally into a classroom.

        Args:
            school_id: School to enroll into.
            first_name: Given name.
            last_name: Family name.
            email: Contact email, unique among active students.
            grade: Grade level 1-12.
            classroom_id: Classroom to seat the student in.

        Returns:
            The created student.

        Raises:
            ResourceNotFoundError: If the school or classroom does not exist.
            SchoolInactiveError: If the school is not active.
            ResourceExistsError: If an active student already uses the email.
            ClassroomFullError: If the classroom has no free seat.
        """
        school = await self._get_active_school(school_id)
        self._check_grade(grade)
        email = email.strip().lower()

        if await self._store.find_active_student_by_email(email) is not None:
            raise ResourceExistsError(
                "Student with this email already exists",
                details={"resource": "Student", "field": "email", "value": email},
            )

        student = Student(
            school_id=school.id,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            email=email,
            grade=grade,
            status="active",
            transfer_history=[],
        )
        self._store.add(student)
        await self._flush_unique_email(email)

        if classroom_id is not None:
            classroom = await self._ledger.claim_seat(classroom_id, school.id)
            student.classroom_id = classroom.id

        await self._db.commit()

        logger.info(
            "Enrolled student %s in school %s (classroom=%s)",
            student.id,
            school.id,
            student.classroom_id,
        )
        await self._ctx.notify(
            EventTypes.Student.ENROLLED,
            {
                "student_id": student.id,
                "school_id": school.id,
                "classroom_id": student.classroom_id,
            },
        )
        return student

    @service_operation("update_student")
    async def update_student(
        self,
        student_id: str,
        school_id: str,
        updates: dict[str, Any],
    ) -> Student:
        """Update an active student's profile or classroom.

        Only first_name, last_name, grade and classroom_id are applied; other
        keys are ignored. A classroom_id of None unassigns the student.

        Raises:
            InvalidInputError: If no updatable field is given.
            ResourceNotFoundError: If the student is not active in the school,
                or the new classroom does not exist there.
            ClassroomFullError: If the new classroom has no free seat.
        """
        changes = {k: v for k, v in updates.items() if k in STUDENT_UPDATE_FIELDS}
        if not changes:
            raise InvalidInputError(
                "No valid update fields provided",
                details={"allowed_fields": list(STUDENT_UPDATE_FIELDS)},
            )

        if "grade" in changes:
            self._check_grade(changes["grade"])

        student = await self._get_active_student(student_id, school_id)

        if "classroom_id" in changes:
            new_classroom_id = changes["classroom_id"]
            if new_classroom_id is not None:
                new_classroom_id = parse_object_id(new_classroom_id, "classroom_id")
            changes["classroom_id"] = new_classroom_id

            if new_classroom_id != student.classroom_id:
                # A failed claim must leave the old seat held
                if new_classroom_id is not None:
                    await self._ledger.claim_seat(new_classroom_id, student.school_id)
                await self._ledger.release_seat(student.classroom_id)
                student.classroom_id = new_classroom_id

        if "grade" in changes:
            student.grade = changes["grade"]
        if "first_name" in changes:
            student.first_name = changes["first_name"].strip()
        if "last_name" in changes:
            student.last_name = changes["last_name"].strip()
        student.updated_at = utc_now()

        await self._db.commit()

        logger.info("Updated student %s: %s", student.id, ", ".join(sorted(changes)))
        await self._ctx.notify(
            EventTypes.Student.UPDATED,
            {"student_id": student.id, "school_id": student.school_id, "updates": changes},
        )
        return student

    @service_operation("transfer_student")
    async def transfer_student(
        self,
        student_id: str,
        from_school_id: str,
        to_school_id: str,
        reason: str,
    ) -> Student:
        """Move an active student to another active school.

        The student's seat is released and the classroom cleared. A history
        record is appended and the student stays active in the new school.

        Raises:
            InvalidTransferError: If the student is not active in the source
                school, or source and target are the same school.
            SchoolInactiveError: If the target school is missing or inactive.
        """
        from_school_id = parse_object_id(from_school_id, "from_school_id")
        to_school_id = parse_object_id(to_school_id, "to_school_id")

        student = await self._store.get_student(student_id, school_id=from_school_id)
        if student is None:
            raise InvalidTransferError(
                "Student not found in source school",
                details={"student_id": student_id, "from_school_id": from_school_id},
            )
        if from_school_id == to_school_id:
            raise InvalidTransferError(
                "Source and target school are the same",
                details={"student_id": student.id, "school_id": to_school_id},
            )

        target = await self._store.get_school(to_school_id)
        if target is None or not target.is_active:
            raise SchoolInactiveError(
                "Target school is not active",
                details={"school_id": to_school_id},
            )

        previous_classroom_id = student.classroom_id
        await self._ledger.release_seat(previous_classroom_id)

        now = utc_now()
        student.transfer_history = [
            *(student.transfer_history or []),
            {
                "from_school_id": from_school_id,
                "to_school_id": to_school_id,
                "from_classroom_id": previous_classroom_id,
                "date": now.isoformat(),
                "reason": reason,
            },
        ]
        student.school_id = to_school_id
        student.classroom_id = None
        student.last_transfer_date = now
        student.last_transfer_reason = reason
        student.updated_at = now

        await self._db.commit()

        logger.info(
            "Transferred student %s from school %s to %s",
            student.id,
            from_school_id,
            to_school_id,
        )
        await self._ctx.notify(
            EventTypes.Student.TRANSFERRED,
            {
                "student_id": student.id,
                "from_school_id": from_school_id,
                "to_school_id": to_school_id,
                "reason": reason,
            },
        )
        return student

    @service_operation("deactivate_student")
    async def deactivate_student(
        self,
        student_id: str,
        school_id: str,
        reason: str,
    ) -> dict[str, bool]:
        """Deactivate an active student and free their seat.

        Raises:
            ResourceNotFoundError: If the student is not active in the school.
                A second call on the same student therefore fails.
        """
        student = await self._get_active_student(student_id, school_id)

        await self._ledger.release_seat(student.classroom_id)

        now = utc_now()
        student.status = "inactive"
        student.deactivation_reason = reason
        student.deactivated_at = now
        student.updated_at = now

        await self._db.commit()

        logger.info("Deactivated student %s (%s)", student.id, reason)
        await self._ctx.notify(
            EventTypes.Student.DEACTIVATED,
            {"student_id": student.id, "school_id": student.school_id, "reason": reason},
        )
        return {"success": True}

    # =========================================================================
    # Queries
    # =========================================================================

    @service_operation("get_students")
    async def get_students(
        self,
        school_id: str,
        classroom_id: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page:
        """List a school's active students, most recently enrolled first."""
        page, limit, offset = normalize_paging(page, limit)
        school_id = parse_object_id(school_id, "school_id")
        if classroom_id is not None:
            classroom_id = parse_object_id(classroom_id, "classroom_id")

        students, total = await self._store.list_students(
            school_id,
            classroom_id=classroom_id,
            offset=offset,
            limit=limit,
        )
        return Page(students, build_pagination(page, limit, total))

    @service_operation("get_student")
    async def get_student(self, student_id: str, school_id: str) -> Student:
        """Get an active student of a school.

        Raises:
            ResourceNotFoundError: If no active student matches.
        """
        return await self._get_active_student(student_id, school_id)

    @service_operation("get_student_stats")
    async def get_student_stats(self, school_id: str) -> dict[str, Any]:
        """Student counts by status and grade for one school.

        Raises:
            ResourceNotFoundError: If the school does not exist.
        """
        school = await self._store.get_school(school_id)
        if school is None:
            raise ResourceNotFoundError(
                "School not found",
                details={"resource": "School", "id": school_id},
            )

        by_status = await self._store.student_status_counts(school.id)
        grades = await self._store.grade_distribution(school.id)
        by_status.pop("deleted", None)

        return {
            "school_id": school.id,
            "total": sum(by_status.values()),
            "active": by_status.get("active", 0),
            "inactive": by_status.get("inactive", 0),
            "by_status": by_status,
            "grade_distribution": grades,
        }

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_active_school(self, school_id: str) -> School:
        school = await self._store.get_school(school_id)
        if school is None:
            raise ResourceNotFoundError(
                "School not found",
                details={"resource": "School", "id": school_id},
            )
        if not school.is_active:
            raise SchoolInactiveError(details={"school_id": school.id, "status": school.status})
        return school

    async def _get_active_student(self, student_id: str, school_id: str) -> Student:
        student = await self._store.get_student(student_id, school_id=school_id)
        if student is None:
            raise ResourceNotFoundError(
                "Student not found",
                details={"resource": "Student", "id": student_id},
            )
        return student

    async def _flush_unique_email(self, email: str) -> None:
        try:
            await self._store.flush()
        except IntegrityError as e:
            raise ResourceExistsError(
                "Student with this email already exists",
                details={"resource": "Student", "field": "email", "value": email},
            ) from e

    @staticmethod
    def _check_grade(grade: Any) -> None:
        if isinstance(grade, bool) or not isinstance(grade, int):
            raise InvalidInputError("Grade must be an integer", details={"grade": grade})
        if not MIN_GRADE <= grade <= MAX_GRADE:
            raise InvalidInputError(
                f"Grade must be between {MIN_GRADE} and {MAX_GRADE}",
                details={"grade": grade},
            )
