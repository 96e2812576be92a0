# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classroom occupancy ledger.

``classrooms.current_students`` is a stored copy of the number of active
students assigned to a classroom. Every mutation goes through this module
as one conditional UPDATE, so a seat check and the increment that follows
it can never interleave with another request:

- claim_seat increments only while both the stored counter and the live
  count of active students are below capacity
- release_seat decrements only while the counter is above zero
- resize changes capacity only while occupancy fits the new capacity

When a conditional update matches no row the ledger re-reads the classroom
to report why (missing classroom vs. no seat left).

reconcile_classroom / reconcile_school recompute the stored counter from
the live count and report any drift they corrected.

The ledger never commits; the calling service owns the transaction.
"""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import ClassroomFullError, InvalidOperationError, ResourceNotFoundError
from src.infrastructure.database.models import Classroom, School, Student
from src.infrastructure.database.store import EntityStore
from src.utils.ids import parse_object_id

logger = logging.getLogger(__name__)


@dataclass
class DriftReport:
    """Outcome of reconciling one classroom's counter.

    Attributes:
        classroom_id: Reconciled classroom.
        stored: Counter value before reconciliation.
        actual: Live count of active students assigned to the classroom.
        corrected: Whether the counter was rewritten.
        over_capacity: More active students than seats; counter clamped.
    """

    classroom_id: str
    stored: int
    actual: int
    corrected: bool
    over_capacity: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "classroom_id": self.classroom_id,
            "stored": self.stored,
            "actual": self.actual,
            "corrected": self.corrected,
            "over_capacity": self.over_capacity,
        }


def _live_occupancy_expr() -> ColumnElement[int]:
    """Correlated count of active students seated in the updated classroom."""
    return (
        select(func.count(Student.id))
        .where(Student.classroom_id == Classroom.id, Student.status == "active")
        .scalar_subquery()
    )


class CapacityLedger:
    """Atomic seat accounting for classrooms.

    Attributes:
        _db: Async database session owned by the calling service.
        _store: Entity store over the same session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the ledger.

        Args:
            db: Async database session.
        """
        self._db = db
        self._store = EntityStore(db)

    async def claim_seat(self, classroom_id: str, school_id: str) -> Classroom:
        """Take one seat in a classroom of the given school.

        Args:
            classroom_id: Target classroom.
            school_id: School the classroom must belong to.

        Returns:
            The classroom with its updated counter.

        Raises:
            ResourceNotFoundError: If no non-deleted classroom with this id
                exists in the school.
            ClassroomFullError: If every seat is taken.
        """
        classroom_id = parse_object_id(classroom_id, "classroom_id")
        school_id = parse_object_id(school_id, "school_id")

        # Student rows staged by the caller must be visible to the live count
        await self._db.flush()
        result = await self._db.execute(
            update(Classroom)
            .where(
                Classroom.id == classroom_id,
                Classroom.school_id == school_id,
                Classroom.status != "deleted",
                Classroom.current_students < Classroom.capacity,
                _live_occupancy_expr() < Classroom.capacity,
            )
            .values(current_students=Classroom.current_students + 1)
            .execution_options(synchronize_session=False)
        )

        classroom = await self._store.get_classroom(classroom_id, school_id=school_id)
        if result.rowcount == 1 and classroom is not None:
            logger.debug(
                "Seat claimed in classroom %s (%d/%d)",
                classroom_id,
                classroom.current_students,
                classroom.capacity,
            )
            return classroom

        if classroom is None:
            raise ResourceNotFoundError(
                "Classroom not found",
                details={"classroom_id": classroom_id, "school_id": school_id},
            )

        raise ClassroomFullError(
            details={
                "classroom_id": classroom_id,
                "current_capacity": classroom.current_students,
                "max_capacity": classroom.capacity,
            }
        )

    async def release_seat(self, classroom_id: str | None) -> bool:
        """Give back one seat.

        Args:
            classroom_id: Classroom to decrement; None is a no-op.

        Returns:
            True if the counter was decremented, False if it was already
            zero (logged as drift) or there was nothing to release.
        """
        if classroom_id is None:
            return False

        await self._db.flush()
        result = await self._db.execute(
            update(Classroom)
            .where(Classroom.id == classroom_id, Classroom.current_students > 0)
            .values(current_students=Classroom.current_students - 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(
                "Seat release on classroom %s found counter at zero; run reconciliation",
                classroom_id,
            )
            return False
        return True

    async def resize(self, classroom_id: str, school_id: str, capacity: int) -> Classroom:
        """Change a classroom's capacity without dropping below occupancy.

        Args:
            classroom_id: Classroom to resize.
            school_id: Owning school.
            capacity: New capacity.

        Returns:
            The resized classroom.

        Raises:
            ResourceNotFoundError: If the classroom does not exist in the school.
            InvalidOperationError: If current occupancy exceeds the new capacity.
        """
        classroom_id = parse_object_id(classroom_id, "classroom_id")
        school_id = parse_object_id(school_id, "school_id")

        await self._db.flush()
        result = await self._db.execute(
            update(Classroom)
            .where(
                Classroom.id == classroom_id,
                Classroom.school_id == school_id,
                Classroom.status != "deleted",
                Classroom.current_students <= capacity,
                _live_occupancy_expr() <= capacity,
            )
            .values(capacity=capacity)
            .execution_options(synchronize_session=False)
        )

        classroom = await self._store.get_classroom(classroom_id, school_id=school_id)
        if classroom is None:
            raise ResourceNotFoundError(
                "Classroom not found",
                details={"classroom_id": classroom_id, "school_id": school_id},
            )
        if result.rowcount != 1:
            raise InvalidOperationError(
                "New capacity cannot be less than current student count",
                details={
                    "classroom_id": classroom_id,
                    "current_students": classroom.current_students,
                    "requested_capacity": capacity,
                },
            )
        return classroom

    async def live_occupancy(self, classroom_id: str) -> int:
        """Count active students assigned to a classroom."""
        return await self._store.count_students(status="active", classroom_id=classroom_id)

    async def reconcile_classroom(self, classroom_id: str) -> DriftReport:
        """Rewrite one classroom's counter from the live count.

        Raises:
            ResourceNotFoundError: If the classroom does not exist.
        """
        classroom = await self._store.get_classroom(classroom_id, include_deleted=True)
        if classroom is None:
            raise ResourceNotFoundError(
                "Classroom not found",
                details={"classroom_id": classroom_id},
            )

        stored = classroom.current_students
        actual = await self.live_occupancy(classroom.id)
        target = min(actual, classroom.capacity)
        report = DriftReport(
            classroom_id=classroom.id,
            stored=stored,
            actual=actual,
            corrected=stored != target,
            over_capacity=actual > classroom.capacity,
        )

        if report.corrected:
            await self._db.execute(
                update(Classroom)
                .where(Classroom.id == classroom.id)
                .values(current_students=target)
                .execution_options(synchronize_session=False)
            )
            logger.warning(
                "Occupancy drift corrected for classroom %s: stored=%d actual=%d",
                classroom.id,
                stored,
                actual,
            )
        if report.over_capacity:
            logger.warning(
                "Classroom %s has %d active students for %d seats",
                classroom.id,
                actual,
                classroom.capacity,
            )
        return report

    async def reconcile_school(self, school_id: str) -> list[DriftReport]:
        """Reconcile every non-deleted classroom of a school.

        Also refreshes the school's stored student and classroom counters.
        """
        school_id = parse_object_id(school_id, "school_id")
        reports = [
            await self.reconcile_classroom(classroom_id)
            for classroom_id in await self._store.list_classroom_ids(school_id)
        ]

        await self._db.execute(
            update(School)
            .where(School.id == school_id)
            .values(
                student_count=await self._store.count_students(school_id, status="active"),
                classroom_count=await self._store.count_classrooms(school_id, status="active"),
            )
            .execution_options(synchronize_session=False)
        )
        return reports
