# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Typed accessors over the schools, classrooms, students and users tables.

EntityStore holds no business rules. It validates identifiers, builds the
queries the services need and returns ORM entities or plain counts. Bulk
updates run as single UPDATE statements; entity getters always refresh
from the database so counters changed by those statements are visible.

Example:
    >>> store = EntityStore(session)
    >>> school = await store.get_school(school_id)
    >>> total = await store.count_students(school_id, status="active")
"""

from typing import Any, Iterable, Sequence, TypeVar

from sqlalchemy import Select, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import InvalidInputError
from src.infrastructure.database.models import Classroom, School, Student, User
from src.utils.ids import parse_object_id

T = TypeVar("T")

SCHOOL_SORT_FIELDS = {
    "name": "name",
    "created_at": "created_at",
    "createdAt": "created_at",
    "student_count": "student_count",
    "studentCount": "student_count",
}


class EntityStore:
    """Gateway over the four persisted collections.

    Attributes:
        _db: Async database session shared with the calling service.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the store.

        Args:
            db: Async database session.
        """
        self._db = db

    @property
    def session(self) -> AsyncSession:
        """The underlying session."""
        return self._db

    # =========================================================================
    # Generic helpers
    # =========================================================================

    def add(self, entity: object) -> None:
        """Stage a new entity for insertion."""
        self._db.add(entity)

    async def flush(self) -> None:
        """Send pending changes to the database without committing."""
        await self._db.flush()

    async def _one(self, stmt: Select[tuple[T]]) -> T | None:
        result = await self._db.execute(stmt.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def _page(
        self,
        stmt: Select[Any],
        offset: int,
        limit: int,
    ) -> tuple[list[Any], int]:
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = (await self._db.execute(count_stmt)).scalar() or 0

        result = await self._db.execute(
            stmt.offset(offset).limit(limit).execution_options(populate_existing=True)
        )
        return list(result.scalars().all()), total

    async def _count(self, stmt: Select[Any]) -> int:
        result = await self._db.execute(stmt)
        return result.scalar() or 0

    # =========================================================================
    # Schools
    # =========================================================================

    async def get_school(self, school_id: str, include_deleted: bool = False) -> School | None:
        """Get a school by id.

        Args:
            school_id: School identifier.
            include_deleted: Also return soft-deleted schools.

        Returns:
            The school or None.
        """
        stmt = select(School).where(School.id == parse_object_id(school_id, "school_id"))
        if not include_deleted:
            stmt = stmt.where(School.status != "deleted")
        return await self._one(stmt)

    async def find_school_by_name(
        self,
        name: str,
        exclude_id: str | None = None,
    ) -> School | None:
        """Find a school whose name matches case-insensitively, any status."""
        stmt = select(School).where(func.lower(School.name) == name.strip().lower())
        if exclude_id is not None:
            stmt = stmt.where(School.id != exclude_id)
        return await self._one(stmt.limit(1))

    async def list_schools(
        self,
        status: str | None,
        search_term: str | None,
        sort_by: str,
        descending: bool,
        offset: int,
        limit: int,
    ) -> tuple[list[School], int]:
        """List schools with filtering, search and whitelisted sorting.

        Args:
            status: Status filter, or None for every non-deleted school.
            search_term: Case-insensitive substring matched on name and city.
            sort_by: One of SCHOOL_SORT_FIELDS.
            descending: Sort direction.
            offset: Rows to skip.
            limit: Maximum rows.

        Returns:
            Tuple of (schools, total matching count).

        Raises:
            InvalidInputError: If sort_by is not whitelisted.
        """
        field = SCHOOL_SORT_FIELDS.get(sort_by)
        if field is None:
            raise InvalidInputError(
                "Invalid sort field",
                details={"sort_by": sort_by, "allowed": sorted(set(SCHOOL_SORT_FIELDS.values()))},
            )

        stmt = select(School)
        if status:
            stmt = stmt.where(School.status == status)
        else:
            stmt = stmt.where(School.status != "deleted")

        if search_term:
            stmt = stmt.where(
                or_(
                    School.name.icontains(search_term, autoescape=True),
                    School.city.icontains(search_term, autoescape=True),
                )
            )

        if field == "student_count":
            sort_column: Any = (
                select(func.count(Student.id))
                .where(Student.school_id == School.id, Student.status == "active")
                .scalar_subquery()
            )
        else:
            sort_column = getattr(School, field)

        stmt = stmt.order_by(sort_column.desc() if descending else sort_column.asc(), School.id)
        return await self._page(stmt, offset, limit)

    async def live_counts_by_school(
        self,
        school_ids: Sequence[str],
    ) -> dict[str, dict[str, int]]:
        """Count active students and classrooms for several schools at once.

        Returns:
            Mapping school_id -> {"active_students": n, "active_classrooms": m}.
        """
        counts = {sid: {"active_students": 0, "active_classrooms": 0} for sid in school_ids}
        if not school_ids:
            return counts

        students = await self._db.execute(
            select(Student.school_id, func.count(Student.id))
            .where(Student.school_id.in_(school_ids), Student.status == "active")
            .group_by(Student.school_id)
        )
        for school_id, total in students.all():
            counts[school_id]["active_students"] = total

        classrooms = await self._db.execute(
            select(Classroom.school_id, func.count(Classroom.id))
            .where(Classroom.school_id.in_(school_ids), Classroom.status == "active")
            .group_by(Classroom.school_id)
        )
        for school_id, total in classrooms.all():
            counts[school_id]["active_classrooms"] = total

        return counts

    # =========================================================================
    # Classrooms
    # =========================================================================

    async def get_classroom(
        self,
        classroom_id: str,
        school_id: str | None = None,
        statuses: Iterable[str] | None = None,
        include_deleted: bool = False,
    ) -> Classroom | None:
        """Get a classroom, optionally scoped to a school and status set."""
        stmt = select(Classroom).where(
            Classroom.id == parse_object_id(classroom_id, "classroom_id")
        )
        if school_id is not None:
            stmt = stmt.where(Classroom.school_id == parse_object_id(school_id, "school_id"))
        if statuses is not None:
            stmt = stmt.where(Classroom.status.in_(list(statuses)))
        elif not include_deleted:
            stmt = stmt.where(Classroom.status != "deleted")
        return await self._one(stmt)

    async def find_classroom_by_name(
        self,
        school_id: str,
        name: str,
        exclude_id: str | None = None,
    ) -> Classroom | None:
        """Find a non-deleted classroom with this name in the school."""
        stmt = select(Classroom).where(
            Classroom.school_id == school_id,
            Classroom.name == name,
            Classroom.status != "deleted",
        )
        if exclude_id is not None:
            stmt = stmt.where(Classroom.id != exclude_id)
        return await self._one(stmt.limit(1))

    async def list_classrooms(
        self,
        school_id: str,
        status: str = "active",
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Classroom], int]:
        """List a school's classrooms, newest first."""
        stmt = (
            select(Classroom)
            .where(Classroom.school_id == school_id, Classroom.status == status)
            .order_by(Classroom.created_at.desc(), Classroom.id.desc())
        )
        return await self._page(stmt, offset, limit)

    async def list_classroom_ids(self, school_id: str) -> list[str]:
        """Ids of every non-deleted classroom in a school."""
        result = await self._db.execute(
            select(Classroom.id).where(
                Classroom.school_id == school_id,
                Classroom.status != "deleted",
            )
        )
        return list(result.scalars().all())

    async def count_classrooms(
        self,
        school_id: str,
        status: str | None = None,
        exclude_status: str | None = None,
    ) -> int:
        """Count classrooms of a school by status."""
        stmt = select(func.count(Classroom.id)).where(Classroom.school_id == school_id)
        if status is not None:
            stmt = stmt.where(Classroom.status == status)
        if exclude_status is not None:
            stmt = stmt.where(Classroom.status != exclude_status)
        return await self._count(stmt)

    async def classroom_status_counts(self, school_id: str) -> dict[str, int]:
        """Classroom count per status for a school."""
        result = await self._db.execute(
            select(Classroom.status, func.count(Classroom.id))
            .where(Classroom.school_id == school_id)
            .group_by(Classroom.status)
        )
        return {status: total for status, total in result.all()}

    async def capacity_totals(self, school_id: str) -> dict[str, int]:
        """Seats and occupied seats over a school's active classrooms."""
        result = await self._db.execute(
            select(
                func.coalesce(func.sum(Classroom.capacity), 0),
                func.coalesce(func.sum(Classroom.current_students), 0),
            ).where(Classroom.school_id == school_id, Classroom.status == "active")
        )
        seats, occupied = result.one()
        return {"seats": int(seats), "occupied": int(occupied)}

    async def soft_delete_empty_classroom(self, classroom_id: str, **values: Any) -> bool:
        """Mark a classroom deleted only while its counter is zero.

        Returns:
            True if the classroom was changed.
        """
        await self._db.flush()
        result = await self._db.execute(
            update(Classroom)
            .where(
                Classroom.id == classroom_id,
                Classroom.status != "deleted",
                Classroom.current_students == 0,
            )
            .values(status="deleted", **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def soft_delete_classrooms(self, school_id: str, **values: Any) -> int:
        """Mark every non-deleted classroom of a school deleted.

        Returns:
            Number of classrooms changed.
        """
        await self._db.flush()
        result = await self._db.execute(
            update(Classroom)
            .where(Classroom.school_id == school_id, Classroom.status != "deleted")
            .values(status="deleted", **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    # =========================================================================
    # Students
    # =========================================================================

    async def get_student(
        self,
        student_id: str,
        school_id: str | None = None,
        status: str | None = "active",
    ) -> Student | None:
        """Get a student, by default only when active."""
        stmt = select(Student).where(Student.id == parse_object_id(student_id, "student_id"))
        if school_id is not None:
            stmt = stmt.where(Student.school_id == parse_object_id(school_id, "school_id"))
        if status is not None:
            stmt = stmt.where(Student.status == status)
        return await self._one(stmt)

    async def find_active_student_by_email(self, email: str) -> Student | None:
        """Find the active student using an email address."""
        stmt = select(Student).where(
            Student.email == email.strip().lower(),
            Student.status == "active",
        )
        return await self._one(stmt.limit(1))

    async def list_students(
        self,
        school_id: str,
        classroom_id: str | None = None,
        status: str = "active",
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Student], int]:
        """List a school's students, most recently enrolled first."""
        stmt = select(Student).where(Student.school_id == school_id, Student.status == status)
        if classroom_id is not None:
            stmt = stmt.where(Student.classroom_id == classroom_id)
        stmt = stmt.order_by(Student.enrolled_at.desc(), Student.id.desc())
        return await self._page(stmt, offset, limit)

    async def count_students(
        self,
        school_id: str | None = None,
        status: str | None = None,
        exclude_status: str | None = None,
        classroom_id: str | None = None,
    ) -> int:
        """Count students by school, status and classroom."""
        stmt = select(func.count(Student.id))
        if school_id is not None:
            stmt = stmt.where(Student.school_id == school_id)
        if status is not None:
            stmt = stmt.where(Student.status == status)
        if exclude_status is not None:
            stmt = stmt.where(Student.status != exclude_status)
        if classroom_id is not None:
            stmt = stmt.where(Student.classroom_id == classroom_id)
        return await self._count(stmt)

    async def student_status_counts(self, school_id: str) -> dict[str, int]:
        """Student count per status for a school."""
        result = await self._db.execute(
            select(Student.status, func.count(Student.id))
            .where(Student.school_id == school_id)
            .group_by(Student.status)
        )
        return {status: total for status, total in result.all()}

    async def grade_distribution(self, school_id: str) -> dict[int, int]:
        """Active student count per grade for a school."""
        result = await self._db.execute(
            select(Student.grade, func.count(Student.id))
            .where(Student.school_id == school_id, Student.status == "active")
            .group_by(Student.grade)
            .order_by(Student.grade)
        )
        return {grade: total for grade, total in result.all()}

    async def soft_delete_students(self, school_id: str, **values: Any) -> int:
        """Mark every non-deleted student of a school deleted.

        Returns:
            Number of students changed.
        """
        await self._db.flush()
        result = await self._db.execute(
            update(Student)
            .where(Student.school_id == school_id, Student.status != "deleted")
            .values(status="deleted", **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    # =========================================================================
    # Users
    # =========================================================================

    async def get_user(self, user_id: str) -> User | None:
        """Get a user by id."""
        return await self._one(select(User).where(User.id == parse_object_id(user_id, "user_id")))

    async def find_user_by_email(self, email: str) -> User | None:
        """Find a user by email, case-insensitively."""
        return await self._one(select(User).where(User.email == email.strip().lower()))

    async def has_superadmin(self) -> bool:
        """Check whether any superadmin account exists."""
        stmt = select(func.count(User.id)).where(User.role == "superadmin")
        return await self._count(stmt) > 0

    async def list_users(
        self,
        role: str | None = None,
        school_id: str | None = None,
        status: str | None = None,
    ) -> list[User]:
        """List users filtered by role, school and status."""
        stmt = select(User)
        if role is not None:
            stmt = stmt.where(User.role == role)
        if school_id is not None:
            stmt = stmt.where(User.school_id == school_id)
        if status is not None:
            stmt = stmt.where(User.status == status)
        result = await self._db.execute(stmt.order_by(User.created_at.desc()))
        return list(result.scalars().all())
