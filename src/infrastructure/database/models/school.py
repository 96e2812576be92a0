# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School, classroom and student tables.

Uniqueness rules live in the schema as well as in the services, so a
concurrent request that slips past a service-level check still fails:

- school names are unique case-insensitively across all schools
- classroom names are unique per school among non-deleted classrooms
- student emails are unique among active students

Classroom occupancy bounds are CHECK constraints.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    Base,
    ObjectIdMixin,
    SoftDeleteMixin,
    TimestampMixin,
)
from src.utils.datetime import utc_now
from src.utils.ids import OBJECT_ID_LENGTH

SCHOOL_STATUSES = ("active", "inactive", "deleted")
CLASSROOM_STATUSES = ("active", "maintenance", "inactive", "deleted")
STUDENT_STATUSES = ("active", "inactive", "transferred", "graduated", "deleted")
CLASSROOM_RESOURCES = (
    "Projector",
    "Whiteboard",
    "Computers",
    "Lab Equipment",
    "Smart Board",
    "Audio System",
    "Document Camera",
)

MIN_CLASSROOM_CAPACITY = 1
MAX_CLASSROOM_CAPACITY = 100


class School(ObjectIdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """A tenant school owning classrooms and students."""

    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    street: Mapped[str] = mapped_column(String(200), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(10), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active", index=True)
    admin_id: Mapped[str | None] = mapped_column(String(OBJECT_ID_LENGTH), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(OBJECT_ID_LENGTH), nullable=True)

    student_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    classroom_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    active_teacher_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    deleted_by: Mapped[str | None] = mapped_column(String(OBJECT_ID_LENGTH), nullable=True)
    deletion_reason: Mapped[str | None] = mapped_column(String(50), nullable=True)
    deletion_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    @property
    def address(self) -> dict[str, str]:
        """Postal address as a nested mapping."""
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
        }

    @property
    def contact_info(self) -> dict[str, str]:
        """Contact details as a nested mapping."""
        return {"email": self.email, "phone": self.phone}

    @property
    def school_metadata(self) -> dict[str, int]:
        """Seeded counters kept with the school document."""
        return {
            "student_count": self.student_count,
            "classroom_count": self.classroom_count,
            "active_teacher_count": self.active_teacher_count,
        }

    @property
    def is_active(self) -> bool:
        """Check whether the school accepts new classrooms and students."""
        return self.status == "active"

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the cache and API responses."""
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "contact_info": self.contact_info,
            "status": self.status,
            "admin_id": self.admin_id,
            "created_by": self.created_by,
            "metadata": self.school_metadata,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "deleted_at": self.deleted_at,
        }

    def __repr__(self) -> str:
        return f"School(id={self.id!r}, name={self.name!r}, status={self.status!r})"


Index("uq_schools_name_lower", func.lower(School.name), unique=True)


class Classroom(ObjectIdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """A classroom with a bounded number of seats."""

    __tablename__ = "classrooms"
    __table_args__ = (
        CheckConstraint(
            f"capacity >= {MIN_CLASSROOM_CAPACITY} AND capacity <= {MAX_CLASSROOM_CAPACITY}",
            name="capacity_range",
        ),
        CheckConstraint("current_students >= 0", name="occupancy_non_negative"),
        CheckConstraint("current_students <= capacity", name="occupancy_within_capacity"),
        Index(
            "uq_classrooms_school_name_live",
            "school_id",
            "name",
            unique=True,
            postgresql_where=text("status <> 'deleted'"),
            sqlite_where=text("status <> 'deleted'"),
        ),
    )

    school_id: Mapped[str] = mapped_column(
        String(OBJECT_ID_LENGTH),
        ForeignKey("schools.id"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    current_students: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    resources: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active", index=True)

    @property
    def available_seats(self) -> int:
        """Seats left according to the stored counter."""
        return max(self.capacity - self.current_students, 0)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        return {
            "id": self.id,
            "school_id": self.school_id,
            "name": self.name,
            "capacity": self.capacity,
            "current_students": self.current_students,
            "resources": list(self.resources or []),
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "deleted_at": self.deleted_at,
        }

    def __repr__(self) -> str:
        return (
            f"Classroom(id={self.id!r}, name={self.name!r}, "
            f"{self.current_students}/{self.capacity})"
        )


class Student(ObjectIdMixin, SoftDeleteMixin, Base):
    """A student enrolled in one school and at most one classroom."""

    __tablename__ = "students"
    __table_args__ = (
        CheckConstraint("grade >= 1 AND grade <= 12", name="grade_range"),
        Index(
            "uq_students_email_active",
            "email",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    school_id: Mapped[str] = mapped_column(
        String(OBJECT_ID_LENGTH),
        ForeignKey("schools.id"),
        nullable=False,
        index=True,
    )
    classroom_id: Mapped[str | None] = mapped_column(
        String(OBJECT_ID_LENGTH),
        ForeignKey("classrooms.id"),
        nullable=True,
        index=True,
    )
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    grade: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active", index=True)

    transfer_history: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )
    last_transfer_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_transfer_reason: Mapped[str | None] = mapped_column(Text)
    deactivation_reason: Mapped[str | None] = mapped_column(Text)
    deactivated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    @property
    def holds_seat(self) -> bool:
        """A student occupies a seat iff active and assigned to a classroom."""
        return self.status == "active" and self.classroom_id is not None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        return {
            "id": self.id,
            "school_id": self.school_id,
            "classroom_id": self.classroom_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "grade": self.grade,
            "status": self.status,
            "transfer_history": list(self.transfer_history or []),
            "last_transfer_date": self.last_transfer_date,
            "last_transfer_reason": self.last_transfer_reason,
            "deactivation_reason": self.deactivation_reason,
            "deactivated_at": self.deactivated_at,
            "enrolled_at": self.enrolled_at,
            "updated_at": self.updated_at,
            "deleted_at": self.deleted_at,
        }

    def __repr__(self) -> str:
        return f"Student(id={self.id!r}, email={self.email!r}, status={self.status!r})"
