# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models.

Importing this package registers every table on Base.metadata.
"""

from src.infrastructure.database.models.base import (
    Base,
    ObjectIdMixin,
    SoftDeleteMixin,
    TimestampMixin,
)
from src.infrastructure.database.models.school import (
    CLASSROOM_RESOURCES,
    CLASSROOM_STATUSES,
    MAX_CLASSROOM_CAPACITY,
    MIN_CLASSROOM_CAPACITY,
    SCHOOL_STATUSES,
    STUDENT_STATUSES,
    Classroom,
    School,
    Student,
)
from src.infrastructure.database.models.user import USER_ROLES, USER_STATUSES, User

__all__ = [
    "Base",
    "ObjectIdMixin",
    "SoftDeleteMixin",
    "TimestampMixin",
    "School",
    "Classroom",
    "Student",
    "User",
    "SCHOOL_STATUSES",
    "CLASSROOM_STATUSES",
    "STUDENT_STATUSES",
    "CLASSROOM_RESOURCES",
    "MIN_CLASSROOM_CAPACITY",
    "MAX_CLASSROOM_CAPACITY",
    "USER_ROLES",
    "USER_STATUSES",
]
