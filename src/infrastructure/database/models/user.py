# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Administrative user accounts.

Superadmins manage every school; school admins are bound to exactly one
school through ``school_id``.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, ObjectIdMixin, TimestampMixin
from src.utils.datetime import is_expired, utc_now
from src.utils.ids import OBJECT_ID_LENGTH

USER_ROLES = ("superadmin", "school_admin")
USER_STATUSES = ("active", "inactive")


class User(ObjectIdMixin, TimestampMixin, Base):
    """A login-capable administrator."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    school_id: Mapped[str | None] = mapped_column(
        String(OBJECT_ID_LENGTH),
        ForeignKey("schools.id"),
        nullable=True,
        index=True,
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    failed_login_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    locked_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    password_changed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    @property
    def is_active(self) -> bool:
        """Check if the account may log in."""
        return self.status == "active"

    @property
    def is_superadmin(self) -> bool:
        """Check if the account manages every school."""
        return self.role == "superadmin"

    @property
    def is_locked(self) -> bool:
        """Check if the account is inside a lockout window."""
        return self.locked_until is not None and not is_expired(self.locked_until)

    def increment_failed_attempts(self) -> None:
        """Record one failed password check."""
        self.failed_login_attempts = (self.failed_login_attempts or 0) + 1

    def reset_failed_attempts(self) -> None:
        """Clear the failed attempt counter and any lock."""
        self.failed_login_attempts = 0
        self.locked_until = None

    def record_login(self) -> None:
        """Stamp a successful login."""
        self.last_login_at = utc_now()

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses. Never includes the password hash."""
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "school_id": self.school_id,
            "status": self.status,
            "last_login_at": self.last_login_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, email={self.email!r}, role={self.role!r})"
