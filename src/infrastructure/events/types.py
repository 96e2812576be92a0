# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Centralized event type definitions for SchoolHub.

Topics use the ``<entity>:<action>`` form. Pattern subscribers can listen
to a whole entity with ``student:*`` or to everything with ``*``.
"""


class EventTypes:
    """All notification topics organized by entity."""

    class School:
        """School lifecycle events."""

        CREATED = "school:created"
        UPDATED = "school:updated"
        DELETED = "school:deleted"

    class Classroom:
        """Classroom lifecycle events."""

        CREATED = "classroom:created"
        UPDATED = "classroom:updated"
        DELETED = "classroom:deleted"
        RECONCILED = "classroom:reconciled"

    class Student:
        """Student lifecycle events."""

        ENROLLED = "student:enrolled"
        UPDATED = "student:updated"
        TRANSFERRED = "student:transferred"
        DEACTIVATED = "student:deactivated"

    class User:
        """Admin account events."""

        CREATED = "user:created"
        LOGGED_IN = "user:logged_in"
        LOCKED = "user:locked"
        PASSWORD_CHANGED = "user:password_changed"
        DEACTIVATED = "user:deactivated"
        ASSIGNED = "user:assigned"

    @classmethod
    def all(cls) -> list[str]:
        """Every declared topic."""
        topics: list[str] = []
        for group in (cls.School, cls.Classroom, cls.Student, cls.User):
            topics.extend(
                value for name, value in vars(group).items()
                if name.isupper() and isinstance(value, str)
            )
        return topics
