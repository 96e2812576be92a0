# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classroom domain.

This package provides the ClassroomService for classroom CRUD,
capacity changes and classroom statistics.
"""

from src.domains.classroom.service import ClassroomService

__all__ = [
    "ClassroomService",
]
