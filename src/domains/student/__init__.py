# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student domain.

This package provides the StudentService for enrollment, transfers,
deactivation and student statistics.
"""

from src.domains.student.service import StudentService

__all__ = [
    "StudentService",
]
