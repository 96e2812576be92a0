# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School domain package.

This package provides school management functionality including:
- School CRUD operations
- School statistics
- Cascading soft delete and recovery report
- Occupancy reconciliation
"""

from src.domains.school.service import SchoolService, school_document

__all__ = [
    "SchoolService",
    "school_document",
]
