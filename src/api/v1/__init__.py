# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    auth: Login, current user and password change.
    users: Admin account management (superadmin only).
    schools: School CRUD, statistics, deletion report and reconciliation.
    classrooms: Classroom management within a school.
    students: Student lifecycle within a school.
"""

from fastapi import APIRouter

from src.api.v1 import auth, classrooms, schools, students, users

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(schools.router, prefix="/schools", tags=["Schools"])
router.include_router(classrooms.router, tags=["Classrooms"])
router.include_router(students.router, tags=["Students"])

__all__ = ["router"]
