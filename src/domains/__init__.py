# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for SchoolHub.

This package contains domain services that encapsulate business logic.
Every service is constructed with a ServiceContext (database session,
school cache, notification sink) and commits its own unit of work.

Domains:
    auth: Token and password primitives.
    capacity: Classroom seat ledger.
    classroom: Classroom management.
    school: School lifecycle, cascade delete and recovery report.
    student: Enrollment, transfers and deactivation.
    user: Administrator accounts.
"""
