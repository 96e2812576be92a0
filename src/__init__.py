"""SchoolHub Backend.

Multi-tenant school administration: schools, classrooms and students with
a classroom seat ledger and a cascading soft delete.

Run with ``uvicorn src.api.app:create_app --factory``.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
