# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classroom capacity domain.

This package provides the CapacityLedger, the only code that mutates
classroom occupancy counters.
"""

from src.domains.capacity.ledger import CapacityLedger, DriftReport

__all__ = [
    "CapacityLedger",
    "DriftReport",
]
