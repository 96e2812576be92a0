# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for SchoolHub.

This package contains cross-cutting foundations:
- config: Application configuration and settings
- errors: Application error taxonomy shared by services and the API
"""
