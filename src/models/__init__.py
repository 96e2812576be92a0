# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic request and response models for the HTTP API.

Models validate input shape only (lengths, patterns, ranges). Business
rules such as uniqueness and capacity live in the domain services.
"""
