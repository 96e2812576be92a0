# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Opaque identifier helpers.

Every stored entity is keyed by a 24-character lowercase hex string: four
bytes of creation time followed by eight random bytes, so identifiers sort
roughly by creation order.
"""

import re
import secrets
import time

from src.core.errors import InvalidInputError

OBJECT_ID_LENGTH = 24

_OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")


def new_object_id() -> str:
    """Generate a new 24-hex identifier."""
    return f"{int(time.time()) & 0xFFFFFFFF:08x}{secrets.token_hex(8)}"


def is_object_id(value: object) -> bool:
    """Check whether a value is a well-formed identifier."""
    return isinstance(value, str) and bool(_OBJECT_ID_PATTERN.match(value))


def parse_object_id(value: object, field: str = "id") -> str:
    """Validate and normalize an identifier supplied by a caller.

    Args:
        value: Raw identifier.
        field: Name reported in the error details.

    Returns:
        The identifier in lowercase.

    Raises:
        InvalidInputError: If the value is not a 24-hex string.
    """
    if not is_object_id(value):
        raise InvalidInputError(
            f"Invalid {field} format",
            details={"field": field, "value": str(value)},
        )
    return str(value).lower()
