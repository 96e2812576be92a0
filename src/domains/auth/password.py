# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Password hashing utilities using bcrypt.

This module provides password hashing and verification for admin
accounts using the bcrypt library directly. The cost factor comes from
SecuritySettings.bcrypt_rounds.

Example:
    >>> hasher = PasswordHasher()
    >>> hashed = hasher.hash("my_password")
    >>> hasher.verify("my_password", hashed)
    True
"""

import logging

import bcrypt

from src.core.config.settings import SecuritySettings

logger = logging.getLogger(__name__)


class PasswordHasher:
    """Secure password hashing using bcrypt.

    Uses bcrypt for secure password hashing with automatic salt generation.
    The default rounds value of 12 provides a good balance between security
    and performance.

    Attributes:
        _rounds: Number of bcrypt rounds for hashing.

    Example:
        >>> hasher = PasswordHasher()
        >>> hashed = hasher.hash("secure_password")
        >>> hasher.verify("secure_password", hashed)
        True
        >>> hasher.verify("wrong_password", hashed)
        False
    """

    def __init__(self, rounds: int = 12) -> None:
        """Initialize the password hasher.

        Args:
            rounds: Number of bcrypt rounds. Higher is more secure but slower.
                   Default is 12 which takes ~250ms on modern hardware.
        """
        self._rounds = rounds

    @classmethod
    def from_settings(cls, settings: SecuritySettings) -> "PasswordHasher":
        """Create a hasher using the configured cost factor."""
        return cls(rounds=settings.bcrypt_rounds)

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password to hash.

        Returns:
            Bcrypt hash string with salt embedded.

        Raises:
            ValueError: If password is empty.
        """
        if not password:
            raise ValueError("Password cannot be empty")

        salt = bcrypt.gensalt(rounds=self._rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against a hash.

        Args:
            password: Plain text password to verify.
            password_hash: Bcrypt hash to verify against.

        Returns:
            True if password matches the hash, False otherwise.
        """
        if not password or not password_hash:
            return False

        try:
            return bcrypt.checkpw(
                password.encode("utf-8"),
                password_hash.encode("utf-8"),
            )
        except Exception as e:
            logger.warning("Password verification failed: %s", str(e))
            return False

    @property
    def rounds(self) -> int:
        """Configured bcrypt cost factor."""
        return self._rounds

    def needs_rehash(self, password_hash: str) -> bool:
        """Check if a hash was created with a different cost factor.

        Args:
            password_hash: Existing password hash to check.

        Returns:
            True if the hash should be updated, False otherwise.
        """
        if not password_hash:
            return False

        try:
            return int(password_hash.split("$")[2]) != self._rounds
        except (IndexError, ValueError):
            return True

