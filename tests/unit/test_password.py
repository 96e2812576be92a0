# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for password hashing utilities.

Tests the PasswordHasher class.
"""

import pytest

from src.core.config.settings import SecuritySettings
from src.domains.auth.password import PasswordHasher


@pytest.fixture
def hasher() -> PasswordHasher:
    """Hasher with the cheapest bcrypt cost."""
    return PasswordHasher(rounds=4)


class TestPasswordHasher:
    """Tests for PasswordHasher class."""

    def test_hash_password_returns_bcrypt_hash(self, hasher: PasswordHasher) -> None:
        """Test that hashing returns a bcrypt hash string."""
        hashed = hasher.hash("test_password_123")

        assert hashed.startswith("$2b$04$")
        assert len(hashed) == 60

    def test_hash_produces_different_hashes_for_same_password(
        self, hasher: PasswordHasher
    ) -> None:
        """Test that hashing the same password produces different hashes (due to salt)."""
        assert hasher.hash("test_password_123") != hasher.hash("test_password_123")

    def test_verify_correct_password(self, hasher: PasswordHasher) -> None:
        """Test that verification succeeds with correct password."""
        hashed = hasher.hash("correct_password")

        assert hasher.verify("correct_password", hashed) is True

    def test_verify_incorrect_password(self, hasher: PasswordHasher) -> None:
        """Test that verification fails with incorrect password."""
        hashed = hasher.hash("correct_password")

        assert hasher.verify("wrong_password", hashed) is False

    def test_verify_malformed_hash(self, hasher: PasswordHasher) -> None:
        """Test that a malformed hash never verifies."""
        assert hasher.verify("password", "not-a-bcrypt-hash") is False
        assert hasher.verify("", "anything") is False

    def test_hash_empty_password_raises(self, hasher: PasswordHasher) -> None:
        """Test that hashing an empty password raises ValueError."""
        with pytest.raises(ValueError):
            hasher.hash("")

    def test_needs_rehash(self, hasher: PasswordHasher) -> None:
        """Test that hashes with another cost factor need rehashing."""
        current = hasher.hash("password")
        stronger = PasswordHasher(rounds=5).hash("password")

        assert hasher.needs_rehash(current) is False
        assert hasher.needs_rehash(stronger) is True
        assert hasher.needs_rehash("garbage") is True

    def test_from_settings(self) -> None:
        """Test that the cost factor comes from security settings."""
        hasher = PasswordHasher.from_settings(SecuritySettings(bcrypt_rounds=6))

        assert hasher.rounds == 6
