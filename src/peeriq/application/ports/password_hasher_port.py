"""Port for hashing identity passwords used at sign-in."""

from __future__ import annotations

from typing import Protocol


class PasswordHasherPort(Protocol):
    """Password hashing and verification contract."""

    def hash_password(self, password: str) -> str:
        """Return a storable hash for one plaintext password."""

    def verify_password(self, *, password: str, password_hash: str | None) -> bool:
        """Return whether the plaintext matches; identities without a hash never match."""
