"""Bcrypt adapter for identity password hashes."""

from __future__ import annotations

import bcrypt

from peeriq.application.ports.password_hasher_port import PasswordHasherPort


class BcryptPasswordHasher(PasswordHasherPort):
    """Hash and verify passwords with bcrypt."""

    def __init__(self, *, rounds: int = 12) -> None:
        self._rounds = rounds

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify_password(self, *, password: str, password_hash: str | None) -> bool:
        # Imported identities have no password until one is set.
        if not password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False
