"""Opaque bearer token generation and hashing."""

from __future__ import annotations

import hashlib
import secrets
from datetime import UTC, datetime, timedelta

DEFAULT_TOKEN_TTL = timedelta(hours=12)


class OpaqueTokenService:
    """Issue random bearer tokens and derive the hash stored for them."""

    def __init__(self, *, token_bytes: int = 32, ttl: timedelta = DEFAULT_TOKEN_TTL) -> None:
        self._token_bytes = token_bytes
        self._ttl = ttl

    def generate_token(self) -> str:
        return secrets.token_urlsafe(self._token_bytes)

    def hash_token(self, token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()

    def expires_at(self, *, now: datetime | None = None) -> datetime:
        """Return the expiry timestamp for a token issued at `now`."""

        issued_at = now or datetime.now(tz=UTC)
        return issued_at + self._ttl
