"""Port for session token storage backing bearer credentials."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID


@dataclass(frozen=True)
class AuthTokenCreateInput:
    """Hash and expiry of a token issued to one identity at sign-in."""

    identity_id: UUID
    token_hash: str
    expires_at: datetime


@dataclass(frozen=True)
class AuthTokenRecord:
    """Stored session token; only the hash of the bearer value is kept."""

    id: int
    identity_id: UUID
    token_hash: str
    issued_at: datetime
    expires_at: datetime
    revoked_at: datetime | None
    last_used_at: datetime | None

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None


class AuthTokenRepositoryPort(Protocol):
    """Session token storage contract."""

    async def create_token(self, payload: AuthTokenCreateInput) -> AuthTokenRecord:
        """Store a newly issued token hash."""

    async def get_active_by_hash(self, *, token_hash: str) -> AuthTokenRecord | None:
        """Return the session for this hash unless it is revoked or expired."""

    async def revoke_active_tokens_for_identity(self, *, identity_id: UUID) -> int:
        """End every open session of one identity and return how many were revoked."""
