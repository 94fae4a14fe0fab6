"""Port for identity (auth subsystem user) persistence operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID


@dataclass(frozen=True)
class IdentityCreateInput:
    """Input payload for creating one identity keyed by normalized email."""

    email: str
    user_metadata: dict[str, Any] = field(default_factory=dict)
    password_hash: str | None = None
    email_confirmed: bool = True


@dataclass(frozen=True)
class IdentityRecord:
    """Identity persistence model."""

    identity_id: UUID
    email: str
    password_hash: str | None
    email_confirmed: bool
    user_metadata: dict[str, Any]
    created_at: datetime


class IdentityAlreadyExistsError(ValueError):
    """Raised when creating an identity whose email is already registered."""

    def __init__(self, *, email: str) -> None:
        super().__init__(f"identity already exists: {email}")
        self.email = email


class IdentityRepositoryPort(Protocol):
    """Identity repository contract."""

    async def get_by_id(self, *, identity_id: UUID) -> IdentityRecord | None:
        """Return identity by id or None."""

    async def get_by_email(self, *, email: str) -> IdentityRecord | None:
        """Return identity by normalized email or None."""

    async def create_identity(self, payload: IdentityCreateInput) -> IdentityRecord:
        """Create one identity and provision its default profile."""

    async def list_identities(self) -> list[IdentityRecord]:
        """Return all identities ordered by email."""
