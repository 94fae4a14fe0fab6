"""Port for profile record lookup and update operations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from peeriq.domain.auth.roles import Role

DEFAULT_PROFILE_STATUS = "available"
DEFAULT_AVATAR_URL = (
    "https://images.pexels.com/photos/3763188/pexels-photo-3763188.jpeg"
    "?auto=compress&cs=tinysrgb&w=400"
)


@dataclass(frozen=True)
class ProfileRecord:
    """Profile persistence model sharing its id with one identity."""

    profile_id: UUID
    name: str
    department: str
    role: Role
    expertise: tuple[str, ...]
    avatar: str
    status: str
    rating: float
    completed_helps: int
    updated_at: datetime


@dataclass(frozen=True)
class ProfileUpdateInput:
    """Authoritative profile values written by one import."""

    name: str
    department: str
    role: Role
    expertise: tuple[str, ...]
    avatar: str
    status: str = DEFAULT_PROFILE_STATUS
    rating: float = 0
    completed_helps: int = 0


class ProfileRepositoryPort(Protocol):
    """Profile repository contract; profiles are updated, never inserted."""

    async def get_by_id(self, *, profile_id: UUID) -> ProfileRecord | None:
        """Return profile by id or None."""

    async def update_profile(
        self,
        *,
        profile_id: UUID,
        payload: ProfileUpdateInput,
    ) -> ProfileRecord | None:
        """Update one existing profile and return it, or None when absent."""
