"""Port for submitting a validated batch to the remote import service."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from peeriq.domain.user_import.row_validator import ImportUserRecord


@dataclass(frozen=True)
class ImportServiceReply:
    """Per-batch counts reported by the import service."""

    successful: int
    failed: int
    errors: tuple[str, ...]


class ImportServiceError(RuntimeError):
    """Raised when the import request fails as a whole (transport or non-2xx)."""


class ImportServiceGatewayPort(Protocol):
    """Remote import service contract."""

    async def submit_users(
        self,
        *,
        access_token: str,
        users: Sequence[ImportUserRecord],
    ) -> ImportServiceReply:
        """Send one batch in one authenticated request and return reported counts."""


class SessionProviderPort(Protocol):
    """Client-side view of the auth provider's current session."""

    def get_current_session(self) -> str | None:
        """Return the bearer credential of the active session, or None."""
