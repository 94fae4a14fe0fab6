"""Role-based authorization checks for privileged import operations."""

from __future__ import annotations

from peeriq.domain.auth.roles import Role


class AuthorizationError(PermissionError):
    """Base error for callers lacking permission for an operation."""


class RoleNotAuthorizedError(AuthorizationError):
    """Raised when the caller's profile role does not grant access."""

    def __init__(self, *, role: Role | None, message: str) -> None:
        super().__init__(message)
        self.role = role


class AccessGuardService:
    """Evaluate caller roles against operation requirements."""

    def require_admin(self, *, role: Role | None) -> None:
        """Require the `admin` profile role for user import."""

        if role is not Role.ADMIN:
            raise RoleNotAuthorizedError(
                role=role,
                message="Admin access required for user import",
            )
