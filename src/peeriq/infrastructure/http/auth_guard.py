"""Bearer header parsing and caller resolution for import endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from peeriq.application.ports.auth_token_repository_port import AuthTokenRepositoryPort
from peeriq.application.ports.identity_repository_port import (
    IdentityRecord,
    IdentityRepositoryPort,
)
from peeriq.application.ports.profile_repository_port import (
    ProfileRecord,
    ProfileRepositoryPort,
)
from peeriq.application.services.access_guard_service import (
    AccessGuardService,
    RoleNotAuthorizedError,
)
from peeriq.infrastructure.security.token_service import OpaqueTokenService


class MissingAuthTokenError(PermissionError):
    """Raised when a bearer token is required but not provided."""


class InvalidAuthTokenError(PermissionError):
    """Raised when the bearer header or the session it names is invalid."""


@dataclass(frozen=True)
class AuthenticatedCaller:
    """Identity behind a bearer token together with its profile, when present."""

    identity: IdentityRecord
    profile: ProfileRecord | None


def extract_bearer_token(authorization_header: str | None) -> str:
    """Extract opaque token from standard `Authorization: Bearer <token>` header."""

    if authorization_header is None or not authorization_header.strip():
        raise MissingAuthTokenError("No authorization header provided")

    parts = authorization_header.strip().split()
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise InvalidAuthTokenError("Invalid authorization header")

    return parts[1]


class ImportAuthGuard:
    """Resolve the caller of an import request and enforce the admin role."""

    def __init__(
        self,
        *,
        token_service: OpaqueTokenService,
        auth_token_repository: AuthTokenRepositoryPort,
        identity_repository: IdentityRepositoryPort,
        profile_repository: ProfileRepositoryPort,
        access_guard: AccessGuardService | None = None,
    ) -> None:
        self._token_service = token_service
        self._auth_token_repository = auth_token_repository
        self._identity_repository = identity_repository
        self._profile_repository = profile_repository
        self._access_guard = access_guard or AccessGuardService()

    async def require_admin_identity(self, *, authorization_header: str | None) -> UUID:
        """Resolve the caller from its bearer token and require the `admin` profile role."""

        caller = await self.resolve_caller(authorization_header=authorization_header)
        if caller.profile is None:
            raise RoleNotAuthorizedError(role=None, message="Could not verify user permissions")
        self._access_guard.require_admin(role=caller.profile.role)
        return caller.identity.identity_id

    async def resolve_caller(self, *, authorization_header: str | None) -> AuthenticatedCaller:
        """Resolve bearer token to the signed-in identity and its profile."""

        token = extract_bearer_token(authorization_header)
        token_record = await self._auth_token_repository.get_active_by_hash(
            token_hash=self._token_service.hash_token(token)
        )
        if token_record is None:
            raise InvalidAuthTokenError("Invalid authentication token")

        identity = await self._identity_repository.get_by_id(identity_id=token_record.identity_id)
        if identity is None:
            raise InvalidAuthTokenError("Invalid authentication token")

        profile = await self._profile_repository.get_by_id(profile_id=identity.identity_id)
        return AuthenticatedCaller(identity=identity, profile=profile)
