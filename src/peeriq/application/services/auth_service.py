"""Application authentication service for identity sign-in."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from peeriq.application.ports.identity_repository_port import (
    IdentityRecord,
    IdentityRepositoryPort,
)
from peeriq.application.ports.password_hasher_port import PasswordHasherPort
from peeriq.domain.auth.credentials import canonical_email

logger = logging.getLogger(__name__)


class AuthOutcome(StrEnum):
    """Supported sign-in outcomes."""

    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNCONFIRMED_EMAIL = "unconfirmed_email"


@dataclass(frozen=True)
class AuthResult:
    """Sign-in result model."""

    outcome: AuthOutcome
    identity: IdentityRecord | None = None


class AuthService:
    """Verify identity credentials for the session endpoints."""

    def __init__(
        self,
        *,
        identities: IdentityRepositoryPort,
        password_hasher: PasswordHasherPort,
    ) -> None:
        self._identities = identities
        self._password_hasher = password_hasher

    async def authenticate(self, *, email: str, password: str) -> AuthResult:
        """Return the identity when email and password match."""

        normalized_email = canonical_email(email)
        identity = await self._identities.get_by_email(email=normalized_email)
        if identity is None or not self._password_hasher.verify_password(
            password=password,
            password_hash=identity.password_hash,
        ):
            logger.info("auth_sign_in_failed email=%s reason=invalid_credentials", normalized_email)
            return AuthResult(outcome=AuthOutcome.INVALID_CREDENTIALS)

        if not identity.email_confirmed:
            logger.info("auth_sign_in_failed email=%s reason=unconfirmed_email", normalized_email)
            return AuthResult(outcome=AuthOutcome.UNCONFIRMED_EMAIL)

        logger.info("auth_sign_in_succeeded identity_id=%s", identity.identity_id)
        return AuthResult(outcome=AuthOutcome.SUCCESS, identity=identity)
