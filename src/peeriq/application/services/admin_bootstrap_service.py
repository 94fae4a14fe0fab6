"""First-admin provisioning run once when the import API starts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from peeriq.application.ports.identity_repository_port import (
    IdentityAlreadyExistsError,
    IdentityCreateInput,
    IdentityRepositoryPort,
)
from peeriq.application.ports.password_hasher_port import PasswordHasherPort
from peeriq.application.ports.profile_repository_port import (
    DEFAULT_AVATAR_URL,
    ProfileRepositoryPort,
    ProfileUpdateInput,
)
from peeriq.domain.auth.credentials import require_email, require_password
from peeriq.domain.auth.roles import Role

logger = logging.getLogger(__name__)


class AdminBootstrapConfigError(ValueError):
    """Raised when the BOOTSTRAP_ADMIN_* variables do not describe one admin."""


@dataclass(frozen=True)
class AdminBootstrapConfig:
    email: str
    password: str

    @property
    def display_name(self) -> str:
        return self.email.split("@", 1)[0]


class AdminBootstrapOutcome(StrEnum):
    """What one bootstrap attempt did."""

    CREATED = "created"
    SKIPPED_IDENTITIES_PRESENT = "skipped_identities_present"
    SKIPPED_CONCURRENT_INSERT = "skipped_concurrent_insert"


@dataclass(frozen=True)
class AdminBootstrapResult:
    outcome: AdminBootstrapOutcome
    email: str


def resolve_admin_bootstrap_config(
    *,
    email: str | None,
    password: str | None,
    password_file: str | None,
) -> AdminBootstrapConfig | None:
    """Build the bootstrap config, or return None when no admin email is configured.

    Exactly one password source must accompany the email; the file variant is
    read as UTF-8 and surrounding whitespace is ignored.
    """

    if email is None:
        if password is None and password_file is None:
            return None
        raise AdminBootstrapConfigError(
            "BOOTSTRAP_ADMIN_EMAIL is required when bootstrap-admin variables are set"
        )

    sources = [source for source in (password, password_file) if source is not None]
    if len(sources) != 1:
        raise AdminBootstrapConfigError(
            "set only one of BOOTSTRAP_ADMIN_PASSWORD or BOOTSTRAP_ADMIN_PASSWORD_FILE"
            if sources
            else "set BOOTSTRAP_ADMIN_PASSWORD or BOOTSTRAP_ADMIN_PASSWORD_FILE "
            "when BOOTSTRAP_ADMIN_EMAIL is set"
        )

    raw_password = password if password is not None else _read_password_file(password_file)
    try:
        return AdminBootstrapConfig(
            email=require_email(email),
            password=require_password(raw_password),
        )
    except ValueError as exc:
        raise AdminBootstrapConfigError(f"invalid bootstrap admin credentials: {exc}") from exc


def _read_password_file(password_file: str | None) -> str:
    assert password_file is not None
    try:
        return Path(password_file).read_text(encoding="utf-8")
    except OSError as exc:
        raise AdminBootstrapConfigError("failed to read BOOTSTRAP_ADMIN_PASSWORD_FILE") from exc


class AdminBootstrapService:
    """Create the first identity with an `admin` profile on an empty datastore."""

    def __init__(
        self,
        *,
        identities: IdentityRepositoryPort,
        profiles: ProfileRepositoryPort,
        password_hasher: PasswordHasherPort,
        default_avatar_url: str = DEFAULT_AVATAR_URL,
    ) -> None:
        self._identities = identities
        self._profiles = profiles
        self._password_hasher = password_hasher
        self._default_avatar_url = default_avatar_url

    async def ensure_initial_admin(self, config: AdminBootstrapConfig) -> AdminBootstrapResult:
        if await self._identities.list_identities():
            return AdminBootstrapResult(
                outcome=AdminBootstrapOutcome.SKIPPED_IDENTITIES_PRESENT,
                email=config.email,
            )

        try:
            identity = await self._identities.create_identity(
                IdentityCreateInput(
                    email=config.email,
                    user_metadata={"name": config.display_name},
                    password_hash=self._password_hasher.hash_password(config.password),
                )
            )
        except IdentityAlreadyExistsError:
            # Another API process bootstrapped the same admin first.
            return AdminBootstrapResult(
                outcome=AdminBootstrapOutcome.SKIPPED_CONCURRENT_INSERT,
                email=config.email,
            )

        await self._profiles.update_profile(
            profile_id=identity.identity_id,
            payload=ProfileUpdateInput(
                name=config.display_name,
                department="",
                role=Role.ADMIN,
                expertise=(),
                avatar=self._default_avatar_url,
            ),
        )
        logger.info("admin_bootstrap_created identity_id=%s", identity.identity_id)
        return AdminBootstrapResult(outcome=AdminBootstrapOutcome.CREATED, email=config.email)
