"""Server-side service importing validated users into identities and profiles."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Protocol
from uuid import UUID

from pydantic import ValidationError

from peeriq.application.dto.import_models import ImportUsersRequest
from peeriq.application.ports.identity_repository_port import (
    IdentityCreateInput,
    IdentityRepositoryPort,
)
from peeriq.application.ports.profile_repository_port import (
    DEFAULT_AVATAR_URL,
    DEFAULT_PROFILE_STATUS,
    ProfileRepositoryPort,
    ProfileUpdateInput,
)
from peeriq.domain.user_import.row_validator import (
    ImportUserRecord,
    RowValidationError,
    validate_import_row,
)

logger = logging.getLogger(__name__)

DEFAULT_PROPAGATION_DELAY_SECONDS = 0.1


class AdminCallerResolverPort(Protocol):
    """Port resolving the bearer credential of an import request to an admin caller."""

    async def require_admin_identity(self, *, authorization_header: str | None) -> UUID:
        """Return caller identity id or raise when the caller is not an admin."""


class InvalidImportBatchError(ValueError):
    """Raised when an authorized request body is not a batch of users."""


class ImportRecordError(ValueError):
    """Raised inside one record's import when that record cannot be applied."""


@dataclass(frozen=True)
class RecordImported:
    """Per-record success result."""

    email: str
    identity_id: UUID
    identity_created: bool


@dataclass(frozen=True)
class RecordFailed:
    """Per-record failure result."""

    email: str | None
    message: str

    def describe(self) -> str:
        return f"{self.email or 'Unknown'}: {self.message}"


RecordImportResult = RecordImported | RecordFailed


@dataclass(frozen=True)
class ImportTally:
    """Accumulator folded over per-record results."""

    successful: int = 0
    failed: int = 0
    errors: tuple[str, ...] = ()
    identities_created: int = 0

    def add(self, result: RecordImportResult) -> ImportTally:
        """Return a new tally including one more record result."""

        if isinstance(result, RecordFailed):
            return replace(
                self,
                failed=self.failed + 1,
                errors=(*self.errors, result.describe()),
            )
        return replace(
            self,
            successful=self.successful + 1,
            identities_created=self.identities_created + int(result.identity_created),
        )


@dataclass(frozen=True)
class ImportUsersResult:
    """Aggregate outcome returned to the import caller."""

    total: int
    successful: int
    failed: int
    errors: tuple[str, ...]
    identities_created: int = 0


class UserImportService:
    """Authorize an admin caller, then import each submitted user independently."""

    def __init__(
        self,
        *,
        caller_resolver: AdminCallerResolverPort,
        identities: IdentityRepositoryPort,
        profiles: ProfileRepositoryPort,
        default_avatar_url: str = DEFAULT_AVATAR_URL,
        propagation_delay_seconds: float = DEFAULT_PROPAGATION_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._caller_resolver = caller_resolver
        self._identities = identities
        self._profiles = profiles
        self._default_avatar_url = default_avatar_url
        self._propagation_delay_seconds = propagation_delay_seconds
        self._sleep = sleep

    async def import_users(
        self,
        *,
        authorization_header: str | None,
        payload: object,
    ) -> ImportUsersResult:
        """Authorize the caller, then import each submitted user sequentially.

        The body is only inspected once the caller is known to be an admin; one
        record failure never aborts the others.
        """

        caller_id = await self._caller_resolver.require_admin_identity(
            authorization_header=authorization_header,
        )
        users = _require_user_batch(payload)
        logger.info("user_import_started caller_id=%s total=%s", caller_id, len(users))

        tally = ImportTally()
        for index, submitted in enumerate(users, start=1):
            result = await self._import_one(submitted=submitted, position=index)
            tally = tally.add(result)

        logger.info(
            "user_import_completed caller_id=%s total=%s successful=%s failed=%s "
            "identities_created=%s",
            caller_id,
            len(users),
            tally.successful,
            tally.failed,
            tally.identities_created,
        )
        return ImportUsersResult(
            total=len(users),
            successful=tally.successful,
            failed=tally.failed,
            errors=tally.errors,
            identities_created=tally.identities_created,
        )

    async def _import_one(
        self,
        *,
        submitted: Mapping[str, object],
        position: int,
    ) -> RecordImportResult:
        """Apply one submitted user and capture its outcome as a result value."""

        reported_email = _reported_email(submitted.get("email"))

        validated = validate_import_row(submitted, position)
        if isinstance(validated, RowValidationError):
            logger.warning(
                "user_import_record_rejected position=%s email=%s error=%s",
                position,
                reported_email,
                validated.message,
            )
            return RecordFailed(email=reported_email, message=validated.message)

        try:
            return await self._apply_record(record=validated)
        except Exception as error:  # noqa: BLE001
            logger.warning(
                "user_import_record_failed position=%s email=%s error=%s",
                position,
                validated.email,
                error,
            )
            return RecordFailed(email=validated.email, message=str(error))

    async def _apply_record(self, *, record: ImportUserRecord) -> RecordImported:
        """Resolve or create the identity for one record, then update its profile."""

        existing = await self._identities.get_by_email(email=record.email)
        identity_created = existing is None
        if existing is not None:
            identity_id = existing.identity_id
            logger.info(
                "user_import_identity_reused email=%s identity_id=%s",
                record.email,
                identity_id,
            )
        else:
            try:
                created = await self._identities.create_identity(
                    IdentityCreateInput(
                        email=record.email,
                        user_metadata={"name": record.name, "department": record.department},
                    )
                )
            except Exception as error:  # noqa: BLE001
                raise ImportRecordError(f"Failed to create auth user: {error}") from error
            identity_id = created.identity_id
            logger.info(
                "user_import_identity_created email=%s identity_id=%s",
                record.email,
                identity_id,
            )
            await self._sleep(self._propagation_delay_seconds)

        # FIXME: rating and completed_helps are reset to zero even for a reused
        # identity; confirm with product whether existing stats should be kept.
        payload = ProfileUpdateInput(
            name=record.name,
            department=record.department,
            role=record.role,
            expertise=record.expertise,
            avatar=self._default_avatar_url,
            status=DEFAULT_PROFILE_STATUS,
            rating=0,
            completed_helps=0,
        )
        try:
            updated = await self._profiles.update_profile(profile_id=identity_id, payload=payload)
        except Exception as error:  # noqa: BLE001
            raise ImportRecordError(f"Failed to update profile: {error}") from error
        if updated is None:
            raise ImportRecordError("Failed to update profile: profile not found")

        return RecordImported(
            email=record.email,
            identity_id=identity_id,
            identity_created=identity_created,
        )


def _reported_email(value: object) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


def _require_user_batch(payload: object) -> Sequence[Mapping[str, object]]:
    try:
        request = ImportUsersRequest.model_validate(payload)
    except ValidationError as error:
        raise InvalidImportBatchError("Invalid users data - expected array of users") from error
    return request.users
