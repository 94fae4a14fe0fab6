"""SQLAlchemy adapter for identity lookup and creation."""

from __future__ import annotations

from datetime import datetime
from typing import Any, cast
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from peeriq.application.ports.identity_repository_port import (
    IdentityAlreadyExistsError,
    IdentityCreateInput,
    IdentityRecord,
    IdentityRepositoryPort,
)
from peeriq.application.ports.profile_repository_port import DEFAULT_AVATAR_URL
from peeriq.domain.auth.credentials import canonical_email
from peeriq.domain.auth.roles import Role
from peeriq.infrastructure.db.metadata import identities, profiles


class SqlAlchemyIdentityRepository(IdentityRepositoryPort):
    """Identity repository backed by SQLAlchemy async sessions.

    Creating an identity also provisions its default profile row in the same
    transaction, mirroring the platform hook that owns profile creation.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        default_avatar_url: str = DEFAULT_AVATAR_URL,
    ) -> None:
        self._session_factory = session_factory
        self._default_avatar_url = default_avatar_url

    async def get_by_id(self, *, identity_id: UUID) -> IdentityRecord | None:
        """Return identity by id or None."""

        statement = sa.select(*identities.c).where(identities.c.id == identity_id).limit(1)

        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return _to_identity_record(row)

    async def get_by_email(self, *, email: str) -> IdentityRecord | None:
        """Return identity by normalized email or None."""

        normalized = canonical_email(email)
        statement = sa.select(*identities.c).where(identities.c.email == normalized).limit(1)

        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return _to_identity_record(row)

    async def create_identity(self, payload: IdentityCreateInput) -> IdentityRecord:
        """Insert identity plus default profile and return the persisted identity."""

        identity_id = uuid4()
        email = canonical_email(payload.email)
        metadata_name = payload.user_metadata.get("name")
        metadata_department = payload.user_metadata.get("department")

        async with self._session_factory() as session:
            try:
                result = await session.execute(
                    sa.insert(identities)
                    .values(
                        id=identity_id,
                        email=email,
                        password_hash=payload.password_hash,
                        email_confirmed=payload.email_confirmed,
                        user_metadata=dict(payload.user_metadata),
                    )
                    .returning(*identities.c)
                )
                row = result.mappings().one()
                await session.execute(
                    sa.insert(profiles).values(
                        id=identity_id,
                        name=metadata_name if isinstance(metadata_name, str) else email,
                        department=(
                            metadata_department if isinstance(metadata_department, str) else ""
                        ),
                        role=Role.EMPLOYEE.value,
                        expertise=[],
                        avatar=self._default_avatar_url,
                    )
                )
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise IdentityAlreadyExistsError(email=email) from exc

        return _to_identity_record(row)

    async def list_identities(self) -> list[IdentityRecord]:
        """Return all identities ordered by email."""

        statement = sa.select(*identities.c).order_by(identities.c.email.asc())

        async with self._session_factory() as session:
            result = await session.execute(statement)

        return [_to_identity_record(row) for row in result.mappings().all()]


def _to_identity_record(row: sa.RowMapping) -> IdentityRecord:
    raw_identity_id = row["id"]
    identity_id = (
        raw_identity_id if isinstance(raw_identity_id, UUID) else UUID(str(raw_identity_id))
    )
    return IdentityRecord(
        identity_id=identity_id,
        email=cast(str, row["email"]),
        password_hash=cast(str | None, row["password_hash"]),
        email_confirmed=bool(row["email_confirmed"]),
        user_metadata=dict(cast(dict[str, Any], row["user_metadata"] or {})),
        created_at=cast(datetime, row["created_at"]),
    )
