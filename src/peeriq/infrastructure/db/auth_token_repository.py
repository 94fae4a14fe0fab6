"""SQLAlchemy adapter for opaque session token persistence."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, cast
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from peeriq.application.ports.auth_token_repository_port import (
    AuthTokenCreateInput,
    AuthTokenRecord,
    AuthTokenRepositoryPort,
)
from peeriq.infrastructure.db.metadata import auth_tokens


class SqlAlchemyAuthTokenRepository(AuthTokenRepositoryPort):
    """Session token repository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create_token(self, payload: AuthTokenCreateInput) -> AuthTokenRecord:
        """Store the hash of a freshly issued token for one identity."""

        statement = (
            sa.insert(auth_tokens)
            .values(
                identity_id=payload.identity_id,
                token_hash=payload.token_hash,
                expires_at=payload.expires_at,
            )
            .returning(*auth_tokens.c)
        )

        async with self._session_factory() as session:
            result = await session.execute(statement)
            await session.commit()

        return _to_auth_token_record(result.mappings().one())

    async def get_active_by_hash(self, *, token_hash: str) -> AuthTokenRecord | None:
        """Return the unrevoked, unexpired token with this hash and stamp its last use."""

        now = datetime.now(tz=UTC)
        lookup = (
            sa.select(*auth_tokens.c)
            .where(
                auth_tokens.c.token_hash == token_hash,
                auth_tokens.c.revoked_at.is_(None),
                auth_tokens.c.expires_at > now,
            )
            .limit(1)
        )

        async with self._session_factory() as session:
            row = (await session.execute(lookup)).mappings().first()
            if row is None:
                return None
            await session.execute(
                sa.update(auth_tokens)
                .where(auth_tokens.c.id == row["id"])
                .values(last_used_at=now)
            )
            await session.commit()

        return _to_auth_token_record(row)

    async def revoke_active_tokens_for_identity(self, *, identity_id: UUID) -> int:
        """Revoke every unrevoked token of one identity (sign-out)."""

        statement = (
            sa.update(auth_tokens)
            .where(
                auth_tokens.c.identity_id == identity_id,
                auth_tokens.c.revoked_at.is_(None),
            )
            .values(revoked_at=sa.text("CURRENT_TIMESTAMP"))
        )

        async with self._session_factory() as session:
            result = cast(CursorResult[Any], await session.execute(statement))
            await session.commit()

        return int(result.rowcount or 0)


def _to_auth_token_record(row: sa.RowMapping) -> AuthTokenRecord:
    raw_identity_id = row["identity_id"]
    identity_id = (
        raw_identity_id if isinstance(raw_identity_id, UUID) else UUID(str(raw_identity_id))
    )
    return AuthTokenRecord(
        id=int(row["id"]),
        identity_id=identity_id,
        token_hash=cast(str, row["token_hash"]),
        issued_at=cast(datetime, row["issued_at"]),
        expires_at=cast(datetime, row["expires_at"]),
        revoked_at=cast(datetime | None, row["revoked_at"]),
        last_used_at=cast(datetime | None, row["last_used_at"]),
    )
