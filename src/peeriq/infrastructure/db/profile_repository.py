"""SQLAlchemy adapter for profile lookup and update."""

from __future__ import annotations

from datetime import datetime
from typing import Any, cast
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from peeriq.application.ports.profile_repository_port import (
    ProfileRecord,
    ProfileRepositoryPort,
    ProfileUpdateInput,
)
from peeriq.domain.auth.roles import Role
from peeriq.infrastructure.db.metadata import profiles


class SqlAlchemyProfileRepository(ProfileRepositoryPort):
    """Profile repository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_by_id(self, *, profile_id: UUID) -> ProfileRecord | None:
        """Return profile by id or None."""

        statement = sa.select(*profiles.c).where(profiles.c.id == profile_id).limit(1)

        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return _to_profile_record(row)

    async def update_profile(
        self,
        *,
        profile_id: UUID,
        payload: ProfileUpdateInput,
    ) -> ProfileRecord | None:
        """Update one existing profile row; never inserts a missing one."""

        statement = (
            sa.update(profiles)
            .where(profiles.c.id == profile_id)
            .values(
                name=payload.name,
                department=payload.department,
                role=payload.role.value,
                expertise=list(payload.expertise),
                avatar=payload.avatar,
                status=payload.status,
                rating=payload.rating,
                completed_helps=payload.completed_helps,
                updated_at=sa.text("CURRENT_TIMESTAMP"),
            )
        )

        async with self._session_factory() as session:
            result = cast(CursorResult[Any], await session.execute(statement))
            await session.commit()

        if int(result.rowcount or 0) == 0:
            return None
        return await self.get_by_id(profile_id=profile_id)


def _to_profile_record(row: sa.RowMapping) -> ProfileRecord:
    raw_profile_id = row["id"]
    profile_id = raw_profile_id if isinstance(raw_profile_id, UUID) else UUID(str(raw_profile_id))
    return ProfileRecord(
        profile_id=profile_id,
        name=cast(str, row["name"]),
        department=cast(str, row["department"]),
        role=Role(cast(str, row["role"])),
        expertise=tuple(cast(list[str], row["expertise"] or [])),
        avatar=cast(str, row["avatar"]),
        status=cast(str, row["status"]),
        rating=float(row["rating"]),
        completed_helps=int(row["completed_helps"]),
        updated_at=cast(datetime, row["updated_at"]),
    )
