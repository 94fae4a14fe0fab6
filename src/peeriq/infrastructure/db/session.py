"""Async SQLAlchemy engine and session factory construction."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


def create_session_factory(
    database_url: str,
    *,
    echo: bool = False,
) -> async_sessionmaker[AsyncSession]:
    """Build a session factory for the identity/profile datastore at `database_url`."""

    engine = create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=not database_url.startswith("sqlite"),
    )
    return async_sessionmaker(engine, expire_on_commit=False)
