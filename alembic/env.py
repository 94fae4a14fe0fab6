"""Alembic environment for the PeerIQ identity/profile schema.

Only online migrations are supported; both the sync sqlite URL used by
`alembic.ini` and the async URLs used by the API (`+aiosqlite`, `+asyncpg`)
are accepted.
"""

from __future__ import annotations

import asyncio
import os
from logging.config import fileConfig
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context
from peeriq.infrastructure.db.metadata import metadata

PLACEHOLDER_URL = "sqlite:///./peeriq.db"
ASYNC_DRIVERS = ("+aiosqlite", "+asyncpg")

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)


def _resolve_url() -> str:
    # URLs set on the Config object by callers win over DATABASE_URL.
    configured = config.get_main_option("sqlalchemy.url") or PLACEHOLDER_URL
    if configured != PLACEHOLDER_URL:
        return configured
    load_dotenv(Path(__file__).resolve().parents[1] / ".env")
    return os.getenv("DATABASE_URL") or configured


def _apply(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=metadata)
    with context.begin_transaction():
        context.run_migrations()


async def _apply_async(section: dict[str, str]) -> None:
    engine = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    async with engine.connect() as connection:
        await connection.run_sync(_apply)
    await engine.dispose()


def main() -> None:
    if context.is_offline_mode():
        raise RuntimeError("offline (--sql) migrations are not supported")

    url = _resolve_url()
    section = dict(config.get_section(config.config_ini_section, {}))
    section["sqlalchemy.url"] = url

    if any(driver in url for driver in ASYNC_DRIVERS):
        asyncio.run(_apply_async(section))
        return

    engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with engine.connect() as connection:
        _apply(connection)


main()
