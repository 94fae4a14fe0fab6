from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import uuid4

import pytest
from alembic.config import Config

from alembic import command
from peeriq.application.ports.auth_token_repository_port import AuthTokenCreateInput
from peeriq.application.ports.identity_repository_port import (
    IdentityAlreadyExistsError,
    IdentityCreateInput,
)
from peeriq.application.ports.profile_repository_port import ProfileUpdateInput
from peeriq.domain.auth.roles import Role
from peeriq.infrastructure.db.auth_token_repository import SqlAlchemyAuthTokenRepository
from peeriq.infrastructure.db.identity_repository import SqlAlchemyIdentityRepository
from peeriq.infrastructure.db.profile_repository import SqlAlchemyProfileRepository
from peeriq.infrastructure.db.session import create_session_factory

AVATAR = "https://avatars.example.org/default.png"


def _upgrade_head(tmp_path: Path, filename: str) -> str:
    db_path = tmp_path / filename
    sync_url = f"sqlite+pysqlite:///{db_path}"
    async_url = f"sqlite+aiosqlite:///{db_path}"

    alembic_config = Config("alembic.ini")
    alembic_config.set_main_option("sqlalchemy.url", sync_url)
    command.upgrade(alembic_config, "head")

    return async_url


@pytest.mark.asyncio
async def test_create_identity_provisions_default_profile(tmp_path: Path) -> None:
    session_factory = create_session_factory(_upgrade_head(tmp_path, "identity_create.db"))
    identities = SqlAlchemyIdentityRepository(session_factory, default_avatar_url=AVATAR)
    profiles = SqlAlchemyProfileRepository(session_factory)

    created = await identities.create_identity(
        IdentityCreateInput(
            email=" New.Hire@Company.com ",
            user_metadata={"name": "New Hire", "department": "Sales"},
        )
    )

    assert created.email == "new.hire@company.com"
    assert created.email_confirmed is True
    assert created.password_hash is None
    assert created.user_metadata == {"name": "New Hire", "department": "Sales"}

    fetched = await identities.get_by_email(email="NEW.HIRE@company.com")
    assert fetched is not None
    assert fetched.identity_id == created.identity_id

    profile = await profiles.get_by_id(profile_id=created.identity_id)
    assert profile is not None
    assert profile.name == "New Hire"
    assert profile.department == "Sales"
    assert profile.role is Role.EMPLOYEE
    assert profile.avatar == AVATAR
    assert profile.status == "available"
    assert profile.expertise == ()


@pytest.mark.asyncio
async def test_duplicate_email_is_rejected(tmp_path: Path) -> None:
    session_factory = create_session_factory(_upgrade_head(tmp_path, "identity_duplicate.db"))
    identities = SqlAlchemyIdentityRepository(session_factory)

    await identities.create_identity(IdentityCreateInput(email="dup@company.com"))

    with pytest.raises(IdentityAlreadyExistsError):
        await identities.create_identity(IdentityCreateInput(email="DUP@company.com"))

    assert [record.email for record in await identities.list_identities()] == ["dup@company.com"]


@pytest.mark.asyncio
async def test_list_identities_orders_by_email(tmp_path: Path) -> None:
    session_factory = create_session_factory(_upgrade_head(tmp_path, "identity_list.db"))
    identities = SqlAlchemyIdentityRepository(session_factory)

    for email in ("carol@company.com", "alice@company.com", "bob@company.com"):
        await identities.create_identity(IdentityCreateInput(email=email))

    assert [record.email for record in await identities.list_identities()] == [
        "alice@company.com",
        "bob@company.com",
        "carol@company.com",
    ]


@pytest.mark.asyncio
async def test_update_profile_overwrites_fields_and_never_inserts(tmp_path: Path) -> None:
    session_factory = create_session_factory(_upgrade_head(tmp_path, "profile_update.db"))
    identities = SqlAlchemyIdentityRepository(session_factory)
    profiles = SqlAlchemyProfileRepository(session_factory)
    created = await identities.create_identity(IdentityCreateInput(email="ann@company.com"))
    payload = ProfileUpdateInput(
        name="Ann Lee",
        department="Data Analytics",
        role=Role.EXPERT,
        expertise=("Excel", "Power BI"),
        avatar=AVATAR,
    )

    updated = await profiles.update_profile(profile_id=created.identity_id, payload=payload)
    missing = await profiles.update_profile(profile_id=uuid4(), payload=payload)

    assert updated is not None
    assert updated.name == "Ann Lee"
    assert updated.department == "Data Analytics"
    assert updated.role is Role.EXPERT
    assert updated.expertise == ("Excel", "Power BI")
    assert (updated.rating, updated.completed_helps) == (0.0, 0)
    assert missing is None
    assert await profiles.get_by_id(profile_id=uuid4()) is None


@pytest.mark.asyncio
async def test_auth_tokens_resolve_until_revoked_or_expired(tmp_path: Path) -> None:
    session_factory = create_session_factory(_upgrade_head(tmp_path, "auth_tokens.db"))
    identities = SqlAlchemyIdentityRepository(session_factory)
    tokens = SqlAlchemyAuthTokenRepository(session_factory)
    identity = await identities.create_identity(IdentityCreateInput(email="admin@company.com"))
    now = datetime.now(tz=UTC)

    await tokens.create_token(
        AuthTokenCreateInput(
            identity_id=identity.identity_id,
            token_hash="active-hash",
            expires_at=now + timedelta(hours=1),
        )
    )
    await tokens.create_token(
        AuthTokenCreateInput(
            identity_id=identity.identity_id,
            token_hash="expired-hash",
            expires_at=now - timedelta(minutes=1),
        )
    )

    active = await tokens.get_active_by_hash(token_hash="active-hash")
    assert active is not None
    assert active.identity_id == identity.identity_id
    assert active.is_revoked is False
    assert await tokens.get_active_by_hash(token_hash="expired-hash") is None
    assert await tokens.get_active_by_hash(token_hash="unknown-hash") is None

    revoked = await tokens.revoke_active_tokens_for_identity(identity_id=identity.identity_id)

    assert revoked == 2
    assert await tokens.get_active_by_hash(token_hash="active-hash") is None
