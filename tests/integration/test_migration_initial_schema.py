from __future__ import annotations

from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic.config import Config
from sqlalchemy.exc import IntegrityError

from alembic import command


def _alembic_config(tmp_path: Path) -> tuple[Config, str]:
    db_path = tmp_path / "initial_schema.db"
    database_url = f"sqlite+pysqlite:///{db_path}"

    alembic_config = Config("alembic.ini")
    alembic_config.set_main_option("sqlalchemy.url", database_url)
    return alembic_config, database_url


def test_migration_creates_required_tables(tmp_path: Path) -> None:
    alembic_config, database_url = _alembic_config(tmp_path)
    command.upgrade(alembic_config, "head")

    inspector = sa.inspect(sa.create_engine(database_url))
    table_names = set(inspector.get_table_names())

    assert {"identities", "profiles", "auth_tokens"} <= table_names


def test_migration_creates_required_uniques_and_indexes(tmp_path: Path) -> None:
    alembic_config, database_url = _alembic_config(tmp_path)
    command.upgrade(alembic_config, "head")

    inspector = sa.inspect(sa.create_engine(database_url))

    identity_uniques = {
        tuple(constraint["column_names"])
        for constraint in inspector.get_unique_constraints("identities")
    }
    assert ("email",) in identity_uniques
    token_uniques = {
        tuple(constraint["column_names"])
        for constraint in inspector.get_unique_constraints("auth_tokens")
    }
    assert ("token_hash",) in token_uniques

    assert "ix_identities_email" in {index["name"] for index in inspector.get_indexes("identities")}
    assert "ix_profiles_role" in {index["name"] for index in inspector.get_indexes("profiles")}
    assert "ix_auth_tokens_identity_id" in {
        index["name"] for index in inspector.get_indexes("auth_tokens")
    }

    profile_foreign_keys = inspector.get_foreign_keys("profiles")
    assert profile_foreign_keys[0]["referred_table"] == "identities"


def test_profile_role_check_rejects_unknown_roles(tmp_path: Path) -> None:
    alembic_config, database_url = _alembic_config(tmp_path)
    command.upgrade(alembic_config, "head")

    engine = sa.create_engine(database_url)
    with engine.begin() as connection:
        connection.execute(
            sa.text(
                "INSERT INTO identities (id, email, user_metadata) "
                "VALUES ('0123456789abcdef0123456789abcdef', 'x@company.com', '{}')"
            )
        )

    with pytest.raises(IntegrityError), engine.begin() as connection:
        connection.execute(
            sa.text(
                "INSERT INTO profiles (id, name, role, avatar) "
                "VALUES ('0123456789abcdef0123456789abcdef', 'X', 'boss', 'a.png')"
            )
        )


def test_downgrade_drops_all_tables(tmp_path: Path) -> None:
    alembic_config, database_url = _alembic_config(tmp_path)
    command.upgrade(alembic_config, "head")
    command.downgrade(alembic_config, "base")

    table_names = set(sa.inspect(sa.create_engine(database_url)).get_table_names())

    assert not {"identities", "profiles", "auth_tokens"} & table_names
