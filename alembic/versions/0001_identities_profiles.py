"""Initial schema for identities, profiles and session tokens."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "0001_identities_profiles"
down_revision = None
branch_labels = None
depends_on = None

sqlite_bigint = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "identities",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=True),
        sa.Column("email_confirmed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "user_metadata",
            sa.JSON(),
            nullable=False,
            server_default=sa.text("'{}'"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.UniqueConstraint("email", name="uq_identities_email"),
    )
    op.create_index("ix_identities_email", "identities", ["email"])

    op.create_table(
        "profiles",
        sa.Column(
            "id",
            sa.Uuid(),
            sa.ForeignKey("identities.id", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("department", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("role", sa.Text(), nullable=False, server_default=sa.text("'employee'")),
        sa.Column("expertise", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("avatar", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'available'")),
        sa.Column("rating", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("completed_helps", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.CheckConstraint(
            "role IN ('employee', 'expert', 'management', 'admin')",
            name="ck_profiles_role",
        ),
    )
    op.create_index("ix_profiles_role", "profiles", ["role"])

    op.create_table(
        "auth_tokens",
        sa.Column("id", sqlite_bigint, primary_key=True, autoincrement=True),
        sa.Column("identity_id", sa.Uuid(), sa.ForeignKey("identities.id"), nullable=False),
        sa.Column("token_hash", sa.Text(), nullable=False),
        sa.Column(
            "issued_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("token_hash", name="uq_auth_tokens_token_hash"),
    )
    op.create_index("ix_auth_tokens_identity_id", "auth_tokens", ["identity_id"])


def downgrade() -> None:
    op.drop_index("ix_auth_tokens_identity_id", table_name="auth_tokens")
    op.drop_table("auth_tokens")
    op.drop_index("ix_profiles_role", table_name="profiles")
    op.drop_table("profiles")
    op.drop_index("ix_identities_email", table_name="identities")
    op.drop_table("identities")
