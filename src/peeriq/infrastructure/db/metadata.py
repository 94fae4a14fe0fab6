"""SQLAlchemy metadata definitions for PeerIQ identity and profile tables."""

from __future__ import annotations

import sqlalchemy as sa

metadata = sa.MetaData()
sqlite_bigint = sa.BigInteger().with_variant(sa.Integer(), "sqlite")

identities = sa.Table(
    "identities",
    metadata,
    sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
    sa.Column("email", sa.Text(), nullable=False),
    sa.Column("password_hash", sa.Text(), nullable=True),
    sa.Column(
        "email_confirmed",
        sa.Boolean(),
        nullable=False,
        server_default=sa.false(),
    ),
    sa.Column("user_metadata", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
    sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    ),
    sa.UniqueConstraint("email", name="uq_identities_email"),
)
sa.Index("ix_identities_email", identities.c.email)

profiles = sa.Table(
    "profiles",
    metadata,
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
sa.Index("ix_profiles_role", profiles.c.role)

auth_tokens = sa.Table(
    "auth_tokens",
    metadata,
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
sa.Index("ix_auth_tokens_identity_id", auth_tokens.c.identity_id)
