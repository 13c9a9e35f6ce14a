"""access core schema, row-level policies and is_superadmin()

Revision ID: 0001_access_core
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_access_core"
down_revision = None
branch_labels = None
depends_on = None

_ROLE = sa.Enum("admin", "member", name="assignmentrole", native_enum=False)

# Caller identity as bound by `bot_access.db.session.bind_request_claims`.
_SUB = "current_setting('request.jwt.claim.sub', true)"

_MY_BOTS = (
    "SELECT bu.bot_share_name FROM bot_users bu "
    f"WHERE bu.user_id = {_SUB} AND bu.is_active"
)

_POLICIES: dict[str, str] = {
    "bot_users": f"user_id = {_SUB}",
    "bots": f"bot_share_name IN ({_MY_BOTS})",
    "threads": f"bot_share_name IN ({_MY_BOTS})",
    "user_invitations": f"invited_by = {_SUB} OR bot_share_name IN ({_MY_BOTS})",
    "user_profiles": f"id = {_SUB}",
    "bot_super_users": f"user_id = {_SUB}",
}


def upgrade() -> None:
    op.create_table(
        "bots",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("bot_share_name", sa.String(128), nullable=True, unique=True),
        sa.Column("client_name", sa.String(256), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "bot_super_users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "bot_users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column(
            "bot_share_name",
            sa.String(128),
            sa.ForeignKey("bots.bot_share_name"),
            nullable=False,
        ),
        sa.Column("role", _ROLE, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("user_id", "bot_share_name", name="uq_bot_users_user_bot"),
    )
    op.create_index("ix_bot_users_user_id", "bot_users", ["user_id"])
    op.create_index("ix_bot_users_bot_share_name", "bot_users", ["bot_share_name"])
    op.create_index("ix_bot_users_user_active", "bot_users", ["user_id", "is_active"])

    op.create_table(
        "user_invitations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("first_name", sa.String(128), nullable=False, server_default=""),
        sa.Column("surname", sa.String(128), nullable=False, server_default=""),
        sa.Column("role", _ROLE, nullable=False),
        sa.Column(
            "bot_share_name",
            sa.String(128),
            sa.ForeignKey("bots.bot_share_name"),
            nullable=False,
        ),
        sa.Column("invited_by", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_user_invitations_bot_share_name", "user_invitations", ["bot_share_name"])
    op.create_index("ix_user_invitations_invited_by", "user_invitations", ["invited_by"])
    op.create_index("ix_user_invitations_created_at", "user_invitations", ["created_at"])

    op.create_table(
        "user_profiles",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("first_name", sa.String(128), nullable=False, server_default=""),
        sa.Column("surname", sa.String(128), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "threads",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("bot_share_name", sa.String(128), nullable=False),
        sa.Column("thread_id", sa.String(128), nullable=True),
        sa.Column("message_preview", sa.Text(), nullable=True),
        sa.Column("message_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_threads_bot_share_name", "threads", ["bot_share_name"])
    op.create_index("ix_threads_bot_created", "threads", ["bot_share_name", "created_at"])

    if op.get_bind().dialect.name != "postgresql":
        return

    # The owner (elevated credential) bypasses these; the standard role does not.
    for table, predicate in _POLICIES.items():
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        op.execute(f"CREATE POLICY {table}_self_read ON {table} FOR SELECT USING ({predicate})")

    op.execute(
        f"""
        CREATE OR REPLACE FUNCTION is_superadmin() RETURNS boolean
        LANGUAGE sql STABLE SECURITY DEFINER SET search_path = public
        AS $$
            SELECT EXISTS (
                SELECT 1 FROM bot_super_users
                WHERE user_id = {_SUB} AND is_active
            )
        $$
        """
    )


def downgrade() -> None:
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP FUNCTION IF EXISTS is_superadmin()")
        for table in _POLICIES:
            op.execute(f"DROP POLICY IF EXISTS {table}_self_read ON {table}")

    op.drop_table("threads")
    op.drop_table("user_profiles")
    op.drop_table("user_invitations")
    op.drop_table("bot_users")
    op.drop_table("bot_super_users")
    op.drop_table("bots")
