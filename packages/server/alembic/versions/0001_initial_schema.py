"""Initial schema: users, organizations, memberships, invites, settings, OIDC configs.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 10:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LIVE_ROWS = sa.text("NOT deleted")
GENERIC_VALID = sa.text("invited_email IS NULL AND invalidation_time IS NULL")


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def _deleted() -> sa.Column:
    return sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.false())


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=True, unique=True),
        sa.Column("avatar_url", sa.String(), nullable=True),
        _timestamp("created_at"),
    )

    op.create_table(
        "organizations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("slug", sa.String(63), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _deleted(),
    )
    # Slugs are unique among live orgs only, ignoring case; deleted orgs release theirs.
    op.create_index(
        "uq_organizations_slug_live",
        "organizations",
        [sa.text("lower(slug)")],
        unique=True,
        postgresql_where=LIVE_ROWS,
        sqlite_where=LIVE_ROWS,
    )

    op.create_table(
        "memberships",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("organization_id", sa.Uuid(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default="member"),
        _timestamp("created_at"),
        _deleted(),
    )
    op.create_index("ix_memberships_organization_id", "memberships", ["organization_id"])
    op.create_index("ix_memberships_user_id", "memberships", ["user_id"])
    op.create_index(
        "uq_memberships_org_user_live",
        "memberships",
        ["organization_id", "user_id"],
        unique=True,
        postgresql_where=LIVE_ROWS,
        sqlite_where=LIVE_ROWS,
    )

    op.create_table(
        "membership_invites",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("organization_id", sa.Uuid(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default="member"),
        sa.Column("invalidation_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("invited_email", sa.String(), nullable=True),
        _timestamp("created_at"),
        _deleted(),
    )
    op.create_index("ix_membership_invites_organization_id", "membership_invites", ["organization_id"])
    op.create_index(
        "uq_membership_invites_generic_valid",
        "membership_invites",
        ["organization_id"],
        unique=True,
        postgresql_where=GENERIC_VALID,
        sqlite_where=GENERIC_VALID,
    )

    op.create_table(
        "org_settings",
        sa.Column("organization_id", sa.Uuid(), sa.ForeignKey("organizations.id"), primary_key=True),
        sa.Column("workspace_sharing_disabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("updated_at"),
        _deleted(),
    )

    op.create_table(
        "oidc_client_configs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("organization_id", sa.Uuid(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("issuer", sa.String(255), nullable=False),
        sa.Column("data", sa.Text(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("last_modified"),
        _deleted(),
    )
    op.create_index("ix_oidc_client_configs_organization_id", "oidc_client_configs", ["organization_id"])


def downgrade() -> None:
    op.drop_table("oidc_client_configs")
    op.drop_table("org_settings")
    op.drop_index("uq_membership_invites_generic_valid", table_name="membership_invites")
    op.drop_table("membership_invites")
    op.drop_index("uq_memberships_org_user_live", table_name="memberships")
    op.drop_table("memberships")
    op.drop_index("uq_organizations_slug_live", table_name="organizations")
    op.drop_table("organizations")
    op.drop_table("users")
