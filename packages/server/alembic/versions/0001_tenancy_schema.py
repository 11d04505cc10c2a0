"""Tenant directory, memberships, invitations, catalog and subscription ledger.

Revision ID: 0001_tenancy_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_tenancy_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CURRENT_STATUS_SQL = "status IN ('active', 'trial')"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # -----------------------------------------------------------------------
    # 1. Tenant directory
    # -----------------------------------------------------------------------
    op.create_table(
        "organizations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("settings", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_organizations_id", "organizations", ["id"])
    op.create_index("ix_organizations_name", "organizations", ["name"])

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("first_name", sa.String(), nullable=True),
        sa.Column("last_name", sa.String(), nullable=True),
        sa.Column("password_hash", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "teams",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_teams_id", "teams", ["id"])
    op.create_index("ix_teams_org_id", "teams", ["org_id"])

    # -----------------------------------------------------------------------
    # 2. Memberships
    # -----------------------------------------------------------------------
    op.create_table(
        "users_orgs",
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("org_id", sa.Uuid(), sa.ForeignKey("organizations.id"), primary_key=True),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_orgs_org_id", "users_orgs", ["org_id"])

    op.create_table(
        "teams_users",
        sa.Column("team_id", sa.Uuid(), sa.ForeignKey("teams.id"), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("role", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    # -----------------------------------------------------------------------
    # 3. Invitations
    # -----------------------------------------------------------------------
    op.create_table(
        "invitations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("team_id", sa.Uuid(), sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("role_in_team", sa.String(), nullable=True),
        sa.Column("token", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_invitations_id", "invitations", ["id"])
    op.create_index("ix_invitations_org_id", "invitations", ["org_id"])
    op.create_index("ix_invitations_team_id", "invitations", ["team_id"])
    op.create_index("ix_invitations_email", "invitations", ["email"])
    op.create_index("ix_invitations_status", "invitations", ["status"])
    op.create_index("ix_invitations_token", "invitations", ["token"], unique=True)

    # -----------------------------------------------------------------------
    # 4. Feature & plan catalog (global)
    # -----------------------------------------------------------------------
    op.create_table(
        "features",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_beta", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_features_id", "features", ["id"])
    op.create_index("ix_features_code", "features", ["code"], unique=True)

    op.create_table(
        "subscription_plans",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("monthly_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("annual_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("seat_limit", sa.Integer(), nullable=True),
        sa.Column("usage_limits", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_subscription_plans_id", "subscription_plans", ["id"])

    op.create_table(
        "plan_features",
        sa.Column("plan_id", sa.Uuid(), sa.ForeignKey("subscription_plans.id"), primary_key=True),
        sa.Column("feature_id", sa.Uuid(), sa.ForeignKey("features.id"), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_plan_features_feature_id", "plan_features", ["feature_id"])

    # -----------------------------------------------------------------------
    # 5. Subscription ledger
    # -----------------------------------------------------------------------
    op.create_table(
        "org_subscriptions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("plan_id", sa.Uuid(), sa.ForeignKey("subscription_plans.id"), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("seats_used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("usage", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_org_subscriptions_id", "org_subscriptions", ["id"])
    op.create_index("ix_org_subscriptions_org_id", "org_subscriptions", ["org_id"])
    op.create_index("ix_org_subscriptions_plan_id", "org_subscriptions", ["plan_id"])
    # At most one current (trial/active) subscription per organization.
    op.create_index(
        "uq_org_subscriptions_current",
        "org_subscriptions",
        ["org_id"],
        unique=True,
        postgresql_where=sa.text(CURRENT_STATUS_SQL),
        sqlite_where=sa.text(CURRENT_STATUS_SQL),
    )


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    for table in [
        "org_subscriptions",
        "plan_features",
        "subscription_plans",
        "features",
        "invitations",
        "teams_users",
        "users_orgs",
        "teams",
        "users",
        "organizations",
    ]:
        op.drop_table(table)
