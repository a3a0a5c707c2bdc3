"""
Name: 001_directory_foundation (Alembic migration)

Responsibilities:
  - Create the full schema from scratch: profiles, credentials, app_settings,
    contacts, audit_events

Collaborators:
  - infrastructure/repositories/postgres/* (this schema is their contract)

Policy:
  - Baseline migration; downgrade drops everything
  - Naming convention:
      pk_<table>, uq_<table>_<col>, ix_<table>_<col>
  - Role / status are plain strings checked by constraints (no DB enums)
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_directory_foundation"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    # =========================================================
    # 1) PROFILES
    # =========================================================
    op.create_table(
        "profiles",
        sa.Column("uid", sa.String(64), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column("role", sa.String(16), nullable=False, server_default=sa.text("'View'")),
        sa.Column(
            "status", sa.String(16), nullable=False, server_default=sa.text("'Active'")
        ),
        *_timestamps(),
        sa.Column("created_by", sa.String(64), nullable=True),
        sa.PrimaryKeyConstraint("uid", name="pk_profiles"),
        sa.CheckConstraint(
            "role IN ('View', 'Edit', 'Admin')", name="ck_profiles_role"
        ),
        sa.CheckConstraint(
            "status IN ('Active', 'Inactive', 'Deleted')", name="ck_profiles_status"
        ),
    )
    op.create_index(
        "uq_profiles_email_lower",
        "profiles",
        [sa.text("lower(email)")],
        unique=True,
    )
    op.create_index("ix_profiles_status", "profiles", ["status"])

    # =========================================================
    # 2) CREDENTIALS (identity accounts)
    # =========================================================
    op.create_table(
        "credentials",
        sa.Column("uid", sa.String(64), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.Text, nullable=False),
        sa.PrimaryKeyConstraint("uid", name="pk_credentials"),
    )
    op.create_index(
        "uq_credentials_email_lower",
        "credentials",
        [sa.text("lower(email)")],
        unique=True,
    )

    # =========================================================
    # 3) APP SETTINGS (single 'ipRestrictions' row)
    # =========================================================
    op.create_table(
        "app_settings",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("enabled", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column(
            "allowed_ranges",
            postgresql.ARRAY(sa.Text),
            nullable=False,
            server_default=sa.text("ARRAY[]::text[]"),
        ),
        sa.Column("description", sa.Text, nullable=False, server_default=sa.text("''")),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("updated_by", sa.String(64), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_app_settings"),
    )

    # =========================================================
    # 4) CONTACTS
    # =========================================================
    op.create_table(
        "contacts",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("title", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column("company", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column("email", sa.String(320), nullable=False, server_default=sa.text("''")),
        sa.Column("mobile_phone", sa.String(64), nullable=False, server_default=sa.text("''")),
        sa.Column("work_phone", sa.String(64), nullable=False, server_default=sa.text("''")),
        sa.Column("fax", sa.String(64), nullable=False, server_default=sa.text("''")),
        sa.Column("website", sa.Text, nullable=False, server_default=sa.text("''")),
        sa.Column("address", sa.Text, nullable=False, server_default=sa.text("''")),
        sa.Column("notes", sa.Text, nullable=False, server_default=sa.text("''")),
        *_timestamps(),
        sa.Column("created_by", sa.String(64), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_contacts"),
    )
    op.create_index("ix_contacts_name", "contacts", ["name"])

    # =========================================================
    # 5) AUDIT EVENTS
    # =========================================================
    op.create_table(
        "audit_events",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("actor", sa.String(128), nullable=False),
        sa.Column("action", sa.String(128), nullable=False),
        sa.Column("target_id", sa.String(64), nullable=True),
        sa.Column(
            "metadata",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_audit_events"),
    )
    op.create_index("ix_audit_events_created_at", "audit_events", ["created_at"])
    op.create_index("ix_audit_events_action", "audit_events", ["action"])


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_table("contacts")
    op.drop_table("app_settings")
    op.drop_table("credentials")
    op.drop_table("profiles")
