"""
Name: 002_session_revocations (Alembic migration)

Responsibilities:
  - revoked_sessions: one row per signed-out session id
  - session_cutoffs: per-user "tokens issued at or before" marker (account deletion)

Collaborators:
  - infrastructure/repositories/postgres/session_revocations.py

Policy:
  - expires_at is the latest token expiry a row covers; expired rows are
    purged by the identity provider
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "002_session_revocations"
down_revision: Union[str, None] = "001_directory_foundation"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "revoked_sessions",
        sa.Column("sid", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("sid", name="pk_revoked_sessions"),
    )
    op.create_index("ix_revoked_sessions_expires_at", "revoked_sessions", ["expires_at"])

    op.create_table(
        "session_cutoffs",
        sa.Column("uid", sa.String(64), nullable=False),
        sa.Column("cutoff_ms", sa.BigInteger, nullable=False),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("uid", name="pk_session_cutoffs"),
    )
    op.create_index("ix_session_cutoffs_expires_at", "session_cutoffs", ["expires_at"])


def downgrade() -> None:
    op.drop_table("session_cutoffs")
    op.drop_table("revoked_sessions")
