"""Create accounts and notes tables

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates `accounts` (unique email) and `notes` (owned by an account).
How:   Generic SQLAlchemy types so the same migration runs on PostgreSQL and SQLite.

Rollback: downgrade() drops both tables (destructive — all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Column rationale documented in notevault/models/account.py and note.py."""
    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False,
                  comment="Unique identifier assigned at registration"),
        sa.Column("full_name", sa.String(255), nullable=False, comment="Display name"),
        sa.Column("email", sa.String(320), nullable=False,
                  comment="Login email, unique across all accounts"),
        sa.Column("password_hash", sa.String(255), nullable=False,
                  comment="bcrypt hash of the password; the raw password is never stored"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this account was registered (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    # Unique index: concurrent registrations with one email cannot both insert
    op.create_index("ix_accounts_email", "accounts", ["email"], unique=True)

    op.create_table(
        "notes",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False, comment="Unique note identifier"),
        sa.Column("title", sa.String(225), nullable=False, comment="Note title"),
        sa.Column("content", sa.Text(), nullable=False, comment="Note body"),
        sa.Column("tags", sa.JSON(), nullable=False, comment="Free-form labels"),
        sa.Column(
            "is_pinned",
            sa.Boolean(),
            server_default=sa.false(),
            nullable=False,
            comment="Pinned notes are listed first",
        ),
        sa.Column("owner_id", sa.Uuid(as_uuid=True), nullable=False,
                  comment="Account that owns this note"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this note was created (UTC)",
        ),
        sa.ForeignKeyConstraint(["owner_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_notes_owner_pinned_created",
        "notes",
        ["owner_id", "is_pinned", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_notes_owner_pinned_created", table_name="notes")
    op.drop_table("notes")
    op.drop_index("ix_accounts_email", table_name="accounts")
    op.drop_table("accounts")
