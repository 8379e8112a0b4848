"""
NoteVault Backend — Account SQLAlchemy Model
==============================================

What:  ORM model representing the `accounts` table.
Who:   Used by CredentialService for registration, login and profile lookups.

Table Design:
    - UUID primary key: non-sequential, assigned at insert
    - email: UNIQUE index; the store rejects a second account with the same
      address even when two registrations race past the lookup check
    - password_hash: bcrypt output (60 chars, salt embedded); never serialized
    - created_at: UTC with timezone

    Accounts are immutable after creation; there is no update or delete path.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from notevault.database import Base


class Account(Base):
    """A registered user's identity and credential record."""

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier assigned at registration",
    )

    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name",
    )

    # Login key. Compared case-sensitively, exactly as submitted.
    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        index=True,
        comment="Login email, unique across all accounts",
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash of the password; the raw password is never stored",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this account was registered (UTC)",
    )

    def __repr__(self) -> str:
        # password_hash deliberately left out so accounts are safe to log
        return f"<Account(id={self.id}, email='{self.email}')>"
