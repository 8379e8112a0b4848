"""
NoteVault Backend — Note SQLAlchemy Model
===========================================

What:  ORM model representing the `notes` table.
Who:   Used by NoteService for CRUD operations and by Alembic for schema management.

Table Design:
    - UUID primary key
    - owner_id: FK to accounts.id; every query filters on it together with the
      note id, so a guessed id from another account matches nothing
    - tags: JSON list of short, whitespace-free strings
    - is_pinned: pinned notes sort ahead of the rest
    - created_at: UTC with timezone

    Composite index on (owner_id, is_pinned, created_at) serves the list
    query: one owner's notes, pinned first, newest first.
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, Text, Uuid, false, text
from sqlalchemy.orm import Mapped, mapped_column

from notevault.database import Base


class Note(Base):
    """
    A personal text note owned by exactly one account.

    Query Patterns:
        - List: WHERE owner_id = :owner ORDER BY is_pinned DESC, created_at DESC
        - Get/edit/pin/delete: WHERE id = :id AND owner_id = :owner
        - Search: WHERE owner_id = :owner AND (title ILIKE :q OR content ILIKE :q)
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique note identifier",
    )

    title: Mapped[str] = mapped_column(
        String(225),
        nullable=False,
        comment="Note title",
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Note body",
    )

    tags: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Free-form labels",
    )

    is_pinned: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
        comment="Pinned notes are listed first",
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        comment="Account that owns this note",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this note was created (UTC)",
    )

    __table_args__ = (
        Index("idx_notes_owner_pinned_created", "owner_id", "is_pinned", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Note(id={self.id}, owner_id={self.owner_id}, "
            f"is_pinned={self.is_pinned})>"
        )
