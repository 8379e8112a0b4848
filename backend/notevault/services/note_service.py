"""
NoteVault Backend — Note Service (Owner-Scoped CRUD)
=====================================================

What:  Create, read, edit, pin, list, search and delete notes for one account.
How:   Every statement carries `Note.owner_id == owner_id`; single-note
       operations add `Note.id == note_id` to the same WHERE clause.
Who:   Called by note route handlers with the owner id taken from the
       validated session token.

Isolation:
    A note belonging to another account is indistinguishable from a note
    that does not exist: both raise NotFoundError. No method accepts a
    query without an owner.

Error Handling:
    Database errors are wrapped in StoreUnavailableError (hides internal
    details). NoteVaultError subclasses propagate unchanged.
    Write methods commit before returning: a failed commit is a
    StoreUnavailableError, never a reported success.
"""

import logging
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, desc, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.exceptions import NotFoundError, StoreUnavailableError, ValidationError
from notevault.models.note import Note
from notevault.schemas.note import NoteListResponse, NoteResponse, NoteUpdate

logger = logging.getLogger(__name__)


def _store_error(action: str, e: Exception) -> StoreUnavailableError:
    logger.error("Database error while %s: %s", action, str(e), exc_info=True)
    return StoreUnavailableError(
        message=f"Could not {action}. Please try again.",
        context={"error_type": type(e).__name__},
    )


def _to_list_response(notes: Sequence[Note]) -> NoteListResponse:
    return NoteListResponse(
        notes=[NoteResponse.model_validate(note) for note in notes],
        total_count=len(notes),
    )


class NoteService:
    """
    Business logic layer for note operations.

    Stateless: each call receives its own database session and owner id.
    """

    async def _find_owned(self, db: AsyncSession, owner_id: UUID, note_id: UUID) -> Note:
        try:
            result = await db.execute(
                select(Note).where(Note.id == note_id, Note.owner_id == owner_id)
            )
            note = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise _store_error("retrieve the note", e)

        if note is None:
            raise NotFoundError(resource="note", resource_id=str(note_id))
        return note

    async def create_note(
        self,
        db: AsyncSession,
        owner_id: UUID,
        title: str,
        content: str,
        tags: Optional[List[str]] = None,
    ) -> NoteResponse:
        note = Note(
            title=title,
            content=content,
            tags=list(tags or []),
            is_pinned=False,
            owner_id=owner_id,
        )
        db.add(note)
        try:
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            raise _store_error("create the note", e)

        logger.info("Note %s created for account %s", note.id, owner_id)
        return NoteResponse.model_validate(note)

    async def get_note(self, db: AsyncSession, owner_id: UUID, note_id: UUID) -> NoteResponse:
        """
        Raises:
            NotFoundError: no note with this id belongs to owner_id (→ 404)
            StoreUnavailableError: query execution failed (→ 500)
        """
        note = await self._find_owned(db, owner_id, note_id)
        return NoteResponse.model_validate(note)

    async def list_notes(self, db: AsyncSession, owner_id: UUID) -> NoteListResponse:
        """All of the owner's notes, pinned first, then newest first."""
        try:
            result = await db.execute(
                select(Note)
                .where(Note.owner_id == owner_id)
                .order_by(desc(Note.is_pinned), desc(Note.created_at))
            )
            notes = list(result.scalars().all())
        except SQLAlchemyError as e:
            raise _store_error("retrieve notes", e)

        return _to_list_response(notes)

    async def update_note(
        self,
        db: AsyncSession,
        owner_id: UUID,
        note_id: UUID,
        changes: NoteUpdate,
    ) -> NoteResponse:
        """
        Apply the provided fields to one of the owner's notes.

        Raises:
            ValidationError: the edit provides no fields at all
            NotFoundError: note missing or owned by someone else
        """
        if not changes.has_changes():
            raise ValidationError(message="No changes provided")

        note = await self._find_owned(db, owner_id, note_id)
        if changes.title is not None:
            note.title = changes.title
        if changes.content is not None:
            note.content = changes.content
        if changes.tags is not None:
            note.tags = list(changes.tags)
        if changes.is_pinned is not None:
            note.is_pinned = changes.is_pinned

        try:
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            raise _store_error("update the note", e)

        logger.info("Note %s updated", note.id)
        return NoteResponse.model_validate(note)

    async def set_pinned(
        self,
        db: AsyncSession,
        owner_id: UUID,
        note_id: UUID,
        is_pinned: bool,
    ) -> NoteResponse:
        note = await self._find_owned(db, owner_id, note_id)
        note.is_pinned = is_pinned
        try:
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            raise _store_error("update the note", e)

        logger.info("Note %s pinned=%s", note.id, is_pinned)
        return NoteResponse.model_validate(note)

    async def delete_note(self, db: AsyncSession, owner_id: UUID, note_id: UUID) -> None:
        """
        Delete with the joint (id, owner) filter.

        Raises:
            NotFoundError: nothing matched, so nothing was deleted
        """
        try:
            result = await db.execute(
                delete(Note).where(Note.id == note_id, Note.owner_id == owner_id)
            )
            await db.commit()
        except SQLAlchemyError as e:
            raise _store_error("delete the note", e)

        if result.rowcount == 0:
            raise NotFoundError(resource="note", resource_id=str(note_id))
        logger.info("Note %s deleted by account %s", note_id, owner_id)

    async def search_notes(self, db: AsyncSession, owner_id: UUID, query: str) -> NoteListResponse:
        """
        Case-insensitive substring search over title and content.

        The query is matched literally; LIKE wildcards in it are escaped.

        Raises:
            ValidationError: query is empty or whitespace
        """
        term = (query or "").strip()
        if not term:
            raise ValidationError(message="Search query is needed", field="query")

        try:
            result = await db.execute(
                select(Note)
                .where(
                    Note.owner_id == owner_id,
                    or_(
                        Note.title.icontains(term, autoescape=True),
                        Note.content.icontains(term, autoescape=True),
                    ),
                )
                .order_by(desc(Note.is_pinned), desc(Note.created_at))
            )
            notes = list(result.scalars().all())
        except SQLAlchemyError as e:
            raise _store_error("search notes", e)

        return _to_list_response(notes)


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
