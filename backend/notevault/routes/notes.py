"""
NoteVault Backend — Notes Route Handlers
==========================================

What:  Owner-scoped note CRUD, pinning, listing and search under /api/notes.
How:   Every handler depends on get_current_identity first; the identity's
       account_id is passed to NoteService as the owner filter. The owner is
       never read from the request body or path.

Caching Strategy:
    Note data is private and mutable: every response is `private, no-cache`.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.database import get_db_session
from notevault.dependencies import get_current_identity
from notevault.schemas.note import (
    ErrorResponse,
    MessageResponse,
    NoteCreate,
    NoteListResponse,
    NoteResponse,
    NoteUpdate,
    PinUpdate,
)
from notevault.services.note_service import note_service
from notevault.services.token_service import TokenIdentity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notes", tags=["Notes"])

AUTH_ERRORS = {
    401: {"description": "Missing, invalid or expired token", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}
NOT_FOUND = {404: {"description": "Note not found", "model": ErrorResponse}}

PRIVATE_CACHE = "private, no-cache"


@router.post(
    "",
    status_code=201,
    response_model=NoteResponse,
    responses={400: {"description": "Invalid note", "model": ErrorResponse}, **AUTH_ERRORS},
    summary="Create a note",
)
async def create_note(
    body: NoteCreate,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.create_note(
        db=db,
        owner_id=identity.account_id,
        title=body.title,
        content=body.content,
        tags=body.tags,
    )


@router.get(
    "",
    response_model=NoteListResponse,
    responses=AUTH_ERRORS,
    summary="List all notes, pinned first",
)
async def list_notes(
    response: Response,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> NoteListResponse:
    result = await note_service.list_notes(db=db, owner_id=identity.account_id)
    response.headers["X-Total-Count"] = str(result.total_count)
    response.headers["Cache-Control"] = PRIVATE_CACHE
    return result


# Declared before /{note_id} so "search" is not parsed as a UUID
@router.get(
    "/search",
    response_model=NoteListResponse,
    responses={400: {"description": "Missing query", "model": ErrorResponse}, **AUTH_ERRORS},
    summary="Search notes by title or content",
)
async def search_notes(
    response: Response,
    query: str = Query(default="", description="Case-insensitive text to look for"),
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> NoteListResponse:
    result = await note_service.search_notes(db=db, owner_id=identity.account_id, query=query)
    response.headers["X-Total-Count"] = str(result.total_count)
    response.headers["Cache-Control"] = PRIVATE_CACHE
    return result


@router.get(
    "/{note_id}",
    response_model=NoteResponse,
    responses={**NOT_FOUND, **AUTH_ERRORS},
    summary="Get a single note",
)
async def get_note(
    note_id: UUID,
    response: Response,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    result = await note_service.get_note(db=db, owner_id=identity.account_id, note_id=note_id)
    response.headers["Cache-Control"] = PRIVATE_CACHE
    return result


@router.put(
    "/{note_id}",
    response_model=NoteResponse,
    responses={400: {"description": "No changes provided", "model": ErrorResponse}, **NOT_FOUND, **AUTH_ERRORS},
    summary="Edit a note",
)
async def update_note(
    note_id: UUID,
    body: NoteUpdate,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.update_note(
        db=db,
        owner_id=identity.account_id,
        note_id=note_id,
        changes=body,
    )


@router.patch(
    "/{note_id}/pin",
    response_model=NoteResponse,
    responses={**NOT_FOUND, **AUTH_ERRORS},
    summary="Pin or unpin a note",
)
async def set_pinned(
    note_id: UUID,
    body: PinUpdate,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.set_pinned(
        db=db,
        owner_id=identity.account_id,
        note_id=note_id,
        is_pinned=body.is_pinned,
    )


@router.delete(
    "/{note_id}",
    response_model=MessageResponse,
    responses={**NOT_FOUND, **AUTH_ERRORS},
    summary="Delete a note",
)
async def delete_note(
    note_id: UUID,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await note_service.delete_note(db=db, owner_id=identity.account_id, note_id=note_id)
    return MessageResponse(message="Note deleted successfully")
