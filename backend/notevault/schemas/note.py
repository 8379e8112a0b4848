"""
NoteVault Backend — Note Request/Response Schemas
===================================================

What:  Pydantic models defining the note API contract.
How:   FastAPI uses these models to validate request bodies, serialize responses,
       and generate the OpenAPI documentation.

Schemas are separate from the SQLAlchemy models: owner_id is never accepted
from the client (it always comes from the session token) and is never echoed
back.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


MAX_TAG_LENGTH = 25


def _check_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return tags
    for tag in tags:
        if len(tag) >= MAX_TAG_LENGTH or any(ch.isspace() for ch in tag):
            raise ValueError(
                "Invalid tags format, tags should be without spacing "
                f"and less than {MAX_TAG_LENGTH} characters"
            )
    return tags


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteCreate(BaseModel):
    title: str = Field(min_length=1, max_length=225, description="Note title")
    content: str = Field(min_length=1, description="Note body")
    tags: List[str] = Field(default_factory=list, description="Labels without whitespace")

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: List[str]) -> List[str]:
        return _check_tags(v)


class NoteUpdate(BaseModel):
    """
    Partial edit. Omitted (or null) fields are left unchanged; an edit that
    provides nothing at all is rejected by NoteService.
    """
    title: Optional[str] = Field(default=None, min_length=1, max_length=225)
    content: Optional[str] = Field(default=None, min_length=1)
    tags: Optional[List[str]] = Field(default=None)
    is_pinned: Optional[bool] = Field(default=None)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _check_tags(v)

    def has_changes(self) -> bool:
        return any(
            value is not None
            for value in (self.title, self.content, self.tags, self.is_pinned)
        )


class PinUpdate(BaseModel):
    is_pinned: bool = Field(description="New pin state")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    id: uuid.UUID = Field(description="Unique note identifier (UUID)")
    title: str = Field(description="Note title")
    content: str = Field(description="Note body")
    tags: List[str] = Field(description="Labels")
    is_pinned: bool = Field(description="Whether the note is pinned")
    created_at: datetime = Field(description="When the note was created (UTC ISO 8601)")

    model_config = {"from_attributes": True}


class NoteListResponse(BaseModel):
    """
    Wrapper for list and search results.

    Ordering: pinned notes first, then newest first.
    """
    notes: List[NoteResponse] = Field(description="Matching notes")
    total_count: int = Field(description="Number of notes returned")


class MessageResponse(BaseModel):
    message: str = Field(description="Human-readable result")


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models — shared by every router
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "invalid_token",
            "message": "Session token is invalid",
            "request_id": "550e8400"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
