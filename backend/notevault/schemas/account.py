"""
NoteVault Backend — Account Request/Response Schemas
======================================================

What:  Pydantic models for registration, login and profile payloads.
How:   FastAPI validates request bodies against these before the route runs.
       A failure becomes a 400 `validation_error` response with per-field
       details; CredentialService only ever sees validated input.

Security:
    AccountResponse has no password field. Routes build it from the ORM
    object, so the hash cannot be serialized by accident.
"""

import uuid
from datetime import datetime
from typing import Annotated

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, Field


def _check_email(value: str) -> str:
    """
    Syntax check only. The address is returned exactly as sent: accounts are
    matched on the exact string, so no case folding of the domain either.
    """
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise ValueError("value is not a valid email address") from None
    return value


ExactEmail = Annotated[str, AfterValidator(_check_email)]


class AccountCreate(BaseModel):
    """
    Registration body.

    Rules:
        - full_name: letters, whitespace and apostrophes only
        - email: syntactically valid address
        - password: 5 to 25 characters
    """
    full_name: str = Field(
        min_length=1,
        max_length=255,
        pattern=r"^[A-Za-z\s']+$",
        description="Display name (letters, spaces and apostrophes only)",
    )
    email: ExactEmail = Field(description="Login email; must not be registered yet")
    password: str = Field(min_length=5, max_length=25, description="Password (5-25 characters)")


class LoginRequest(BaseModel):
    email: ExactEmail = Field(description="Registered email")
    password: str = Field(min_length=1, description="Account password")


class AccountResponse(BaseModel):
    """Public profile of an account. Never includes credential material."""
    id: uuid.UUID = Field(description="Unique account identifier")
    full_name: str = Field(description="Display name")
    email: str = Field(description="Login email")
    created_at: datetime = Field(description="Registration time (UTC ISO 8601)")

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """
    Returned by register and login.

    access_token is a signed session token valid for the configured TTL
    (one hour by default). Send it as `Authorization: Bearer <token>`.
    """
    message: str = Field(description="Human-readable success message")
    account: AccountResponse = Field(description="The authenticated account")
    access_token: str = Field(description="Signed session token")
    token_type: str = Field(default="bearer", description="Always 'bearer'")
    expires_in: int = Field(description="Token lifetime in seconds")
