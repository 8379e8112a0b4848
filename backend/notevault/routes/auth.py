"""
NoteVault Backend — Auth Route Handlers
=========================================

What:  POST /api/auth/register, POST /api/auth/login, GET /api/auth/me.
How:   Body validation by Pydantic, credential work by CredentialService,
       token minting by TokenService. Handlers only wire the three together.

Responses never contain the password hash: every account leaves through
AccountResponse.
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.database import get_db_session
from notevault.dependencies import (
    get_credential_service,
    get_current_identity,
    get_token_service,
)
from notevault.schemas.account import (
    AccountCreate,
    AccountResponse,
    AuthResponse,
    LoginRequest,
)
from notevault.schemas.note import ErrorResponse
from notevault.services.credential_service import CredentialService
from notevault.services.token_service import TokenIdentity, TokenService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=AuthResponse,
    responses={
        201: {"description": "Account created", "model": AuthResponse},
        400: {"description": "Invalid input", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Register a new account",
)
async def register(
    body: AccountCreate,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    credentials: CredentialService = Depends(get_credential_service),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    account = await credentials.register(
        db=db,
        full_name=body.full_name,
        email=body.email,
        password=body.password,
    )
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse(
        message="Registration successful",
        account=AccountResponse.model_validate(account),
        access_token=tokens.issue_token(account),
        expires_in=tokens.ttl_seconds,
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        200: {"description": "Logged in", "model": AuthResponse},
        400: {"description": "Invalid input", "model": ErrorResponse},
        401: {"description": "Unknown email or wrong password", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Log in with email and password",
)
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    credentials: CredentialService = Depends(get_credential_service),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    account = await credentials.login(db=db, email=body.email, password=body.password)
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse(
        message="Login successful",
        account=AccountResponse.model_validate(account),
        access_token=tokens.issue_token(account),
        expires_in=tokens.ttl_seconds,
    )


@router.get(
    "/me",
    response_model=AccountResponse,
    responses={
        200: {"description": "Current account", "model": AccountResponse},
        401: {"description": "Missing, invalid or expired token", "model": ErrorResponse},
    },
    summary="Get the authenticated account",
)
async def me(
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
    credentials: CredentialService = Depends(get_credential_service),
) -> AccountResponse:
    """Profile is re-read from the store; the token only carries the id."""
    account = await credentials.get_account(db=db, account_id=identity.account_id)
    return AccountResponse.model_validate(account)
