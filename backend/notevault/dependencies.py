"""
NoteVault Backend — Authentication Dependencies
=================================================

What:  FastAPI dependencies that turn an `Authorization: Bearer <token>` header
       into a TokenIdentity, plus accessors for the app-wide services.
How:   HTTPBearer(auto_error=False) extracts the credentials without raising;
       we raise our own UnauthenticatedError so every 401 has the same body.
Who:   Declared by every protected route as its FIRST dependency, ahead of
       get_db_session, so a rejected request never opens a database session.

Failure mapping:
    no header / not "Bearer" / empty token → UnauthenticatedError
    bad signature / malformed payload       → InvalidTokenError
    past expiry                             → ExpiredTokenError
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from notevault.exceptions import UnauthenticatedError
from notevault.services.credential_service import CredentialService
from notevault.services.token_service import TokenIdentity, TokenService

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False, description="Session token from /api/auth/login")


def get_token_service(request: Request) -> TokenService:
    """TokenService built from settings in create_app()."""
    return request.app.state.token_service


def get_credential_service(request: Request) -> CredentialService:
    return request.app.state.credential_service


async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token_service: TokenService = Depends(get_token_service),
) -> TokenIdentity:
    """
    Mandatory authentication for protected routes.

    Returns:
        TokenIdentity whose account_id scopes every downstream query

    Raises:
        UnauthenticatedError, InvalidTokenError, ExpiredTokenError (all → 401)
    """
    if credentials is None or not credentials.credentials.strip():
        logger.warning(
            "No usable Authorization header on %s %s",
            request.method,
            request.url.path,
        )
        raise UnauthenticatedError(message="Missing or malformed Authorization header")

    identity = token_service.validate_token(credentials.credentials.strip())
    logger.debug("Auth OK: account=%s %s %s", identity.account_id, request.method, request.url.path)
    return identity
