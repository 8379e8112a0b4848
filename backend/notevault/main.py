"""
NoteVault Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn notevault.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────────┐ ┌──────────┐ ┌─────────────────┐  │
    │  │  Rate Limit  │→│ Req ID   │→│  Logging        │  │
    │  └──────────────┘ └──────────┘ └─────────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌──────────────┐ ┌─────────────┐  │
    │  │ /api/auth/*  │ │ /api/notes/* │ │ GET /health │  │
    │  └──────────────┘ └──────────────┘ └─────────────┘  │
    │                                                     │
    │  app.state:                                         │
    │    token_service       (secret injected here)       │
    │    credential_service  (bcrypt cost injected here)  │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from notevault import __version__
from notevault.config import settings
from notevault.database import dispose_engine
from notevault.exceptions import (
    AuthenticationError,
    NoteVaultError,
    RateLimitExceededError,
    ValidationError,
)
from notevault.middleware.logging import RequestLoggingMiddleware
from notevault.middleware.rate_limit import RateLimitMiddleware
from notevault.middleware.request_id import RequestIDMiddleware, request_id_var
from notevault.routes import auth, health, notes
from notevault.services.credential_service import CredentialService
from notevault.services.token_service import TokenService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Docker captures stdout
        ],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("NoteVault Backend starting up...")

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    logger.info(
        "Session tokens: %s, ttl=%ds; bcrypt cost=%d",
        settings.token_algorithm,
        settings.token_ttl_seconds,
        settings.bcrypt_rounds,
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("NoteVault Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(exc: NoteVaultError) -> JSONResponse:
    """
    Build the JSON error body for an application exception.

    5xx kinds get their generic message only; 4xx kinds that set
    `expose_context` also return their context as `details`.
    """
    rid = request_id_var.get("")
    content = {
        "error": exc.error_code,
        "message": exc.message,
        "request_id": rid,
    }
    if exc.expose_context and exc.context:
        content["details"] = exc.context

    headers = {}
    if isinstance(exc, AuthenticationError):
        headers["WWW-Authenticate"] = "Bearer"
    if isinstance(exc, RateLimitExceededError):
        headers["Retry-After"] = str(exc.retry_after)

    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        RequestValidationError → 400 validation_error (field-level details)
        NoteVaultError         → exc.status_code / exc.error_code
        Exception (fallback)   → 500 internal_server_error

    Exception handlers never expose stack traces or SQL in the response.
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """Schema rejected the body/query; report fields without echoing input values."""
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        wrapped = ValidationError(message="Validation error", context={"errors": errors})
        logger.warning("[%s] Validation error on %s: %s", request_id_var.get(""), request.url.path, errors)
        return error_response(wrapped)

    @app.exception_handler(NoteVaultError)
    async def handle_app_error(request: Request, exc: NoteVaultError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        elif isinstance(exc, AuthenticationError):
            logger.warning("[%s] Authentication failed (%s) on %s", rid, exc.error_code, request.url.path)
        else:
            logger.info("[%s] %s: %s", rid, exc.error_code, exc.message)
        return error_response(exc)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: generic 500 with a request ID; stack trace logged server-side only."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    token_service: Optional[TokenService] = None,
    credential_service: Optional[CredentialService] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        token_service: Session token authority; built from settings when omitted
        credential_service: Credential manager; built from settings when omitted

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="NoteVault API",
        description=(
            "Personal note-taking backend. Register or log in to obtain a session "
            "token, then create, edit, pin, list, search and delete your own notes."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Services ──────────────────────────────────────────────────────────
    app.state.token_service = token_service or TokenService(
        secret=settings.token_secret,
        algorithm=settings.token_algorithm,
        ttl_seconds=settings.token_ttl_seconds,
    )
    app.state.credential_service = credential_service or CredentialService(
        rounds=settings.bcrypt_rounds,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "X-Total-Count",
            "Retry-After",
            "WWW-Authenticate",
        ],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        requests=settings.rate_limit_requests,
        credential_requests=settings.rate_limit_auth_requests,
        window=settings.rate_limit_window,
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(notes.router)
    app.include_router(health.router)

    return app


# uvicorn expects `notevault.main:app` to be importable
app = create_app()
