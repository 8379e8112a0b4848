# Middleware package init
"""
NoteVault Backend — Middleware Package
========================================

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Rate Limit first: reject abusive clients before any bcrypt or DB work
    2. Request ID: correlation ID for logs and error bodies
    3. Logging: access line with status and duration

Authentication is NOT middleware: it is the `get_current_identity` FastAPI
dependency, declared per protected route.
"""
