# Routes package init
"""
NoteVault Backend — API Routes Package
========================================

Route Inventory:
    - auth.py:    POST /api/auth/register, POST /api/auth/login, GET /api/auth/me
    - notes.py:   POST/GET /api/notes, GET /api/notes/search,
                  GET/PUT/DELETE /api/notes/{id}, PATCH /api/notes/{id}/pin
    - health.py:  GET  /health

Routes are thin: extract input, call a service, set headers. Protected
routes take `get_current_identity` as their first dependency.
"""
