"""
NoteVault Backend — Application Package Initializer
====================================================

What: Marks the `notevault` directory as a Python package.
Who:  Imported by uvicorn (`notevault.main:app`), Alembic and pytest.

Architecture Note:
    The backend is layered the same way for every resource:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Dependencies (auth, sessions)     │  ← Bearer token → identity
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← credentials, tokens, notes
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Every note query is scoped by the account id recovered from a validated
    session token. No route reaches the database before that check passes.
"""

__version__ = "1.0.0"
