# Services package init
"""
NoteVault Backend — Services Layer
====================================

What:  Business logic between routes (HTTP) and database (persistence).

Service Inventory:
    - CredentialService: registration and login; bcrypt hashing off the event loop
    - TokenService: signed, expiring session tokens; recovers TokenIdentity
    - NoteService: owner-scoped note CRUD, pinning, listing and search

CredentialService and TokenService live on app.state (configured in
create_app); NoteService is a stateless module-level singleton.
"""
