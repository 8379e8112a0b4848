"""
NoteVault Backend — Auth Route Tests
======================================

What:  End-to-end tests for /api/auth/* through the full middleware stack.
Why:   Verifies status codes, error kinds and headers that clients rely on.
How:   HTTPX AsyncClient over ASGITransport with an in-memory SQLite store.
"""

import os
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from notevault.models.account import Account
from notevault.services.token_service import TokenService

ALICE = {"full_name": "Alice A", "email": "alice@x.com", "password": "pw12345"}


class TestRegisterAndLogin:

    @pytest.mark.asyncio
    async def test_alice_end_to_end(self, test_client):
        registered = await test_client.post("/api/auth/register", json=ALICE)
        assert registered.status_code == 201
        body = registered.json()
        assert body["account"]["email"] == "alice@x.com"
        assert body["token_type"] == "bearer"
        assert body["expires_in"] == 3600
        assert registered.headers["cache-control"] == "no-store"

        duplicate = await test_client.post("/api/auth/register", json=ALICE)
        assert duplicate.status_code == 409
        assert duplicate.json()["error"] == "duplicate_account"

        wrong = await test_client.post(
            "/api/auth/login", json={"email": "alice@x.com", "password": "wrong1"}
        )
        assert wrong.status_code == 401
        assert wrong.json()["error"] == "invalid_credentials"

        login = await test_client.post(
            "/api/auth/login", json={"email": "alice@x.com", "password": "pw12345"}
        )
        assert login.status_code == 200
        assert login.json()["access_token"] != body["access_token"]
        assert login.json()["account"]["id"] == body["account"]["id"]

    @pytest.mark.asyncio
    async def test_responses_never_contain_password_material(self, test_client):
        registered = await test_client.post("/api/auth/register", json=ALICE)
        login = await test_client.post(
            "/api/auth/login", json={"email": "alice@x.com", "password": "pw12345"}
        )

        for response in (registered, login):
            assert "password" not in response.text
            assert "pw12345" not in response.text

    @pytest.mark.asyncio
    async def test_unknown_email_looks_like_wrong_password(self, test_client):
        await test_client.post("/api/auth/register", json=ALICE)

        wrong = await test_client.post(
            "/api/auth/login", json={"email": "alice@x.com", "password": "wrong1"}
        )
        unknown = await test_client.post(
            "/api/auth/login", json={"email": "nobody@x.com", "password": "wrong1"}
        )

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json()["message"] == unknown.json()["message"]
        assert set(wrong.json()) == set(unknown.json())
        assert unknown.json()["error"] == "account_not_found"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload, field",
        [
            ({**ALICE, "full_name": "Alice1"}, "full_name"),
            ({**ALICE, "email": "not-an-email"}, "email"),
            ({**ALICE, "password": "abc"}, "password"),
            ({**ALICE, "password": "x" * 26}, "password"),
            ({"email": "alice@x.com", "password": "pw12345"}, "full_name"),
        ],
    )
    async def test_register_validation(self, test_client, payload, field):
        response = await test_client.post("/api/auth/register", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert field in [err["field"] for err in body["details"]["errors"]]

    @pytest.mark.asyncio
    async def test_validation_does_not_echo_input(self, test_client):
        response = await test_client.post(
            "/api/auth/register", json={**ALICE, "password": "sekrit-but-way-too-long-for-rules"}
        )
        assert response.status_code == 400
        assert "sekrit" not in response.text


class TestMe:

    @pytest.mark.asyncio
    async def test_me_with_token(self, test_client, register):
        _, headers = await register(**ALICE)

        response = await test_client.get("/api/auth/me", headers=headers)

        assert response.status_code == 200
        assert response.json()["full_name"] == "Alice A"
        assert "password_hash" not in response.json()

    @pytest.mark.asyncio
    async def test_missing_header(self, test_client):
        response = await test_client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["error"] == "unauthenticated"
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_non_bearer_scheme(self, test_client):
        response = await test_client.get("/api/auth/me", headers={"Authorization": "Basic YTpi"})

        assert response.status_code == 401
        assert response.json()["error"] == "unauthenticated"

    @pytest.mark.asyncio
    async def test_garbage_token(self, test_client):
        response = await test_client.get(
            "/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "invalid_token"

    @pytest.mark.asyncio
    async def test_expired_token(self, test_client, register):
        body, _ = await register(**ALICE)
        issued_long_ago = TokenService(
            secret=os.environ["TOKEN_SECRET"],
            clock=lambda: datetime.now(timezone.utc) - timedelta(minutes=61),
        )

        account = Account(
            id=uuid.UUID(body["account"]["id"]),
            full_name="Alice A",
            email="alice@x.com",
            password_hash="unused",
        )
        stale = issued_long_ago.issue_token(account)

        response = await test_client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {stale}"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "expired_token"


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] == "connected"


class TestRegisterStoreFailure:
    """A commit that fails must surface as 500, never as a 201 with a token."""

    @pytest.mark.asyncio
    async def test_failed_commit_is_server_error(self, test_client, fail_commits):
        fail_commits(True)

        response = await test_client.post("/api/auth/register", json=ALICE)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert "access_token" not in body
        assert "disk I/O" not in response.text

    @pytest.mark.asyncio
    async def test_failed_registration_leaves_no_account(self, test_client, fail_commits):
        fail_commits(True)
        await test_client.post("/api/auth/register", json=ALICE)
        fail_commits(False)

        login = await test_client.post(
            "/api/auth/login", json={"email": "alice@x.com", "password": "pw12345"}
        )
        retry = await test_client.post("/api/auth/register", json=ALICE)

        assert login.status_code == 401
        assert login.json()["error"] == "account_not_found"
        assert retry.status_code == 201


class TestEmailMatching:
    """Emails are stored and matched exactly as sent, domain case included."""

    @pytest.mark.asyncio
    async def test_domain_case_is_a_different_account(self, test_client):
        lower = await test_client.post("/api/auth/register", json=ALICE)
        upper = await test_client.post(
            "/api/auth/register", json={**ALICE, "email": "alice@X.com", "password": "other99"}
        )

        assert lower.status_code == upper.status_code == 201
        assert upper.json()["account"]["email"] == "alice@X.com"
        assert upper.json()["account"]["id"] != lower.json()["account"]["id"]

        login = await test_client.post(
            "/api/auth/login", json={"email": "alice@X.com", "password": "other99"}
        )
        assert login.status_code == 200
        assert login.json()["account"]["id"] == upper.json()["account"]["id"]

    @pytest.mark.asyncio
    async def test_login_with_other_case_is_unknown(self, test_client):
        await test_client.post("/api/auth/register", json=ALICE)

        response = await test_client.post(
            "/api/auth/login", json={"email": "alice@X.COM", "password": "pw12345"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "account_not_found"
