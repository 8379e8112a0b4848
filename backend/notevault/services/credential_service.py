"""
NoteVault Backend — Credential Service
========================================

What:  Registers accounts and verifies login credentials.
How:   Passwords are hashed with bcrypt (salted, adaptive cost). Hashing and
       verification run in Starlette's thread pool so a 50ms bcrypt call
       never stalls the event loop for other requests.
Who:   Called by the auth routes; results are handed to TokenService.

Register flow:
    ┌──────────────┐    ┌──────────┐    ┌───────────┐    ┌──────────┐
    │ find by email│───▶│  hash    │───▶│  insert   │───▶│ Account  │
    │ (dup check)  │    │ (bcrypt) │    │ (unique)  │    │          │
    └──────────────┘    └──────────┘    └───────────┘    └──────────┘
          │ found                            │ IntegrityError
          ▼                                  ▼
    DuplicateAccountError            DuplicateAccountError

Login flow:
    find by email → bcrypt.checkpw → Account
    Unknown email still pays for one checkpw against a dummy hash, so the
    two failure paths fall into the same timing class.

Passwords and hashes are never logged.
"""

import logging
import uuid
from typing import Optional

import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from notevault.exceptions import (
    AccountNotFoundError,
    DuplicateAccountError,
    InvalidCredentialsError,
    StoreUnavailableError,
    UnauthenticatedError,
)
from notevault.models.account import Account

logger = logging.getLogger(__name__)

# bcrypt only reads the first 72 bytes of a password; bcrypt>=5 raises on
# longer input instead of truncating, so truncate explicitly.
BCRYPT_MAX_BYTES = 72


def _encode_password(raw_password: str) -> bytes:
    return raw_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


class CredentialService:
    """
    Credential Manager.

    Stateless apart from the bcrypt cost factor and a lazily computed dummy
    hash; every call receives its own database session.
    """

    def __init__(self, rounds: int = 10):
        self.rounds = rounds
        self._dummy_hash: Optional[bytes] = None

    # ── Hashing primitives ────────────────────────────────────────────────

    async def hash_password(self, raw_password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = await run_in_threadpool(bcrypt.hashpw, _encode_password(raw_password), salt)
        return hashed.decode("utf-8")

    async def verify_password(self, raw_password: str, password_hash: str) -> bool:
        """Constant-time comparison delegated to bcrypt.checkpw."""
        try:
            return await run_in_threadpool(
                bcrypt.checkpw,
                _encode_password(raw_password),
                password_hash.encode("utf-8"),
            )
        except ValueError:
            # Stored value is not a bcrypt hash
            logger.error("Stored password hash has an invalid format")
            return False

    async def _burn_verification(self, raw_password: str) -> None:
        if self._dummy_hash is None:
            self._dummy_hash = (await self.hash_password(uuid.uuid4().hex)).encode("utf-8")
        await run_in_threadpool(bcrypt.checkpw, _encode_password(raw_password), self._dummy_hash)

    # ── Store access ──────────────────────────────────────────────────────

    async def _find_by_email(self, db: AsyncSession, email: str) -> Optional[Account]:
        try:
            result = await db.execute(select(Account).where(Account.email == email))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error looking up account by email: %s", type(e).__name__)
            raise StoreUnavailableError(context={"error_type": type(e).__name__})

    # ── Operations ────────────────────────────────────────────────────────

    async def register(
        self,
        db: AsyncSession,
        full_name: str,
        email: str,
        password: str,
    ) -> Account:
        """
        Create an account for a new email.

        Args:
            db: Async database session
            full_name, email, password: already validated by AccountCreate

        Returns:
            The persisted Account (password_hash populated; callers must not
            serialize it)

        Raises:
            DuplicateAccountError: email already registered, including the
                case where a concurrent registration wins the insert race
            StoreUnavailableError: any other database failure
        """
        if await self._find_by_email(db, email) is not None:
            logger.info("Registration refused: email already registered")
            raise DuplicateAccountError()

        account = Account(
            full_name=full_name,
            email=email,
            password_hash=await self.hash_password(password),
        )
        db.add(account)
        try:
            # Commit before a token is issued for this account
            await db.flush()
            await db.commit()
        except IntegrityError:
            logger.info("Registration lost insert race on unique email")
            raise DuplicateAccountError()
        except SQLAlchemyError as e:
            logger.error("Database error creating account: %s", type(e).__name__)
            raise StoreUnavailableError(context={"error_type": type(e).__name__})

        logger.info("Account %s registered", account.id)
        return account

    async def login(self, db: AsyncSession, email: str, password: str) -> Account:
        """
        Verify credentials and return the matching account.

        Raises:
            AccountNotFoundError: no account for this email
            InvalidCredentialsError: password does not match
            StoreUnavailableError: lookup failed
        """
        account = await self._find_by_email(db, email)
        if account is None:
            await self._burn_verification(password)
            logger.info("Login failed: unknown email")
            raise AccountNotFoundError()

        if not await self.verify_password(password, account.password_hash):
            logger.info("Login failed: bad password for account %s", account.id)
            raise InvalidCredentialsError()

        logger.info("Account %s logged in", account.id)
        return account

    async def get_account(self, db: AsyncSession, account_id: uuid.UUID) -> Account:
        """
        Re-fetch the account behind a validated token.

        Raises:
            UnauthenticatedError: the token is valid but its account is gone
            StoreUnavailableError: lookup failed
        """
        try:
            account = await db.get(Account, account_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching account %s: %s", account_id, type(e).__name__)
            raise StoreUnavailableError(context={"error_type": type(e).__name__})
        if account is None:
            raise UnauthenticatedError(message="Account for this session no longer exists")
        return account
