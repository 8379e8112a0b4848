"""
NoteVault Backend — Session Token Service
===========================================

What:  Issues and validates signed, time-limited session tokens (JWT, HS256).
How:   python-jose signs the payload with the process-wide secret. Validation
       verifies the signature, then compares `exp` with the injected clock.
Who:   Register/login routes call issue_token(); the auth dependency calls
       validate_token() before every protected route.

Token payload (minimal identity, no credential material):
    {
        "sub":   "<account uuid>",
        "email": "alice@x.com",
        "name":  "Alice A",
        "iat":   1700000000,
        "exp":   1700003600,
        "jti":   "<random hex>"      # makes every issued token distinct
    }

Token lifecycle:
    Issued → Valid (now < exp and signature intact) → Expired (terminal)

    There is no revocation list. A leaked token stays valid until it expires;
    adding revocation means checking `jti` against a deny-list, or a per-account
    token version claim.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from jose import JWTError, jwt

from notevault.exceptions import ExpiredTokenError, InvalidTokenError
from notevault.models.account import Account

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenIdentity:
    """Identity recovered from a validated token; account_id scopes every note query."""
    account_id: uuid.UUID
    email: str
    full_name: str


class TokenService:
    """
    Session Token Authority.

    The secret, algorithm, lifetime and clock are all constructor arguments.
    main.py builds one instance from Settings at startup; tests build their
    own with a fixed secret and a controllable clock.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl_seconds: int = 3600,
        clock: Optional[Clock] = None,
    ):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock or _utc_now

    @property
    def ttl_seconds(self) -> int:
        return int(self._ttl.total_seconds())

    def issue_token(self, account: Account) -> str:
        """
        Sign a token asserting "the bearer is `account`".

        exp = now + ttl. Two tokens issued for the same account differ by
        their `jti` even within the same second.
        """
        issued_at = int(self._clock().timestamp())
        payload = {
            "sub": str(account.id),
            "email": account.email,
            "name": account.full_name,
            "iat": issued_at,
            "exp": issued_at + self.ttl_seconds,
            "jti": uuid.uuid4().hex,
        }
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        logger.info("Issued session token for account %s (expires in %ds)", account.id, self.ttl_seconds)
        return token

    def validate_token(self, token: str) -> TokenIdentity:
        """
        Verify a token and return the identity it asserts.

        Raises:
            InvalidTokenError: bad signature, wrong algorithm, or malformed payload
            ExpiredTokenError: signature intact but now >= exp
        """
        try:
            # Expiry is checked below against the injected clock
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError as e:
            logger.warning("Rejected session token: %s", type(e).__name__)
            raise InvalidTokenError(context={"reason": type(e).__name__})

        expires_at = payload.get("exp")
        if not isinstance(expires_at, int) or isinstance(expires_at, bool):
            raise InvalidTokenError(context={"reason": "missing_exp"})

        if self._clock().timestamp() >= expires_at:
            logger.info("Rejected expired session token for subject %s", payload.get("sub"))
            raise ExpiredTokenError(context={"expired_at": expires_at})

        email = payload.get("email")
        full_name = payload.get("name")
        try:
            account_id = uuid.UUID(payload["sub"])
        except (KeyError, TypeError, ValueError, AttributeError):
            raise InvalidTokenError(context={"reason": "bad_subject"})
        if not isinstance(email, str) or not isinstance(full_name, str):
            raise InvalidTokenError(context={"reason": "bad_claims"})

        return TokenIdentity(account_id=account_id, email=email, full_name=full_name)
