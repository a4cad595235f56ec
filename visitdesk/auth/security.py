from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import jwt
from passlib.context import CryptContext

from visitdesk.util.time import utcnow

from .errors import InvalidTokenError, TokenExpiredError


_JWT_ALG = "HS256"
DEFAULT_TOKEN_TTL_SECONDS = 24 * 60 * 60


class PasswordHasher:
    """Adaptive, salted password hashing (pbkdf2_sha256 via passlib).

    Digests are self-describing ($pbkdf2-sha256$<rounds>$<salt>$<checksum>), so
    raising `rounds` later does not break verification of older hashes.
    """

    def __init__(self, rounds: int = 29000):
        self.rounds = max(1, int(rounds))
        self._ctx = CryptContext(
            schemes=["pbkdf2_sha256"],
            deprecated="auto",
            pbkdf2_sha256__default_rounds=self.rounds,
        )

    def hash(self, plaintext: str) -> str:
        if not plaintext:
            raise ValueError("password_blank")
        return self._ctx.hash(plaintext)

    def verify(self, digest: str, plaintext: str) -> bool:
        # passlib compares the full checksum in constant time.
        if not digest or not plaintext:
            return False
        try:
            return bool(self._ctx.verify(plaintext, digest))
        except (ValueError, TypeError):
            # Unrecognized or malformed digest
            return False

    def dummy_verify(self) -> bool:
        """Spend the same time as a real verify. Call it when the user lookup missed."""
        return bool(self._ctx.dummy_verify())


@dataclass(frozen=True)
class TokenClaims:
    username: str
    expires_at: datetime


class TokenService:
    """Issues and verifies signed, time-limited bearer tokens (HS256 JWT).

    The secret is fixed for the lifetime of the instance. There is no
    revocation list, so a token stays valid until `exp` even if its user
    is deleted.
    """

    def __init__(
        self,
        *,
        secret: str,
        ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not secret:
            raise ValueError("jwt_secret_blank")
        self._secret = secret
        self.ttl_seconds = max(1, int(ttl_seconds))
        self._clock = clock or utcnow

    def issue(self, username: str) -> str:
        if not username:
            raise ValueError("username_blank")
        now = self._clock()
        exp = now + timedelta(seconds=self.ttl_seconds)
        payload: Dict[str, Any] = {
            "username": username,
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=_JWT_ALG)

    def verify(self, token: str) -> TokenClaims:
        if not token:
            raise InvalidTokenError("token_blank")
        try:
            # Expiry is checked below against our own clock.
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_JWT_ALG],
                options={"verify_exp": False, "verify_iat": False, "require": ["exp"]},
            )
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(str(e)) from e

        username = payload.get("username")
        if not isinstance(username, str) or not username:
            raise InvalidTokenError("token_missing_username")

        try:
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidTokenError("token_bad_exp") from e

        if expires_at <= self._clock():
            raise TokenExpiredError("token_expired")

        return TokenClaims(username=username, expires_at=expires_at)
