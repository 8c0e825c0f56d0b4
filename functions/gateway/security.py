"""
Password hashing and bearer token issuance/verification.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

import bcrypt
import jwt as pyjwt


class InvalidTokenError(Exception):
    """The token is absent, malformed, expired or signed with another secret."""


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode(
        "utf-8"
    )


def verify_password(password: str, hashed_password: str) -> bool:
    """Constant-time check of a password against a stored bcrypt hash."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            password.encode("utf-8"), hashed_password.encode("utf-8")
        )
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


@dataclass(frozen=True)
class TokenClaims:
    uid: str
    email: str

    def as_dict(self) -> dict:
        return {"uid": self.uid, "email": self.email}


class TokenService:
    """
    Signs and verifies HS256 tokens with a secret fixed at construction.

    When expire_minutes is None the tokens carry no `exp` claim and stay
    valid for as long as the secret does.
    """

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        expire_minutes: Optional[int] = None,
    ):
        if not secret:
            raise ValueError("A token signing secret is required")
        self._secret = secret
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    def issue(self, claims: TokenClaims) -> str:
        now = int(time.time())
        payload: dict[str, object] = {**claims.as_dict(), "iat": now}
        if self._expire_minutes is not None:
            payload["exp"] = now + self._expire_minutes * 60
        return pyjwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: Optional[str]) -> TokenClaims:
        if not token:
            raise InvalidTokenError("Token missing")
        try:
            payload = pyjwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["uid", "email"]},
            )
        except pyjwt.PyJWTError as exc:
            raise InvalidTokenError(str(exc)) from exc
        return TokenClaims(uid=str(payload["uid"]), email=str(payload["email"]))
