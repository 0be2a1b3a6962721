"""
security helpers:
- Argon2 hashing via argon2-cffi, for passwords and refresh-token values
- JWT creation/verification via PyJWT, with separate access/refresh secrets
- JTI generation for token identifiers
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Any

import jwt
import argon2
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from utils.errors import TokenExpired, TokenInvalid

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"
REQUIRED_CLAIMS = ["sub", "username", "type", "jti", "exp", "iat"]


class PasswordHasher:
    """
    Slow, salted one-way hashing. Each hash() call draws a fresh salt, so the
    same secret never hashes to the same string twice; use compare() rather
    than lookup by value.

    argon2-cffi releases the GIL while hashing, so concurrent requests on a
    threaded server hash in parallel.
    """

    def __init__(self, time_cost: int = 3, memory_cost: int = 65536, parallelism: int = 4):
        self._ph = argon2.PasswordHasher(
            time_cost=time_cost, memory_cost=memory_cost, parallelism=parallelism
        )

    @classmethod
    def from_config(cls, config) -> "PasswordHasher":
        return cls(
            time_cost=int(config.get("PASSWORD_HASH_TIME_COST", 3)),
            memory_cost=int(config.get("PASSWORD_HASH_MEMORY_COST", 65536)),
            parallelism=int(config.get("PASSWORD_HASH_PARALLELISM", 4)),
        )

    def hash(self, plaintext: str) -> str:
        return self._ph.hash(plaintext)

    def compare(self, plaintext: str, hashed: str) -> bool:
        """True when plaintext matches hashed; False on mismatch or a malformed hash."""
        try:
            return self._ph.verify(hashed, plaintext)
        except VerifyMismatchError:
            return False
        except (VerificationError, InvalidHashError):
            logger.warning("Stored hash could not be verified")
            return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """
    Signs and verifies access and refresh tokens. Each kind has its own secret
    and lifetime (in seconds), so a token of one kind never verifies as the other.
    """

    def __init__(self, access_secret: str, access_ttl: int,
                 refresh_secret: str, refresh_ttl: int, algorithm: str = "HS256"):
        self.access_secret = access_secret
        self.access_ttl = timedelta(seconds=access_ttl)
        self.refresh_secret = refresh_secret
        self.refresh_ttl = timedelta(seconds=refresh_ttl)
        self.algorithm = algorithm

    @classmethod
    def from_config(cls, config) -> "TokenIssuer":
        return cls(
            access_secret=config["JWT_SECRET_KEY"],
            access_ttl=int(config["JWT_EXPIRE_IN"]),
            refresh_secret=config["JWT_REFRESH_SECRET_KEY"],
            refresh_ttl=int(config["JWT_REFRESH_EXPIRE_IN"]),
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
        )

    @property
    def access_expires_in(self) -> int:
        return int(self.access_ttl.total_seconds())

    def refresh_expiry(self) -> datetime:
        """Absolute expiry for a refresh token issued now, truncated to whole
        seconds so it equals the token's exp claim."""
        return (_now() + self.refresh_ttl).replace(microsecond=0)

    def _sign(self, user_id, username: str, token_type: str, jti: str,
              secret: str, expires_at: datetime) -> str:
        now = _now()
        payload = {
            "sub": str(user_id),
            "username": username,
            "type": token_type,
            "jti": jti,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def issue_access(self, user_id, username: str) -> str:
        return self._sign(user_id, username, ACCESS, generate_jti(),
                          self.access_secret, _now() + self.access_ttl)

    def issue_refresh(self, user_id, username: str, jti: str | None = None,
                      expires_at: datetime | None = None) -> str:
        return self._sign(user_id, username, REFRESH, jti or generate_jti(),
                          self.refresh_secret, expires_at or self.refresh_expiry())

    def _decode(self, token: str, secret: str, expected_type: str,
                verify_exp: bool = True) -> Dict[str, Any]:
        """
        Decode and validate a JWT. Raises TokenExpired on an expired token and
        TokenInvalid on a bad signature, missing claims or the wrong token type.
        """
        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": REQUIRED_CLAIMS, "verify_exp": verify_exp},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpired()
        except jwt.InvalidTokenError as exc:
            raise TokenInvalid(f"Invalid token: {exc}")

        if decoded.get("type") != expected_type:
            raise TokenInvalid("Wrong token type")
        return decoded

    def decode_access(self, token: str) -> Dict[str, Any]:
        return self._decode(token, self.access_secret, ACCESS)

    def decode_refresh(self, token: str, verify_exp: bool = True) -> Dict[str, Any]:
        """
        With verify_exp=False only the signature and claims are checked; the
        refresh endpoint uses this so expiry is judged against the stored
        record, which is then purged.
        """
        return self._decode(token, self.refresh_secret, REFRESH, verify_exp=verify_exp)
