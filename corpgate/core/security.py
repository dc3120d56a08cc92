"""Password hashing and access/refresh token issuance for authentication."""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

import bcrypt
import jwt

from corpgate.core.config import get_settings

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of its input.
BCRYPT_MAX_BYTES = 72

# 64 random bytes, hex-encoded: 512 bits of entropy per refresh token.
REFRESH_TOKEN_BYTES = 64

TEMP_PASSWORD_PREFIX = "TempPass"


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    if rounds is None:
        rounds = get_settings().BCRYPT_ROUNDS
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash. Never raises on mismatch."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache
def dummy_password_hash() -> str:
    """Hash of a random throwaway password at the configured cost; checked when no account matches."""
    return hash_password(secrets.token_hex(16))


def generate_temp_password() -> str:
    """Temporary password handed out by admins for first sign-in."""
    return TEMP_PASSWORD_PREFIX + secrets.token_hex(4)


@dataclass(frozen=True)
class TokenIdentity:
    """Claims recovered from a verified access token."""

    user_id: int
    email: str
    role: str


class TokenService:
    """
    Mints signed short-lived access tokens and opaque refresh tokens.

    Access tokens are stateless JWTs carrying user id, email and role.
    Refresh tokens are random strings; the caller persists them as sessions.
    """

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
    ) -> None:
        if not secret:
            raise ValueError("Token signing secret must be non-empty")
        self._secret = secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    def issue_access_token(self, identity: TokenIdentity) -> str:
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": str(identity.user_id),
            "email": identity.email,
            "role": identity.role,
            "iat": now,
            "exp": now + self.access_ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify_access_token(self, token: str) -> TokenIdentity | None:
        """
        Decode and validate a JWT; return its identity claims.

        Returns None for malformed, expired or badly signed tokens, and for
        tokens missing any of the identity claims.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.PyJWTError as e:
            logger.debug("Access token rejected: %s", e)
            return None
        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            return None
        email = payload.get("email")
        role = payload.get("role")
        if not isinstance(email, str) or not isinstance(role, str):
            return None
        return TokenIdentity(user_id=user_id, email=email, role=role)

    def issue_refresh_token(self) -> str:
        return secrets.token_hex(REFRESH_TOKEN_BYTES)

    def refresh_expiry(self, now: datetime | None = None) -> datetime:
        """Expiry timestamp for a refresh token issued at now (defaults to current UTC time)."""
        if now is None:
            now = datetime.now(UTC)
        return now + self.refresh_ttl


@lru_cache
def get_token_service() -> TokenService:
    """Process-wide token service built once from settings (FastAPI dependency)."""
    s = get_settings()
    return TokenService(
        s.JWT_SECRET.get_secret_value(),
        algorithm=s.JWT_ALGORITHM,
        access_ttl=timedelta(minutes=s.ACCESS_TOKEN_EXPIRE_MINUTES),
        refresh_ttl=timedelta(days=s.REFRESH_TOKEN_EXPIRE_DAYS),
    )
