from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from taskmarket.core.config import get_settings

password_hasher = PasswordHasher()


class TokenValidationError(ValueError):
    """Raised when a JWT is invalid, expired, or has unexpected claims."""


def hash_password(password: str) -> str:
    return password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return password_hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def password_needs_rehash(password_hash: str) -> bool:
    return password_hasher.check_needs_rehash(password_hash)


def create_access_token(
    *,
    account_id: int,
    email: str,
    role: str,
    expires_minutes: int | None = None,
) -> tuple[str, int]:
    settings = get_settings()
    ttl_minutes = expires_minutes or settings.access_token_ttl_minutes
    expires_at = datetime.now(UTC) + timedelta(minutes=ttl_minutes)
    claims = {
        "sub": str(account_id),
        "email": email,
        "role": role,
        "type": "access",
        "exp": expires_at,
    }
    token = jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, int(timedelta(minutes=ttl_minutes).total_seconds())


def validate_access_token(token: str) -> dict[str, Any]:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as exc:
        raise TokenValidationError("Invalid token") from exc

    if payload.get("type") != "access":
        raise TokenValidationError("Invalid token type")

    if payload.get("sub") is None:
        raise TokenValidationError("Missing token subject")

    return payload
