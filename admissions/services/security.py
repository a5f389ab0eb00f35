"""Password hashing and access-token helpers."""
from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta

import bcrypt
from jose import JWTError, jwt

from admissions.config import settings
from admissions.models.user import User
from admissions.services.clock import Clock, system_clock


def _jwt_secret() -> str:
    secret = settings.jwt_secret
    if not secret:
        raise RuntimeError("JWT_SECRET is not configured")
    return secret


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def generate_verification_token() -> str:
    return secrets.token_urlsafe(32)


def generate_token(user: User, clock: Clock = system_clock) -> tuple[str, datetime]:
    """Issue an access token for ``user``; returns the token and its expiry."""
    now = clock.now()
    expires_at = now + timedelta(minutes=settings.access_token_ttl_minutes)
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role.value,
        "typ": "access",
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    token = jwt.encode(payload, _jwt_secret(), algorithm=settings.jwt_algorithm)
    return token, expires_at


def validate_token(token: str) -> dict | None:
    """Return the decoded claims of a valid access token, otherwise None."""
    try:
        payload = jwt.decode(token, _jwt_secret(), algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if payload.get("typ") != "access":
        return None
    return payload


def get_user_id_from_token(token: str) -> uuid.UUID | None:
    payload = validate_token(token)
    if not payload:
        return None
    try:
        return uuid.UUID(str(payload.get("sub")))
    except ValueError:
        return None
