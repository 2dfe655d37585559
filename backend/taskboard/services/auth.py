"""Password hashing and signed tokens."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from taskboard.config import Settings
from taskboard.exceptions import PermissionDeniedError, ValidationError
from taskboard.models.user import User

ACCESS_TOKEN = "access"
RESET_TOKEN = "reset"

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int) -> str:
    """Hash a password with bcrypt."""
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def _encode(claims: dict[str, Any], expires_delta: timedelta, settings: Settings) -> str:
    to_encode = {
        **claims,
        "exp": datetime.now(timezone.utc) + expires_delta,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key.get_secret_value(),
        algorithm=settings.jwt_algorithm,
    )


def create_access_token(user: User, settings: Settings) -> str:
    """Create a JWT access token for a user."""
    return _encode(
        {
            "sub": str(user.id),
            "username": user.username,
            "email": user.email,
            "type": ACCESS_TOKEN,
        },
        timedelta(minutes=settings.jwt_access_token_expire_minutes),
        settings,
    )


def create_reset_token(user: User, settings: Settings) -> str:
    """Create a short-lived password reset token."""
    return _encode(
        {"sub": str(user.id), "email": user.email, "type": RESET_TOKEN},
        timedelta(minutes=settings.jwt_reset_token_expire_minutes),
        settings,
    )


def decode_token(token: str, settings: Settings, expected_type: str = ACCESS_TOKEN) -> dict[str, Any]:
    """Verify a token's signature, expiry and type, returning its claims."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key.get_secret_value(),
            algorithms=[settings.jwt_algorithm],
        )
    except ExpiredSignatureError:
        raise PermissionDeniedError("Token has expired")
    except JWTError:
        raise PermissionDeniedError("Invalid token")

    if payload.get("type") != expected_type or "sub" not in payload:
        raise PermissionDeniedError("Invalid token")
    return payload


def token_user_id(payload: dict[str, Any]) -> int:
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise PermissionDeniedError("Invalid token")
