"""Token handling for user identity and the cron trigger."""
from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import JWTError, jwt

from moneyflow.config import settings


ALGORITHM = "HS256"


class InvalidTokenError(Exception):
    """Raised when a JWT cannot be decoded or is invalid."""


def create_access_token(subject: str | Any, expires_minutes: int = 60) -> str:
    """Create a signed JWT access token for the supplied subject."""

    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    payload: Dict[str, Any] = {"exp": expire, "sub": str(subject), "type": "access"}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode a JWT and return its payload, raising ``InvalidTokenError`` if invalid."""

    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc


def user_id_from_token(token: str) -> uuid.UUID:
    """Return the opaque user id carried in the ``sub`` claim."""

    payload = decode_token(token)
    if payload.get("type", "access") != "access":
        raise InvalidTokenError("Token must be an access token")
    try:
        return uuid.UUID(str(payload["sub"]))
    except (KeyError, ValueError) as exc:
        raise InvalidTokenError("Token subject is not a user id") from exc


def verify_cron_secret(authorization: str | None) -> bool:
    """Constant-time check of ``Authorization: Bearer <CRON_SECRET_TOKEN>``."""

    expected = settings.CRON_SECRET_TOKEN
    if not expected or not authorization:
        return False
    return secrets.compare_digest(authorization, f"Bearer {expected}")
