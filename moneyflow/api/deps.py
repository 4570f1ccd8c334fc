"""Shared API dependencies."""
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from moneyflow.core.security import InvalidTokenError, user_id_from_token, verify_cron_secret
from moneyflow.db.session import SessionLocal, get_db
from moneyflow.services.alert_generator import AlertGenerator
from moneyflow.services.notifications import NotificationService
from moneyflow.services.push_transport import PushTransport, WebPushTransport
from moneyflow.utils.exceptions import (
    AuthenticationError,
    ConfigurationError,
    handle_authentication_error,
    handle_configuration_error,
)

bearer_scheme = HTTPBearer(auto_error=False)

_push_transport_singleton: PushTransport | None = None


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> uuid.UUID:
    """Resolve the opaque user id from the bearer token issued by the auth provider."""

    credentials_error = AuthenticationError("Could not validate credentials")
    if credentials is None or not credentials.credentials:
        raise handle_authentication_error(credentials_error)
    try:
        return user_id_from_token(credentials.credentials)
    except InvalidTokenError as exc:
        raise handle_authentication_error(credentials_error) from exc


def get_push_transport() -> PushTransport:
    """Return a cached Web Push transport or 503 if VAPID keys are missing."""

    global _push_transport_singleton
    if _push_transport_singleton is None:
        try:
            _push_transport_singleton = WebPushTransport.from_settings()
        except ConfigurationError as exc:
            raise handle_configuration_error(exc) from exc
    return _push_transport_singleton


def get_notification_service(
    db: Session = Depends(get_db),
    transport: PushTransport = Depends(get_push_transport),
) -> NotificationService:
    return NotificationService(db, transport)


def get_alert_generator(
    transport: PushTransport = Depends(get_push_transport),
) -> AlertGenerator:
    return AlertGenerator(SessionLocal, transport)


def require_cron_secret(authorization: Optional[str] = Header(default=None)) -> None:
    """Reject trigger calls that do not carry the shared cron secret."""

    if not verify_cron_secret(authorization):
        raise handle_authentication_error(AuthenticationError("Unauthorized"))
