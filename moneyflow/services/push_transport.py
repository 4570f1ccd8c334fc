"""Web Push transport and delivery outcome classification.

All transport-specific status and message sniffing lives in
:func:`classify_delivery`; the rest of the code only sees
:class:`DeliveryOutcome`.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from pywebpush import WebPushException, webpush

from moneyflow.config import Settings, settings
from moneyflow.utils.exceptions import ConfigurationError


class DeliveryOutcome(str, Enum):
    DELIVERED = "delivered"
    TRANSIENT_FAILURE = "transient_failure"
    PERMANENT_FAILURE = "permanent_failure"


# 404/410 mean the push service forgot the endpoint for good.
PERMANENT_STATUS_CODES = frozenset({404, 410})
_PERMANENT_MARKERS = ("410", "unsubscribed", "expired")


class PushTransport(Protocol):
    """Delivers one encrypted payload to one endpoint; raises on failure."""

    def send(self, subscription_info: dict, payload: bytes) -> None:  # pragma: no cover - interface definition
        """Send ``payload`` to the endpoint described by ``subscription_info``."""


@dataclass
class WebPushTransport:
    """Send notifications through ``pywebpush`` using VAPID credentials."""

    vapid_private_key: str
    vapid_subject: str
    ttl: int = 86400
    timeout: float = 10.0

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "WebPushTransport":
        """Build the transport or raise ``ConfigurationError`` when VAPID keys are absent."""

        missing = [
            name
            for name in ("VAPID_PUBLIC_KEY", "VAPID_PRIVATE_KEY", "VAPID_SUBJECT")
            if not getattr(config, name)
        ]
        if missing:
            raise ConfigurationError(
                "Web Push is not configured", details={"missing": missing}
            )
        return cls(
            vapid_private_key=config.VAPID_PRIVATE_KEY,
            vapid_subject=config.VAPID_SUBJECT,
            ttl=config.PUSH_TTL_SECONDS,
        )

    def send(self, subscription_info: dict, payload: bytes) -> None:
        webpush(
            subscription_info=subscription_info,
            data=payload,
            vapid_private_key=self.vapid_private_key,
            # pywebpush adds aud/exp to the claims dict, so never share it
            vapid_claims={"sub": self.vapid_subject},
            ttl=self.ttl,
            timeout=self.timeout,
        )


def _status_code(error: BaseException) -> Optional[int]:
    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    if status is None:
        status = getattr(error, "status_code", None)
    return status if isinstance(status, int) else None


def classify_delivery(error: Optional[BaseException]) -> DeliveryOutcome:
    """Map the result of :meth:`PushTransport.send` onto a delivery outcome.

    ``None`` means the send returned normally. A gone/expired endpoint is
    permanent; network errors, 5xx and anything unrecognised are transient.
    """

    if error is None:
        return DeliveryOutcome.DELIVERED

    status = _status_code(error)
    if status is not None:
        if status in PERMANENT_STATUS_CODES:
            return DeliveryOutcome.PERMANENT_FAILURE
        return DeliveryOutcome.TRANSIENT_FAILURE

    if isinstance(error, WebPushException):
        message = str(error).lower()
        if any(marker in message for marker in _PERMANENT_MARKERS):
            return DeliveryOutcome.PERMANENT_FAILURE

    return DeliveryOutcome.TRANSIENT_FAILURE
