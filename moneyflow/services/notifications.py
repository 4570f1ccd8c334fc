"""Ad-hoc and event-triggered notifications."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

import pydantic
from loguru import logger
from sqlalchemy.orm import Session

from moneyflow.core.alerts import rules
from moneyflow.core.alerts.categories import AlertCategory
from moneyflow.core.alerts.messages import NotificationMessage, parse_payload
from moneyflow.services.dispatcher import DispatchReport, NotificationDispatcher
from moneyflow.services.preferences import PreferenceStore
from moneyflow.services.push_transport import PushTransport
from moneyflow.utils.exceptions import ValidationError


def _validation_details(exc: pydantic.ValidationError) -> list[dict]:
    return [
        {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]


class NotificationService:
    """Build messages from caller input and hand them to the dispatcher."""

    def __init__(self, db: Session, transport: PushTransport):
        self.db = db
        self.dispatcher = NotificationDispatcher(db, transport)
        self.preferences = PreferenceStore(db)

    @staticmethod
    def build_message(
        title: str, body: str, category: AlertCategory | str, data: Optional[Dict[str, Any]] = None
    ) -> NotificationMessage:
        """Validate caller input into a message or raise :class:`ValidationError`."""

        try:
            payload = parse_payload(category, data)
            return NotificationMessage(title=title, body=body, payload=payload)
        except pydantic.ValidationError as exc:
            raise ValidationError(
                "Invalid notification payload", details={"errors": _validation_details(exc)}
            ) from exc

    def send(
        self,
        user_id: uuid.UUID,
        title: str,
        body: str,
        category: AlertCategory | str,
        data: Optional[Dict[str, Any]] = None,
    ) -> DispatchReport:
        """Send a manual notification to every device of ``user_id``."""

        message = self.build_message(title, body, category, data)
        return self.dispatcher.dispatch(user_id, message)

    def send_payment_confirmation(
        self,
        user_id: uuid.UUID,
        expense_title: str,
        amount: Decimal | str,
        paid_at: Optional[datetime] = None,
    ) -> Optional[DispatchReport]:
        """Confirm a recorded payment; returns ``None`` when the user opted out."""

        if not self.preferences.is_enabled(user_id, AlertCategory.PAYMENT_CONFIRMATION):
            logger.info("Payment confirmation disabled for user", user_id=str(user_id))
            return None

        try:
            message = rules.build_payment_confirmation(
                expense_title, amount, paid_at or datetime.now(timezone.utc)
            )
        except (pydantic.ValidationError, ArithmeticError) as exc:
            raise ValidationError("Invalid payment confirmation", details={"error": str(exc)}) from exc
        return self.dispatcher.dispatch(user_id, message)
