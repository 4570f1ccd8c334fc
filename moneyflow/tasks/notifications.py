"""Celery tasks for scheduled alerts and event-triggered notifications."""
from __future__ import annotations

import threading
import uuid
from datetime import datetime
from typing import Any

from celery.exceptions import SoftTimeLimitExceeded
from loguru import logger

from moneyflow.celery_app import celery_app
from moneyflow.core.logging import configure_logging
from moneyflow.db.session import SessionLocal
from moneyflow.services.alert_generator import AlertGenerator
from moneyflow.services.notifications import NotificationService
from moneyflow.services.push_transport import WebPushTransport


@celery_app.task(name="moneyflow.tasks.notifications.run_scheduled_alerts", bind=True)
def run_scheduled_alerts(self, categories: str | list[str] = "all") -> dict[str, Any]:
    """Evaluate the given alert categories for every eligible user."""

    configure_logging()
    transport = WebPushTransport.from_settings()
    generator = AlertGenerator(SessionLocal, transport)
    cancel_event = threading.Event()

    try:
        summary = generator.run(categories, cancel_event=cancel_event)
    except SoftTimeLimitExceeded:
        cancel_event.set()
        logger.warning("Scheduled alert run hit its time limit", categories=str(categories))
        raise

    result = summary.as_dict()
    logger.info("Scheduled alerts completed", categories=str(categories))
    return result


@celery_app.task(name="moneyflow.tasks.notifications.send_payment_confirmation")
def send_payment_confirmation(
    user_id: str,
    expense_title: str,
    amount: str,
    paid_at: str | None = None,
) -> dict[str, Any]:
    """Confirm a payment recorded by the finance layer."""

    configure_logging()
    try:
        user_uuid = uuid.UUID(user_id)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid user id {user_id}") from exc

    db = SessionLocal()
    try:
        service = NotificationService(db, WebPushTransport.from_settings())
        report = service.send_payment_confirmation(
            user_uuid,
            expense_title,
            amount,
            datetime.fromisoformat(paid_at) if paid_at else None,
        )
        if report is None:
            return {"user_id": user_id, "status": "disabled"}
        return {"user_id": user_id, **report.as_dict()}
    finally:
        db.close()
