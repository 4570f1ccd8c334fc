"""Fan a notification out to every push endpoint a user owns."""
from __future__ import annotations

import json
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass
from typing import Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from moneyflow.config import settings
from moneyflow.core.alerts.messages import NotificationMessage
from moneyflow.db.models.notification_history import NotificationHistory
from moneyflow.services.push_transport import DeliveryOutcome, PushTransport, classify_delivery
from moneyflow.services.subscriptions import SubscriptionRegistry
from moneyflow.utils.exceptions import DispatchError

STATUS_COMPLETED = "completed"
STATUS_NO_SUBSCRIPTIONS = "no_subscriptions"
STATUS_CANCELLED = "cancelled"

_SKIPPED = object()


@dataclass
class DispatchReport:
    """Aggregate outcome of one :meth:`NotificationDispatcher.dispatch` call."""

    sent: int = 0
    failed: int = 0
    removed: int = 0
    total: int = 0
    status: str = STATUS_COMPLETED

    @property
    def no_subscriptions(self) -> bool:
        return self.status == STATUS_NO_SUBSCRIPTIONS

    def as_dict(self) -> dict:
        return asdict(self)


class NotificationDispatcher:
    """Send one message to all of a user's subscriptions concurrently.

    Transport calls run on a bounded thread pool. Everything touching the
    database (history rows, pruning) runs on the calling thread because the
    session is not thread-safe. Per-endpoint failures never raise; only a
    failure to load the subscriptions does (:class:`DispatchError`).
    """

    def __init__(
        self,
        db: Session,
        transport: PushTransport,
        *,
        registry: Optional[SubscriptionRegistry] = None,
        max_workers: Optional[int] = None,
        send_limit: Optional[threading.BoundedSemaphore] = None,
    ):
        self.db = db
        self.transport = transport
        self.registry = registry or SubscriptionRegistry(db)
        self.max_workers = max_workers or settings.PUSH_MAX_CONCURRENCY
        # Shared by every dispatcher of one alert run
        self.send_limit = send_limit or threading.BoundedSemaphore(self.max_workers)

    def dispatch(
        self,
        user_id: uuid.UUID,
        message: NotificationMessage,
        cancel_event: Optional[threading.Event] = None,
    ) -> DispatchReport:
        try:
            subscriptions = self.registry.list_by_user(user_id)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise DispatchError(
                "Could not load push subscriptions", details={"user_id": str(user_id)}
            ) from exc

        report = DispatchReport(total=len(subscriptions))
        if not subscriptions:
            report.status = STATUS_NO_SUBSCRIPTIONS
            logger.info("No push subscriptions for user", user_id=str(user_id))
            return report

        envelope = message.to_push_envelope(
            icon=settings.NOTIFICATION_ICON,
            tag=settings.NOTIFICATION_TAG,
            url=settings.APP_URL,
        )
        payload = json.dumps(envelope).encode("utf-8")
        # Plain values only cross into worker threads
        targets = [(subscription.id, subscription.subscription_info) for subscription in subscriptions]
        cancel_event = cancel_event or threading.Event()

        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(targets)), thread_name_prefix="push-send"
        )
        try:
            futures = {
                executor.submit(self._deliver, info, payload, cancel_event): subscription_id
                for subscription_id, info in targets
            }
            for future in as_completed(futures):
                if cancel_event.is_set():
                    break
                result = future.result()
                if result is _SKIPPED:
                    continue
                self._apply_outcome(user_id, futures[future], message, result, report)
        except BaseException:
            cancel_event.set()
            raise
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        if cancel_event.is_set():
            report.status = STATUS_CANCELLED
            logger.warning("Dispatch cancelled", user_id=str(user_id), **report.as_dict())
        else:
            logger.info(
                "Notification dispatched",
                user_id=str(user_id),
                category=message.category.value,
                sent=report.sent,
                failed=report.failed,
                removed=report.removed,
                total=report.total,
            )
        return report

    def _deliver(self, subscription_info: dict, payload: bytes, cancel_event: threading.Event):
        if cancel_event.is_set():
            return _SKIPPED
        with self.send_limit:
            if cancel_event.is_set():
                return _SKIPPED
            try:
                self.transport.send(subscription_info, payload)
            except Exception as exc:  # classified on the calling thread
                return exc
        return None

    def _apply_outcome(
        self,
        user_id: uuid.UUID,
        subscription_id: int,
        message: NotificationMessage,
        error: Optional[BaseException],
        report: DispatchReport,
    ) -> None:
        outcome = classify_delivery(error)

        if outcome is DeliveryOutcome.DELIVERED:
            report.sent += 1
            self._record_history(user_id, message)
            return

        report.failed += 1
        if outcome is DeliveryOutcome.PERMANENT_FAILURE:
            logger.info(
                "Removing expired push subscription",
                user_id=str(user_id),
                subscription_id=subscription_id,
                error=str(error),
            )
            if self._prune(subscription_id):
                report.removed += 1
        else:
            logger.warning(
                "Push delivery failed",
                user_id=str(user_id),
                subscription_id=subscription_id,
                error=str(error),
            )

    def _record_history(self, user_id: uuid.UUID, message: NotificationMessage) -> None:
        try:
            self.db.add(
                NotificationHistory(
                    user_id=user_id,
                    title=message.title,
                    body=message.body,
                    category=message.category.value,
                    data=message.data(),
                )
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to record notification history", user_id=str(user_id), error=str(exc))

    def _prune(self, subscription_id: int) -> bool:
        try:
            removed = self.registry.remove_by_id(subscription_id)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(
                "Failed to remove expired push subscription",
                subscription_id=subscription_id,
                error=str(exc),
            )
            return False
        if not removed:
            logger.info("Push subscription already removed", subscription_id=subscription_id)
        return removed
