"""Scheduled alert generator.

For each requested category the generator asks the preference store who is
eligible, evaluates the category's rule for every such user against their
records and dispatches at most once per user. Users are processed on a
bounded thread pool; each worker opens its own database session.
Outbound sends of one run share a single ``PUSH_MAX_CONCURRENCY`` limit.
"""
from __future__ import annotations

import threading
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from moneyflow.config import Settings, settings
from moneyflow.core.alerts import rules
from moneyflow.core.alerts.categories import PERIODIC_REPORTS, AlertCategory, parse_categories
from moneyflow.core.alerts.messages import NotificationMessage
from moneyflow.core.alerts.windows import (
    due_window,
    localize,
    month_window,
    period_key,
    week_window,
)
from moneyflow.services.dispatcher import DispatchReport, NotificationDispatcher
from moneyflow.services.preferences import PreferenceStore
from moneyflow.services.push_transport import PushTransport
from moneyflow.services.records import RecordStore, SqlRecordStore
from moneyflow.services.watermarks import WatermarkStore
from moneyflow.utils.exceptions import AlertRunError


@dataclass
class CategorySummary:
    """Counters for one category within one run."""

    category: AlertCategory
    eligible: int = 0
    processed: int = 0
    fired: int = 0
    skipped: int = 0
    errored: int = 0
    sent: int = 0
    failed: int = 0
    removed: int = 0

    def add_report(self, report: DispatchReport) -> None:
        self.sent += report.sent
        self.failed += report.failed
        self.removed += report.removed

    def as_dict(self) -> dict:
        data = asdict(self)
        data["category"] = self.category.value
        return data


@dataclass
class AlertRunSummary:
    started_at: datetime
    categories: dict[AlertCategory, CategorySummary] = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "categories": {
                category.value: summary.as_dict() for category, summary in self.categories.items()
            },
        }


@dataclass
class _UserResult:
    fired: bool = False
    skipped: bool = False
    report: Optional[DispatchReport] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlertGenerator:
    """Evaluate scheduled alert categories and dispatch the resulting messages."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        transport: PushTransport,
        *,
        record_store_factory: Callable[[Session], RecordStore] = SqlRecordStore,
        max_workers: Optional[int] = None,
        push_max_workers: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
        config: Settings = settings,
    ):
        self.session_factory = session_factory
        self.transport = transport
        self.record_store_factory = record_store_factory
        self.max_workers = max_workers or config.ALERT_MAX_CONCURRENCY
        self.push_max_workers = push_max_workers or config.PUSH_MAX_CONCURRENCY
        self.clock = clock
        self.config = config

    def run(
        self,
        categories: str | AlertCategory | Iterable[str | AlertCategory] = "all",
        *,
        now: Optional[datetime] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> AlertRunSummary:
        """Process each requested category once; ``"all"`` selects every scheduled one.

        Raises ``ValueError`` for unknown categories and :class:`AlertRunError`
        when eligible users cannot be listed at all.
        """

        selected = parse_categories(categories)
        now = localize(now or self.clock(), self.config.ALERT_TIMEZONE)
        cancel_event = cancel_event or threading.Event()
        summary = AlertRunSummary(started_at=now)
        send_limit = threading.BoundedSemaphore(self.push_max_workers)

        for category in selected:
            if cancel_event.is_set():
                break
            user_ids = self._eligible_users(category)
            summary.categories[category] = self._run_category(
                category, user_ids, now, cancel_event, send_limit
            )
            logger.info("Alert category processed", **summary.categories[category].as_dict())

        return summary

    def _eligible_users(self, category: AlertCategory) -> list[uuid.UUID]:
        db = self.session_factory()
        try:
            user_ids = PreferenceStore(db).list_eligible_users(category)
        except SQLAlchemyError as exc:
            raise AlertRunError(
                "Could not list users for alert category",
                details={"category": category.value, "error": str(exc)},
            ) from exc
        finally:
            db.close()
        return list(dict.fromkeys(user_ids))

    def _run_category(
        self,
        category: AlertCategory,
        user_ids: list[uuid.UUID],
        now: datetime,
        cancel_event: threading.Event,
        send_limit: threading.BoundedSemaphore,
    ) -> CategorySummary:
        summary = CategorySummary(category=category, eligible=len(user_ids))
        if not user_ids:
            return summary

        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(user_ids)), thread_name_prefix="alerts"
        )
        try:
            futures = {
                executor.submit(
                    self._process_user, category, user_id, now, cancel_event, send_limit
                ): user_id
                for user_id in user_ids
            }
            for future in as_completed(futures):
                user_id = futures[future]
                try:
                    result = future.result()
                except Exception as exc:
                    summary.errored += 1
                    logger.error(
                        "Failed to process alert for user",
                        category=category.value,
                        user_id=str(user_id),
                        error=str(exc),
                    )
                    continue

                if result.skipped:
                    summary.skipped += 1
                    continue
                summary.processed += 1
                if result.fired:
                    summary.fired += 1
                    summary.add_report(result.report)
        except BaseException:
            cancel_event.set()
            raise
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return summary

    def _process_user(
        self,
        category: AlertCategory,
        user_id: uuid.UUID,
        now: datetime,
        cancel_event: threading.Event,
        send_limit: threading.BoundedSemaphore,
    ) -> _UserResult:
        if cancel_event.is_set():
            return _UserResult(skipped=True)

        db = self.session_factory()
        try:
            watermark = self._watermark_key(category, now)
            watermarks = WatermarkStore(db)
            if watermark is not None and watermarks.exists(user_id, category, watermark):
                return _UserResult(skipped=True)

            message = self.evaluate(category, user_id, now, self.record_store_factory(db))
            if message is None:
                return _UserResult()

            dispatcher = NotificationDispatcher(
                db, self.transport, max_workers=self.push_max_workers, send_limit=send_limit
            )
            report = dispatcher.dispatch(user_id, message, cancel_event)

            if watermark is not None and report.sent:
                try:
                    watermarks.mark(user_id, category, watermark)
                except SQLAlchemyError as exc:
                    db.rollback()
                    logger.error(
                        "Failed to store report watermark",
                        category=category.value,
                        user_id=str(user_id),
                        error=str(exc),
                    )
            return _UserResult(fired=True, report=report)
        finally:
            db.close()

    def _watermark_key(self, category: AlertCategory, now: datetime) -> Optional[str]:
        if not self.config.REPORT_WATERMARK_ENABLED or category not in PERIODIC_REPORTS:
            return None
        if category is AlertCategory.MONTHLY_REPORT:
            return period_key(month_window(now), monthly=True)
        return period_key(week_window(now, self.config.REPORT_WEEK_START), monthly=False)

    def evaluate(
        self,
        category: AlertCategory,
        user_id: uuid.UUID,
        now: datetime,
        records: RecordStore,
    ) -> Optional[NotificationMessage]:
        """Fetch the records ``category`` needs and apply its rule."""

        if category is AlertCategory.EXPENSE_REMINDER:
            due = records.query_due_expenses(user_id, due_window(now))
            return rules.evaluate_expense_reminder(now, due)

        if category is AlertCategory.BUDGET_ALERT:
            window = month_window(now)
            return rules.evaluate_budget_alert(
                now,
                records.query_expenses(user_id, window),
                records.query_incomes(user_id, window),
                threshold=self.config.BUDGET_ALERT_THRESHOLD,
            )

        if category is AlertCategory.WEEKLY_REPORT:
            window = week_window(now, self.config.REPORT_WEEK_START)
            return rules.build_weekly_report(
                now,
                records.query_expenses(user_id, window),
                records.query_incomes(user_id, window),
                week_start=self.config.REPORT_WEEK_START,
            )

        if category is AlertCategory.MONTHLY_REPORT:
            window = month_window(now)
            return rules.build_monthly_report(
                now,
                records.query_expenses(user_id, window),
                records.query_incomes(user_id, window),
            )

        raise ValueError(f"Alert category {category.value} is not scheduled")
