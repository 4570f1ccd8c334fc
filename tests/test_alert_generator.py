"""Tests for the scheduled alert generator."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from moneyflow.config import settings
from moneyflow.core.alerts.categories import AlertCategory
from moneyflow.db.models import Expense, Income, NotificationHistory, NotificationWatermark
from moneyflow.services.alert_generator import AlertGenerator
from moneyflow.services.preferences import PreferenceStore
from moneyflow.services.records import SqlRecordStore
from moneyflow.services.subscriptions import SubscriptionRegistry
from moneyflow.utils.exceptions import AlertRunError

# Monday
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture()
def generator(session_factory, transport):
    return AlertGenerator(session_factory, transport, max_workers=1, push_max_workers=2)


@pytest.fixture()
def preferences(db_session):
    return PreferenceStore(db_session)


def test_budget_alert_end_to_end(
    db_session, generator, transport, gone_error, preferences, user_id,
    add_subscription, add_income, add_expense,
):
    preferences.get(user_id)
    add_subscription(user_id, "https://push.example/valid")
    add_subscription(user_id, "https://push.example/expired")
    transport.failures = {"https://push.example/expired": gone_error()}
    add_income(user_id, "2000.00", _utc(2026, 10, 1, 9))
    add_expense(user_id, "1000.00", date=_utc(2026, 10, 5))
    add_expense(user_id, "700.00", date=_utc(2026, 10, 12))

    summary = generator.run("budget_alert", now=NOW)

    budget = summary.categories[AlertCategory.BUDGET_ALERT]
    assert (budget.eligible, budget.processed, budget.fired) == (1, 1, 1)
    assert (budget.sent, budget.failed, budget.removed) == (1, 1, 1)
    assert budget.errored == 0

    db_session.expire_all()
    remaining = SubscriptionRegistry(db_session).list_by_user(user_id)
    assert [s.endpoint for s in remaining] == ["https://push.example/valid"]
    history = db_session.query(NotificationHistory).filter_by(user_id=user_id).all()
    assert len(history) == 1
    assert history[0].body == (
        "You've spent 85.0% of your monthly income. Consider reviewing your expenses."
    )


def test_disabled_preference_is_never_selected(
    generator, transport, preferences, user_id, add_subscription, add_income, add_expense
):
    preferences.update(user_id, {"budget_alerts": False})
    add_subscription(user_id, "https://push.example/device")
    add_income(user_id, "1000.00", _utc(2026, 10, 1))
    add_expense(user_id, "950.00", date=_utc(2026, 10, 2))

    summary = generator.run("budget_alert", now=NOW)

    assert summary.categories[AlertCategory.BUDGET_ALERT].eligible == 0
    assert transport.sent == []


def test_rule_not_firing_sends_nothing(
    generator, transport, preferences, user_id, add_subscription, add_income, add_expense
):
    preferences.get(user_id)
    add_subscription(user_id, "https://push.example/device")
    add_income(user_id, "1000.00", _utc(2026, 10, 1))
    add_expense(user_id, "100.00", date=_utc(2026, 10, 2))

    budget = generator.run("budget_alert", now=NOW).categories[AlertCategory.BUDGET_ALERT]

    assert (budget.processed, budget.fired, budget.sent) == (1, 0, 0)
    assert transport.sent == []


def test_expense_reminder_uses_due_dates(
    db_session, generator, transport, preferences, user_id, add_subscription, add_expense
):
    preferences.get(user_id)
    add_subscription(user_id, "https://push.example/device")
    add_expense(user_id, "40.00", due_date=_utc(2026, 10, 20), title="Phone")
    add_expense(user_id, "60.00", due_date=_utc(2026, 10, 20), paid_at=_utc(2026, 10, 18), title="Gym")
    add_expense(user_id, "80.00", due_date=_utc(2026, 10, 21), title="Rent")

    summary = generator.run("expense_reminder", now=NOW)

    reminder = summary.categories[AlertCategory.EXPENSE_REMINDER]
    assert (reminder.fired, reminder.sent) == (1, 1)
    history = db_session.query(NotificationHistory).one()
    assert history.body == "You have 1 bill(s) due tomorrow totaling $40.00"
    assert history.data["expense_count"] == 1


def test_each_category_runs_once_per_invocation(
    generator, transport, preferences, user_id, add_subscription, add_income, add_expense
):
    preferences.get(user_id)
    add_subscription(user_id, "https://push.example/device")
    add_income(user_id, "1000.00", _utc(2026, 10, 1))
    add_expense(user_id, "900.00", date=_utc(2026, 10, 2))

    summary = generator.run(["budget_alert", "budget_alert"], now=NOW)

    assert list(summary.categories) == [AlertCategory.BUDGET_ALERT]
    assert len(transport.sent) == 1


def test_run_all_covers_scheduled_categories(generator, preferences, user_id, add_subscription):
    preferences.update(user_id, {"weekly_reports": True})
    add_subscription(user_id, "https://push.example/device")

    summary = generator.run("all", now=NOW)

    assert list(summary.as_dict()["categories"]) == [
        "expense_reminder",
        "budget_alert",
        "weekly_report",
        "monthly_report",
    ]
    # Reports go out even for an empty period
    assert summary.categories[AlertCategory.WEEKLY_REPORT].sent == 1
    assert summary.categories[AlertCategory.MONTHLY_REPORT].sent == 1
    assert summary.categories[AlertCategory.EXPENSE_REMINDER].fired == 0
    assert summary.categories[AlertCategory.BUDGET_ALERT].fired == 0


def test_unknown_category_is_rejected(generator):
    with pytest.raises(ValueError):
        generator.run("quarterly_report", now=NOW)
    with pytest.raises(ValueError):
        generator.run("payment_confirmation", now=NOW)


def test_reports_are_not_repeated_within_a_period(
    db_session, generator, transport, preferences, user_id, add_subscription
):
    preferences.update(user_id, {"weekly_reports": True})
    add_subscription(user_id, "https://push.example/device")

    first = generator.run("weekly_report", now=NOW).categories[AlertCategory.WEEKLY_REPORT]
    second = generator.run("weekly_report", now=NOW).categories[AlertCategory.WEEKLY_REPORT]

    assert (first.fired, first.sent, first.skipped) == (1, 1, 0)
    assert (second.fired, second.sent, second.skipped) == (0, 0, 1)
    assert len(transport.sent) == 1
    watermark = db_session.query(NotificationWatermark).one()
    assert watermark.period_key == "2026-10-18"


def test_reports_repeat_when_watermarks_disabled(
    session_factory, transport, preferences, user_id, add_subscription
):
    preferences.get(user_id)
    add_subscription(user_id, "https://push.example/device")
    config = settings.model_copy(update={"REPORT_WATERMARK_ENABLED": False})
    generator = AlertGenerator(session_factory, transport, max_workers=1, config=config)

    generator.run("monthly_report", now=NOW)
    generator.run("monthly_report", now=NOW)

    assert len(transport.sent) == 2


def test_report_without_delivery_is_retried(
    db_session, generator, transport, preferences, user_id, add_subscription
):
    preferences.get(user_id)
    add_subscription(user_id, "https://push.example/flaky")
    transport.failures = {"https://push.example/flaky": ConnectionError("reset")}

    generator.run("monthly_report", now=NOW)
    transport.failures = {}
    monthly = generator.run("monthly_report", now=NOW).categories[AlertCategory.MONTHLY_REPORT]

    assert monthly.sent == 1
    assert db_session.query(NotificationWatermark).count() == 1


class _FailingRecordStore(SqlRecordStore):
    broken_user: uuid.UUID | None = None

    def query_expenses(self, user_id, window):
        if user_id == self.broken_user:
            raise RuntimeError("records unavailable")
        return super().query_expenses(user_id, window)


def test_one_user_failing_does_not_stop_the_others(
    session_factory, transport, preferences, add_subscription, add_income, add_expense
):
    healthy, broken = uuid.uuid4(), uuid.uuid4()
    for user in (healthy, broken):
        preferences.get(user)
        add_subscription(user, f"https://push.example/{user}")
        add_income(user, "1000.00", _utc(2026, 10, 1))
        add_expense(user, "900.00", date=_utc(2026, 10, 2))
    _FailingRecordStore.broken_user = broken
    generator = AlertGenerator(
        session_factory, transport, record_store_factory=_FailingRecordStore, max_workers=1
    )

    budget = generator.run("budget_alert", now=NOW).categories[AlertCategory.BUDGET_ALERT]

    assert (budget.eligible, budget.processed, budget.fired, budget.errored) == (2, 1, 1, 1)
    assert transport.endpoints == [f"https://push.example/{healthy}"]


def test_listing_failure_raises_alert_run_error(generator):
    error = OperationalError("SELECT", {}, Exception("connection refused"))

    with patch.object(PreferenceStore, "list_eligible_users", side_effect=error):
        with pytest.raises(AlertRunError) as excinfo:
            generator.run("budget_alert", now=NOW)

    assert excinfo.value.details["category"] == "budget_alert"


def test_summary_serialises_to_plain_types(generator):
    result = generator.run("monthly_report", now=NOW).as_dict()

    assert result["started_at"] == "2026-10-19T12:00:00+00:00"
    assert result["categories"]["monthly_report"] == {
        "category": "monthly_report",
        "eligible": 0,
        "processed": 0,
        "fired": 0,
        "skipped": 0,
        "errored": 0,
        "sent": 0,
        "failed": 0,
        "removed": 0,
    }


def _seed_budget_user(db, user_id: uuid.UUID, endpoints: list[str]) -> None:
    PreferenceStore(db).get(user_id)
    for endpoint in endpoints:
        SubscriptionRegistry(db).upsert(user_id, endpoint, {"p256dh": "client-key", "auth": "secret"})
    db.add(Income(user_id=user_id, source="Salary", amount=Decimal("1000.00"), date=_utc(2026, 10, 1)))
    db.add(Expense(user_id=user_id, title="Rent", amount=Decimal("900.00"), date=_utc(2026, 10, 2)))
    db.commit()


def test_parallel_users_with_shared_send_limit(file_session_factory, transport):
    users = [uuid.uuid4() for _ in range(6)]
    db = file_session_factory()
    try:
        for user in users:
            _seed_budget_user(db, user, [f"https://push.example/{user}/{n}" for n in range(2)])
    finally:
        db.close()
    _FailingRecordStore.broken_user = users[2]
    transport.delay = 0.02
    generator = AlertGenerator(
        file_session_factory,
        transport,
        record_store_factory=_FailingRecordStore,
        max_workers=4,
        push_max_workers=3,
    )

    budget = generator.run("budget_alert", now=NOW).categories[AlertCategory.BUDGET_ALERT]

    assert (budget.eligible, budget.processed, budget.fired, budget.errored) == (6, 5, 5, 1)
    assert (budget.sent, budget.failed) == (10, 0)
    assert transport.peak_in_flight <= 3
    assert not any(endpoint.startswith(f"https://push.example/{users[2]}/") for endpoint in transport.endpoints)
    db = file_session_factory()
    try:
        assert db.query(NotificationHistory).count() == 10
    finally:
        db.close()
