"""Notification message value objects.

Payloads form a tagged union keyed by ``category`` so each category carries
exactly the fields its template needs and is validated when built.
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from moneyflow.core.alerts.categories import AlertCategory


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ExpenseReminderPayload(_Payload):
    category: Literal["expense_reminder"] = "expense_reminder"
    expense_count: int = Field(ge=1)
    total_amount: Decimal
    due_date: date


class BudgetAlertPayload(_Payload):
    category: Literal["budget_alert"] = "budget_alert"
    total_expenses: Decimal
    total_income: Decimal = Field(gt=0)
    percentage: Decimal


class WeeklyReportPayload(_Payload):
    category: Literal["weekly_report"] = "weekly_report"
    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal
    week_start: date
    week_end: date


class MonthlyReportPayload(_Payload):
    category: Literal["monthly_report"] = "monthly_report"
    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal
    month_start: date
    month_end: date


class PaymentConfirmationPayload(_Payload):
    category: Literal["payment_confirmation"] = "payment_confirmation"
    expense_title: str = Field(min_length=1, max_length=255)
    amount: Decimal
    paid_at: datetime


NotificationPayload = Annotated[
    Union[
        ExpenseReminderPayload,
        BudgetAlertPayload,
        WeeklyReportPayload,
        MonthlyReportPayload,
        PaymentConfirmationPayload,
    ],
    Field(discriminator="category"),
]

_payload_adapter: TypeAdapter[NotificationPayload] = TypeAdapter(NotificationPayload)


def parse_payload(category: AlertCategory | str, data: Dict[str, Any] | None) -> NotificationPayload:
    """Validate free-form ``data`` against the payload variant of ``category``.

    Raises ``pydantic.ValidationError`` when fields are missing or unexpected.
    """

    raw = dict(data or {})
    raw["category"] = AlertCategory(category).value
    return _payload_adapter.validate_python(raw)


class NotificationMessage(BaseModel):
    """Immutable message fanned out to every endpoint of a user."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1, max_length=255)
    body: str = Field(min_length=1, max_length=2000)
    payload: NotificationPayload

    @property
    def category(self) -> AlertCategory:
        return AlertCategory(self.payload.category)

    def data(self) -> Dict[str, Any]:
        """JSON-safe payload fields without the discriminator."""

        return self.payload.model_dump(mode="json", exclude={"category"})

    def to_push_envelope(self, *, icon: str, tag: str, url: str = "/") -> Dict[str, Any]:
        """Build the JSON document the service worker renders."""

        return {
            "title": self.title,
            "body": self.body,
            "icon": icon,
            "badge": icon,
            "data": {"url": url, "type": self.category.value, **self.data()},
            "actions": [
                {"action": "open", "title": "Open App", "icon": icon},
                {"action": "close", "title": "Close", "icon": icon},
            ],
            "requireInteraction": True,
            "tag": tag,
        }
