"""Alert window calculation and message construction."""

from moneyflow.core.alerts.categories import (
    PERIODIC_REPORTS,
    SCHEDULED_CATEGORIES,
    AlertCategory,
    parse_categories,
)
from moneyflow.core.alerts.messages import NotificationMessage, parse_payload
from moneyflow.core.alerts.records import ExpenseRecord, IncomeRecord
from moneyflow.core.alerts.windows import TimeWindow, due_window, month_window, week_window

__all__ = [
    "AlertCategory",
    "ExpenseRecord",
    "IncomeRecord",
    "NotificationMessage",
    "PERIODIC_REPORTS",
    "SCHEDULED_CATEGORIES",
    "TimeWindow",
    "due_window",
    "month_window",
    "parse_categories",
    "parse_payload",
    "week_window",
]
