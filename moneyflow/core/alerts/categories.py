"""Alert categories known to the notification subsystem."""
from __future__ import annotations

from enum import Enum
from typing import Iterable


class AlertCategory(str, Enum):
    """Fixed set of notification categories."""

    EXPENSE_REMINDER = "expense_reminder"
    BUDGET_ALERT = "budget_alert"
    WEEKLY_REPORT = "weekly_report"
    MONTHLY_REPORT = "monthly_report"
    PAYMENT_CONFIRMATION = "payment_confirmation"


ALL = "all"

SCHEDULED_CATEGORIES: tuple[AlertCategory, ...] = (
    AlertCategory.EXPENSE_REMINDER,
    AlertCategory.BUDGET_ALERT,
    AlertCategory.WEEKLY_REPORT,
    AlertCategory.MONTHLY_REPORT,
)

PERIODIC_REPORTS = frozenset({AlertCategory.WEEKLY_REPORT, AlertCategory.MONTHLY_REPORT})


def parse_categories(value: str | AlertCategory | Iterable[str | AlertCategory]) -> list[AlertCategory]:
    """Resolve ``"all"``, a single category or a collection into scheduled categories.

    Order follows :data:`SCHEDULED_CATEGORIES` and duplicates collapse, so a
    category is never evaluated twice within one run. Raises ``ValueError``
    for unknown names and for event-triggered categories.
    """

    if isinstance(value, (str, AlertCategory)):
        values: list[str | AlertCategory] = [value]
    else:
        values = list(value)
    if not values:
        raise ValueError("At least one alert category is required")

    requested: set[AlertCategory] = set()
    for item in values:
        if item == ALL:
            requested.update(SCHEDULED_CATEGORIES)
            continue
        try:
            category = AlertCategory(item)
        except ValueError as exc:
            raise ValueError(f"Unknown alert category: {item}") from exc
        if category not in SCHEDULED_CATEGORIES:
            raise ValueError(f"Alert category {category.value} is not scheduled")
        requested.add(category)

    return [category for category in SCHEDULED_CATEGORIES if category in requested]
