"""Per-category firing rules.

Each rule receives ``now`` and the records already fetched for the user and
returns a :class:`NotificationMessage` when the category fires, ``None``
otherwise.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from moneyflow.core.alerts.messages import (
    BudgetAlertPayload,
    ExpenseReminderPayload,
    MonthlyReportPayload,
    NotificationMessage,
    PaymentConfirmationPayload,
    WeeklyReportPayload,
)
from moneyflow.core.alerts.records import ExpenseRecord, IncomeRecord
from moneyflow.core.alerts.windows import (
    SUNDAY,
    TimeWindow,
    due_window,
    format_money,
    format_percentage,
    month_window,
    spending_ratio,
    sum_amounts,
    to_decimal,
    week_window,
)

DEFAULT_BUDGET_THRESHOLD = Decimal("0.8")


def _in_window(records: Sequence, window: TimeWindow) -> list:
    # Stores that already ranged the query may omit the booking date
    return [record for record in records if record.date is None or window.contains(record.date)]


def evaluate_expense_reminder(
    now: datetime, expenses: Sequence[ExpenseRecord]
) -> Optional[NotificationMessage]:
    """Fire when unpaid expenses fall due between today and tomorrow's midnight."""

    window = due_window(now)
    due = [
        expense
        for expense in expenses
        if not expense.is_paid and window.contains(expense.due_date)
    ]
    if not due:
        return None

    total = sum_amounts(due)
    return NotificationMessage(
        title="Upcoming Bills Due Tomorrow",
        body=f"You have {len(due)} bill(s) due tomorrow totaling {format_money(total)}",
        payload=ExpenseReminderPayload(
            expense_count=len(due),
            total_amount=total,
            due_date=window.end.date(),
        ),
    )


def evaluate_budget_alert(
    now: datetime,
    expenses: Sequence[ExpenseRecord],
    incomes: Sequence[IncomeRecord],
    threshold: Decimal = DEFAULT_BUDGET_THRESHOLD,
) -> Optional[NotificationMessage]:
    """Fire when this month's spending exceeds ``threshold`` of this month's income."""

    window = month_window(now)
    total_expenses = sum_amounts(_in_window(expenses, window))
    total_income = sum_amounts(_in_window(incomes, window))

    ratio = spending_ratio(total_expenses, total_income)
    if ratio is None or ratio <= to_decimal(threshold):
        return None

    percentage = format_percentage(ratio)
    return NotificationMessage(
        title="Budget Alert",
        body=(
            f"You've spent {percentage}% of your monthly income. "
            "Consider reviewing your expenses."
        ),
        payload=BudgetAlertPayload(
            total_expenses=total_expenses,
            total_income=total_income,
            percentage=Decimal(percentage),
        ),
    )


def _summary_body(label: str, income: Decimal, expenses: Decimal, balance: Decimal) -> str:
    return (
        f"{label}: Income {format_money(income)}, "
        f"Expenses {format_money(expenses)}, Balance {format_money(balance)}"
    )


def build_weekly_report(
    now: datetime,
    expenses: Sequence[ExpenseRecord],
    incomes: Sequence[IncomeRecord],
    week_start: int = SUNDAY,
) -> NotificationMessage:
    """Weekly summary; sent even when the week had no activity."""

    window = week_window(now, week_start)
    total_expenses = sum_amounts(_in_window(expenses, window))
    total_income = sum_amounts(_in_window(incomes, window))
    balance = total_income - total_expenses
    return NotificationMessage(
        title="Weekly Financial Summary",
        body=_summary_body("This week", total_income, total_expenses, balance),
        payload=WeeklyReportPayload(
            total_income=total_income,
            total_expenses=total_expenses,
            balance=balance,
            week_start=window.start.date(),
            week_end=window.end.date(),
        ),
    )


def build_monthly_report(
    now: datetime,
    expenses: Sequence[ExpenseRecord],
    incomes: Sequence[IncomeRecord],
) -> NotificationMessage:
    window = month_window(now)
    total_expenses = sum_amounts(_in_window(expenses, window))
    total_income = sum_amounts(_in_window(incomes, window))
    balance = total_income - total_expenses
    return NotificationMessage(
        title="Monthly Financial Summary",
        body=_summary_body("This month", total_income, total_expenses, balance),
        payload=MonthlyReportPayload(
            total_income=total_income,
            total_expenses=total_expenses,
            balance=balance,
            month_start=window.start.date(),
            month_end=window.end.date(),
        ),
    )


def build_payment_confirmation(
    expense_title: str, amount: Decimal | str, paid_at: datetime
) -> NotificationMessage:
    value = to_decimal(amount)
    return NotificationMessage(
        title="Payment Confirmed",
        body=f'Payment of {format_money(value)} for "{expense_title}" has been recorded.',
        payload=PaymentConfirmationPayload(
            expense_title=expense_title,
            amount=value,
            paid_at=paid_at,
        ),
    )
