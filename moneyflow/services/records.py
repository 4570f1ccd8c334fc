"""Read-only access to expense and income records.

The finance CRUD layer owns these tables. Anything that satisfies
:class:`RecordStore` can be handed to the alert generator instead.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from moneyflow.core.alerts.records import ExpenseRecord, IncomeRecord
from moneyflow.core.alerts.windows import TimeWindow, ensure_aware, to_decimal
from moneyflow.db.models.finance import Expense, Income


class RecordStore(Protocol):
    """Time-ranged reads consumed by the alert generator."""

    def query_expenses(self, user_id: uuid.UUID, window: TimeWindow) -> list[ExpenseRecord]:  # pragma: no cover - interface definition
        """Expenses whose booking date lies in ``window``."""

    def query_due_expenses(self, user_id: uuid.UUID, window: TimeWindow) -> list[ExpenseRecord]:  # pragma: no cover - interface definition
        """Unpaid expenses whose due date lies in ``window``."""

    def query_incomes(self, user_id: uuid.UUID, window: TimeWindow) -> list[IncomeRecord]:  # pragma: no cover - interface definition
        """Incomes whose date lies in ``window``."""


def _utc(moment: datetime) -> datetime:
    return ensure_aware(moment).astimezone(timezone.utc)


def _aware(moment: Optional[datetime]) -> Optional[datetime]:
    return ensure_aware(moment) if moment is not None else None


class SqlRecordStore:
    """:class:`RecordStore` backed by the shared ``expenses``/``incomes`` tables."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _to_expense(row: Expense) -> ExpenseRecord:
        return ExpenseRecord(
            amount=to_decimal(row.amount),
            date=_aware(row.date),
            due_date=_aware(row.due_date),
            paid_at=_aware(row.paid_at),
        )

    def query_expenses(self, user_id: uuid.UUID, window: TimeWindow) -> list[ExpenseRecord]:
        stmt = select(Expense).where(
            Expense.user_id == user_id,
            Expense.date >= _utc(window.start),
            Expense.date <= _utc(window.end),
        )
        return [self._to_expense(row) for row in self.db.scalars(stmt)]

    def query_due_expenses(self, user_id: uuid.UUID, window: TimeWindow) -> list[ExpenseRecord]:
        stmt = select(Expense).where(
            Expense.user_id == user_id,
            Expense.due_date >= _utc(window.start),
            Expense.due_date <= _utc(window.end),
            Expense.paid_at.is_(None),
        )
        return [self._to_expense(row) for row in self.db.scalars(stmt)]

    def query_incomes(self, user_id: uuid.UUID, window: TimeWindow) -> list[IncomeRecord]:
        stmt = select(Income).where(
            Income.user_id == user_id,
            Income.date >= _utc(window.start),
            Income.date <= _utc(window.end),
        )
        return [
            IncomeRecord(amount=to_decimal(row.amount), date=_aware(row.date))
            for row in self.db.scalars(stmt)
        ]
