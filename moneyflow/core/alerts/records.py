"""Plain record shapes handed to the alert rules by the record store."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class ExpenseRecord:
    amount: Decimal
    date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    paid_at: Optional[datetime] = None

    @property
    def is_paid(self) -> bool:
        return self.paid_at is not None


@dataclass(frozen=True)
class IncomeRecord:
    amount: Decimal
    date: Optional[datetime] = None
