"""Date ranges and monetary aggregates used by the alert rules.

Every function here is pure: callers pass ``now`` (timezone aware) and the
records they fetched. Money is summed as :class:`~decimal.Decimal` and only
rounded when rendered for humans.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

CENT = Decimal("0.01")
TENTH = Decimal("0.1")
ZERO = Decimal("0")

SUNDAY = 6


@dataclass(frozen=True)
class TimeWindow:
    """Closed interval ``[start, end]``."""

    start: datetime
    end: datetime

    def contains(self, moment: Optional[datetime]) -> bool:
        if moment is None:
            return False
        moment = ensure_aware(moment)
        return self.start <= moment <= self.end


def ensure_aware(moment: datetime, tz: timezone | ZoneInfo = timezone.utc) -> datetime:
    """Attach ``tz`` to naive datetimes (SQLite drops offsets on the way back)."""

    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment


def localize(now: datetime, tz_name: str) -> datetime:
    return ensure_aware(now).astimezone(ZoneInfo(tz_name))


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def due_window(now: datetime) -> TimeWindow:
    """Today's midnight through tomorrow's midnight, both ends inclusive."""

    today = start_of_day(ensure_aware(now))
    return TimeWindow(start=today, end=today + timedelta(days=1))


def week_window(now: datetime, week_start: int = SUNDAY) -> TimeWindow:
    """Calendar week containing ``now``; ``week_start`` uses ``date.weekday()`` numbering."""

    now = ensure_aware(now)
    offset = (now.weekday() - week_start) % 7
    start = start_of_day(now) - timedelta(days=offset)
    return TimeWindow(start=start, end=start + timedelta(days=7, microseconds=-1))


def month_window(now: datetime) -> TimeWindow:
    now = ensure_aware(now)
    start = start_of_day(now).replace(day=1)
    if start.month == 12:
        next_month = start.replace(year=start.year + 1, month=1)
    else:
        next_month = start.replace(month=start.month + 1)
    return TimeWindow(start=start, end=next_month - timedelta(microseconds=1))


def period_key(window: TimeWindow, monthly: bool) -> str:
    """Stable identifier of a report period, e.g. ``2026-10`` or ``2026-10-18``."""

    if monthly:
        return window.start.strftime("%Y-%m")
    return window.start.date().isoformat()


def to_decimal(value: Decimal | int | str | float) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so floats keep their shortest repr instead of binary noise
    return Decimal(str(value))


def sum_amounts(records: Iterable) -> Decimal:
    return sum((to_decimal(record.amount) for record in records), ZERO)


def spending_ratio(expense_total: Decimal, income_total: Decimal) -> Optional[Decimal]:
    """Expenses divided by income, or ``None`` when there is no income."""

    if income_total <= ZERO:
        return None
    return expense_total / income_total


def format_money(amount: Decimal) -> str:
    rounded = to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        rounded = abs(rounded)
    if rounded < ZERO:
        return f"-${-rounded}"
    return f"${rounded}"


def format_percentage(ratio: Decimal) -> str:
    return str((ratio * 100).quantize(TENTH, rounding=ROUND_HALF_UP))
