"""Budget period window arithmetic.

Kept free of storage and aggregation so the calendar rules can be tested on
their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from ..domain.errors import BudgetConfigurationError
from ..models.budget import BudgetPeriod


@dataclass(frozen=True, slots=True)
class PeriodWindow:
    """Half-open interval ``[start, end)`` in UTC."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= as_utc(moment) < self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days


def as_utc(moment: datetime) -> datetime:
    """Return ``moment`` as an aware UTC datetime; naive values are taken as UTC."""

    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _month_start(year: int, month: int) -> date:
    # Months past December roll into the following year.
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return date(year, month, 1)


def _calendar_bounds(period: BudgetPeriod, reference: date, anchor: date) -> tuple[date, date]:
    if period is BudgetPeriod.WEEKLY:
        offset = (reference - anchor).days // 7
        start = anchor + timedelta(days=7 * offset)
        return start, start + timedelta(days=7)
    if period is BudgetPeriod.MONTHLY:
        start = _month_start(reference.year, reference.month)
        return start, _month_start(reference.year, reference.month + 1)
    if period is BudgetPeriod.QUARTERLY:
        first_month = 3 * ((reference.month - 1) // 3) + 1
        start = _month_start(reference.year, first_month)
        return start, _month_start(reference.year, first_month + 3)
    if period is BudgetPeriod.YEARLY:
        return date(reference.year, 1, 1), date(reference.year + 1, 1, 1)
    raise ValueError(f"Unsupported budget period: {period!r}")


def period_window(
    period: BudgetPeriod | str,
    *,
    start_date: date,
    as_of: date,
    end_date: Optional[date] = None,
    budget_id: Optional[int] = None,
) -> PeriodWindow:
    """Return the spending window of a budget as of a given day.

    Args:
        period: Budget cadence
        start_date: First day the budget applies
        as_of: Day whose period is wanted; clamped into the budget's lifetime
        end_date: Last day the budget applies (inclusive), or None if open-ended
        budget_id: Only used to label configuration errors

    Returns:
        UTC PeriodWindow covering the period that contains the reference day,
        trimmed so it never starts before ``start_date`` or runs past
        ``end_date``

    Raises:
        BudgetConfigurationError: If ``end_date`` precedes ``start_date`` or
            the period is unknown
    """
    try:
        cadence = BudgetPeriod(period)
    except ValueError as exc:
        raise BudgetConfigurationError(budget_id, f"unknown period {period!r}") from exc

    if end_date is not None and end_date < start_date:
        raise BudgetConfigurationError(
            budget_id, f"end date {end_date.isoformat()} is before start date {start_date.isoformat()}"
        )

    reference = max(as_of, start_date)
    if end_date is not None:
        reference = min(reference, end_date)

    window_start, window_end = _calendar_bounds(cadence, reference, start_date)
    window_start = max(window_start, start_date)
    if end_date is not None:
        window_end = min(window_end, end_date + timedelta(days=1))

    return PeriodWindow(
        start=datetime.combine(window_start, time.min, tzinfo=timezone.utc),
        end=datetime.combine(window_end, time.min, tzinfo=timezone.utc),
    )
