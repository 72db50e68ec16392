"""Monthly obligations derived from budget item templates.

Rules
-----
- Inactive items never contribute.
- ``fixed_monthly`` and ``variable_monthly`` items contribute ``base_amount``
  unchanged in every month.
- ``distributed`` items spread ``base_amount`` over the whole calendar months
  touched by ``[valid_from, valid_to]``: ``N = (y2 - y1) * 12 + (m2 - m1) + 1``
  (minimum 1) and each month receives ``base_amount / N`` rounded half-up to
  a whole currency unit. A month receives the share when the window overlaps
  it at all; months wholly before ``valid_from`` or after ``valid_to`` get
  nothing.

Obligations are returned in the item's own currency; conversion to the
reporting currency is the caller's job (see ``household_ledger.currency``).
"""

from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal

from .currency import round_half_up
from .errors import ConfigurationError
from .models import BudgetItem, BudgetType


def first_day_of(year: int, month: int) -> date:
    if not 1 <= month <= 12:
        raise ValueError(f"month must be within 1..12, got {month}")
    return date(year, month, 1)


def last_day_of(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def next_month(year: int, month: int) -> tuple[int, int]:
    return (year + 1, 1) if month == 12 else (year, month + 1)


def month_range(year: int, month: int) -> tuple[date, date]:
    """Half-open ``[first_day, first_day_of_next_month)`` for a month."""

    return first_day_of(year, month), first_day_of(*next_month(year, month))


def months_spanned(valid_from: date, valid_to: date) -> int:
    """Whole calendar months touched by an inclusive window (at least 1)."""

    n = (valid_to.year - valid_from.year) * 12 + (valid_to.month - valid_from.month) + 1
    return max(n, 1)


def validate_budget_item(item: BudgetItem) -> None:
    """Raise :class:`ConfigurationError` when ``item`` cannot be evaluated."""

    if item.base_amount < 0:
        raise ConfigurationError(f"Budget item {item.name!r}: base_amount must not be negative")
    if item.budget_type != BudgetType.DISTRIBUTED:
        return
    if item.valid_from is None or item.valid_to is None:
        raise ConfigurationError(
            f"Budget item {item.name!r}: distributed items need both valid_from and valid_to"
        )
    if item.valid_from > item.valid_to:
        raise ConfigurationError(
            f"Budget item {item.name!r}: valid_from {item.valid_from} is after "
            f"valid_to {item.valid_to}"
        )


def distributed_share(item: BudgetItem) -> Decimal:
    """Per-month share of a distributed item, rounded half-up to whole units."""

    validate_budget_item(item)
    assert item.valid_from is not None and item.valid_to is not None  # validated above
    n = months_spanned(item.valid_from, item.valid_to)
    return round_half_up(item.base_amount / n)


def applies_to_month(item: BudgetItem, year: int, month: int) -> bool:
    if not item.is_active:
        return False
    if item.budget_type != BudgetType.DISTRIBUTED:
        return True
    validate_budget_item(item)
    assert item.valid_from is not None and item.valid_to is not None
    start = first_day_of(year, month)
    return item.valid_from <= last_day_of(year, month) and item.valid_to >= start


def monthly_obligation(item: BudgetItem, year: int, month: int) -> Decimal | None:
    """Amount ``item`` contributes to ``(year, month)``, or ``None`` if not applicable.

    Inactive items return ``None`` without further checks. For active items a
    broken definition (negative amount, missing or inverted window) raises
    :class:`ConfigurationError` rather than being coerced.
    """

    first_day_of(year, month)
    if not item.is_active:
        return None
    validate_budget_item(item)
    if not applies_to_month(item, year, month):
        return None
    if item.budget_type == BudgetType.DISTRIBUTED:
        return distributed_share(item)
    return item.base_amount


__all__ = [
    "applies_to_month",
    "distributed_share",
    "first_day_of",
    "last_day_of",
    "month_range",
    "monthly_obligation",
    "months_spanned",
    "next_month",
    "validate_budget_item",
]
