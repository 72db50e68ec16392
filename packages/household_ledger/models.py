"""Domain types for the budget, aggregation and closing engine.

These are plain, immutable snapshots of ledger rows. The engine never reads
the database directly: ``household_ledger.persistence`` maps ORM rows to these
types and the computations in ``budget_period``/``aggregation``/``closing``
work on them as pure inputs.

Money is always :class:`~decimal.Decimal`. Amounts in the source currency are
kept as entered; everything reported (totals, per-category rows, closings) is
in the reporting currency (KRW).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class Currency(StrEnum):
    KRW = "KRW"
    AED = "AED"


REPORTING_CURRENCY = Currency.KRW


class EntryType(StrEnum):
    """Direction of a transaction or a category (income vs expense)."""

    INCOME = "income"
    EXPENSE = "expense"


class BudgetType(StrEnum):
    FIXED_MONTHLY = "fixed_monthly"
    # Same obligation as fixed_monthly; the UI lets users override the amount
    # mid-cycle, which never changes the computed template amount.
    VARIABLE_MONTHLY = "variable_monthly"
    DISTRIBUTED = "distributed"


# ---------------------------------------------------------------------------
# Source rows
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BudgetItem:
    """A budget template.

    ``valid_from``/``valid_to`` are inclusive calendar dates and only
    meaningful (and then required) for ``BudgetType.DISTRIBUTED``.
    ``category_ids`` is an unordered set of linked categories.
    """

    id: str
    name: str
    budget_type: BudgetType
    base_amount: Decimal
    currency: Currency = Currency.KRW
    category_ids: frozenset[str] = frozenset()
    group_name: str | None = None
    valid_from: date | None = None
    valid_to: date | None = None
    is_active: bool = True
    account_id: str | None = None


@dataclass(frozen=True, slots=True)
class Transaction:
    id: str
    type: EntryType
    amount: Decimal
    currency: Currency
    category_id: str
    date: date
    include_in_stats: bool = True
    tag: str = ""
    # Joined from the category row when loaded from the store.
    category_name: str | None = None


# ---------------------------------------------------------------------------
# Aggregation output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CategoryTotal:
    """One (category, type) row of a month, in the reporting currency."""

    category_id: str
    category_name: str
    type: EntryType
    amount: Decimal
    budget_amount: Decimal | None = None


@dataclass(frozen=True, slots=True)
class AggregationResult:
    year: int
    month: int
    rate: Decimal
    total_income: Decimal
    total_expense: Decimal
    # None means no budget item contributed anything for the month, which is
    # different from a budget that sums to zero.
    total_budget: Decimal | None
    per_category: tuple[CategoryTotal, ...] = ()

    @property
    def net_amount(self) -> Decimal:
        return self.total_income - self.total_expense

    @property
    def has_activity(self) -> bool:
        return self.total_income > 0 or self.total_expense > 0


# ---------------------------------------------------------------------------
# Closings and month state
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ClosingDetail:
    category_id: str
    category_name: str
    type: EntryType
    amount: Decimal
    budget_amount: Decimal | None = None


@dataclass(frozen=True, slots=True)
class MonthlyClosing:
    """Frozen month-end snapshot; replaced wholesale, never edited in place."""

    id: str
    year: int
    month: int
    total_income: Decimal
    total_expense: Decimal
    total_budget: Decimal | None
    net_amount: Decimal
    closed_at: datetime
    memo: str | None = None
    details: tuple[ClosingDetail, ...] = ()


def _cents(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _cents_or_none(value: Decimal | None) -> Decimal | None:
    return None if value is None else _cents(value)


@dataclass(frozen=True, slots=True)
class OpenMonth:
    """No closing exists for the month; ``live`` is the current aggregation."""

    is_closed: ClassVar[bool] = False

    year: int
    month: int
    live: AggregationResult


@dataclass(frozen=True, slots=True)
class ClosedMonth:
    """A closing exists. ``live`` may have drifted from ``snapshot`` since."""

    is_closed: ClassVar[bool] = True

    year: int
    month: int
    snapshot: MonthlyClosing
    live: AggregationResult

    @property
    def diverged(self) -> bool:
        """True when transactions changed after the month was closed.

        Totals and per-category rows are both compared, so moving a
        transaction between categories counts even when totals are unchanged.
        """
        s, live = self.snapshot, self.live
        # snapshots are stored to the cent
        if (
            s.total_income != _cents(live.total_income)
            or s.total_expense != _cents(live.total_expense)
            or s.total_budget != _cents_or_none(live.total_budget)
        ):
            return True
        frozen = {(d.category_id, d.type): (d.amount, d.budget_amount) for d in s.details}
        current = {
            (row.category_id, row.type): (_cents(row.amount), _cents_or_none(row.budget_amount))
            for row in live.per_category
        }
        return frozen != current


type MonthStatus = OpenMonth | ClosedMonth


# ---------------------------------------------------------------------------
# Export DTOs
# ---------------------------------------------------------------------------


class ClosingDetailExport(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category_id: str
    category_name: str
    type: EntryType
    amount: Decimal
    budget_amount: Decimal | None = None


class ClosingExport(BaseModel):
    """JSON-serializable view of a :class:`MonthlyClosing`."""

    model_config = ConfigDict(extra="forbid")

    id: str
    year: int
    month: int
    total_income: Decimal
    total_expense: Decimal
    total_budget: Decimal | None
    net_amount: Decimal
    memo: str | None = None
    closed_at: datetime
    details: list[ClosingDetailExport]

    @classmethod
    def from_closing(cls, closing: MonthlyClosing) -> ClosingExport:
        return cls(
            id=closing.id,
            year=closing.year,
            month=closing.month,
            total_income=closing.total_income,
            total_expense=closing.total_expense,
            total_budget=closing.total_budget,
            net_amount=closing.net_amount,
            memo=closing.memo,
            closed_at=closing.closed_at,
            details=[
                ClosingDetailExport(
                    category_id=d.category_id,
                    category_name=d.category_name,
                    type=d.type,
                    amount=d.amount,
                    budget_amount=d.budget_amount,
                )
                for d in closing.details
            ],
        )


__all__ = [
    "REPORTING_CURRENCY",
    "AggregationResult",
    "BudgetItem",
    "BudgetType",
    "CategoryTotal",
    "ClosedMonth",
    "ClosingDetail",
    "ClosingDetailExport",
    "ClosingExport",
    "Currency",
    "EntryType",
    "MonthStatus",
    "MonthlyClosing",
    "OpenMonth",
    "Transaction",
]
