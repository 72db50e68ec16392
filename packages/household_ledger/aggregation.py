"""Monthly totals in the reporting currency.

``aggregate`` is a pure function of its inputs: the same transactions, budget
items and rate always produce the same :class:`AggregationResult`.

Budget attribution per category follows the ledger's historical behavior: an
item linked to several categories contributes its *full* monthly obligation
to each of them (it is not split), while ``total_budget`` counts the item
once. Per-category budget figures can therefore add up to more than
``total_budget``.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal

from .budget_period import month_range, monthly_obligation
from .currency import normalize, round_half_up
from .logging_setup import get_logger
from .models import AggregationResult, BudgetItem, CategoryTotal, EntryType, Transaction

logger = get_logger("household_ledger.aggregation")

_ZERO = Decimal(0)


def transactions_in_month(
    transactions: Iterable[Transaction], year: int, month: int
) -> list[Transaction]:
    """Transactions dated within the month that count towards statistics."""

    start, end = month_range(year, month)
    return [t for t in transactions if t.include_in_stats and start <= t.date < end]


def budget_for_month(
    budget_items: Iterable[BudgetItem], year: int, month: int, rate: Decimal
) -> tuple[Decimal | None, dict[str, Decimal]]:
    """Return ``(total_budget, budget_by_category)`` in the reporting currency.

    ``total_budget`` is ``None`` when no item produced a non-zero obligation.
    """

    total = _ZERO
    contributed = False
    by_category: dict[str, Decimal] = defaultdict(lambda: _ZERO)
    for item in budget_items:
        obligation = monthly_obligation(item, year, month)
        if not obligation:
            continue
        amount = normalize(obligation, item.currency, rate)
        total += amount
        contributed = True
        for category_id in item.category_ids:
            by_category[category_id] += amount
    return (total if contributed else None), dict(by_category)


def aggregate(
    transactions: Iterable[Transaction],
    budget_items: Iterable[BudgetItem],
    year: int,
    month: int,
    rate: Decimal,
) -> AggregationResult:
    """Aggregate one calendar month.

    Transactions outside ``[first_day, first_day_of_next_month)`` or flagged
    ``include_in_stats = False`` are ignored. Every amount is normalized with
    ``rate`` before summing.
    """

    rows = transactions_in_month(transactions, year, month)

    totals = {EntryType.INCOME: _ZERO, EntryType.EXPENSE: _ZERO}
    per_key: dict[tuple[str, EntryType], Decimal] = defaultdict(lambda: _ZERO)
    names: dict[str, str] = {}
    for t in rows:
        amount = normalize(t.amount, t.currency, rate)
        kind = EntryType(t.type)
        totals[kind] += amount
        per_key[(t.category_id, kind)] += amount
        names.setdefault(t.category_id, t.category_name or t.category_id)

    total_budget, budget_by_category = budget_for_month(budget_items, year, month, rate)

    per_category = [
        CategoryTotal(
            category_id=category_id,
            category_name=names[category_id],
            type=kind,
            amount=amount,
            budget_amount=budget_by_category.get(category_id) or None,
        )
        for (category_id, kind), amount in per_key.items()
    ]
    # expense rows first, larger amounts first, ids break ties
    per_category.sort(key=lambda c: (c.type.value, -c.amount, c.category_id))

    result = AggregationResult(
        year=year,
        month=month,
        rate=rate,
        total_income=totals[EntryType.INCOME],
        total_expense=totals[EntryType.EXPENSE],
        total_budget=total_budget,
        per_category=tuple(per_category),
    )
    logger.debug(
        "aggregated %04d-%02d: %d transactions, income=%s expense=%s budget=%s",
        year,
        month,
        len(rows),
        result.total_income,
        result.total_expense,
        result.total_budget,
    )
    return result


def budget_usage_rate(result: AggregationResult) -> int | None:
    """Expense as a whole percentage of the budget, or ``None`` without a budget."""

    if not result.total_budget:
        return None
    return int(round_half_up(result.total_expense / result.total_budget * 100))


__all__ = [
    "aggregate",
    "budget_for_month",
    "budget_usage_rate",
    "transactions_in_month",
]
