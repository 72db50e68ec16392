"""Month-end closing: open/closed state, snapshots and reopening.

A month is *closed* when a closing row exists for ``(year, month)`` and *open*
otherwise. Closing freezes the current aggregation; reopening deletes the
frozen snapshot. Transactions stay editable either way, so a closed month can
drift from its snapshot until it is reopened and closed again.

Every function takes a :class:`~household_ledger.store.LedgerStore`. Callers
are responsible for running mutating calls inside one transaction (see
``household_ledger.api``).
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal

from .aggregation import aggregate
from .budget_period import month_range
from .currency import round_half_up
from .errors import PreconditionError
from .logging_setup import get_logger
from .models import (
    AggregationResult,
    ClosedMonth,
    ClosingDetail,
    MonthlyClosing,
    MonthStatus,
    OpenMonth,
)
from .settings import get_exchange_rate
from .store import LedgerStore

logger = get_logger("household_ledger.closing")

DEFAULT_HISTORY_LIMIT = 12


def _money(value: Decimal) -> Decimal:
    return round_half_up(value, 2)


def _money_or_none(value: Decimal | None) -> Decimal | None:
    return None if value is None else _money(value)


def aggregate_month(
    store: LedgerStore, year: int, month: int, *, rate: Decimal | None = None
) -> AggregationResult:
    """Live aggregation for a month. The rate is read once unless supplied."""

    if rate is None:
        rate = get_exchange_rate(store)
    start, end = month_range(year, month)
    transactions = store.query_transactions(start, end, include_in_stats_only=True)
    budget_items = store.query_budget_items(active_only=True)
    return aggregate(transactions, budget_items, year, month, rate)


def month_status(store: LedgerStore, year: int, month: int) -> MonthStatus:
    live = aggregate_month(store, year, month)
    closing = store.get_closing(year, month)
    if closing is None:
        return OpenMonth(year=year, month=month, live=live)
    return ClosedMonth(year=year, month=month, snapshot=closing, live=live)


def build_closing(
    result: AggregationResult,
    *,
    memo: str | None = None,
    closed_at: datetime,
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
) -> MonthlyClosing:
    """Snapshot an aggregation as a closing.

    Amounts are rounded to cents. ``closed_at`` is kept in UTC; a naive value
    is taken to be UTC already.
    """

    details = tuple(
        ClosingDetail(
            category_id=row.category_id,
            category_name=row.category_name,
            type=row.type,
            amount=_money(row.amount),
            budget_amount=_money_or_none(row.budget_amount),
        )
        for row in result.per_category
    )
    total_income = _money(result.total_income)
    total_expense = _money(result.total_expense)
    return MonthlyClosing(
        id=id_factory(),
        year=result.year,
        month=result.month,
        total_income=total_income,
        total_expense=total_expense,
        total_budget=_money_or_none(result.total_budget),
        net_amount=total_income - total_expense,
        memo=(memo.strip() or None) if memo else None,
        closed_at=(
            closed_at.astimezone(UTC) if closed_at.tzinfo else closed_at.replace(tzinfo=UTC)
        ),
        details=details,
    )


def close_month(
    store: LedgerStore,
    year: int,
    month: int,
    memo: str | None = None,
    *,
    now: datetime | None = None,
) -> MonthlyClosing:
    """Close an open month with activity and return the stored snapshot.

    Raises :class:`PreconditionError` when the month is already closed or has
    neither income nor expense.
    """

    if store.get_closing(year, month) is not None:
        logger.warning("close refused: %04d-%02d is already closed", year, month)
        raise PreconditionError(
            f"{year:04d}-{month:02d} is already closed; reopen it first",
            year=year,
            month=month,
        )

    result = aggregate_month(store, year, month)
    if not result.has_activity:
        logger.warning("close refused: %04d-%02d has no income or expense", year, month)
        raise PreconditionError(
            f"{year:04d}-{month:02d} has no income or expense to close",
            year=year,
            month=month,
        )

    closing = build_closing(result, memo=memo, closed_at=now or datetime.now(UTC))
    store.write_closing(closing)
    logger.info(
        "closed %04d-%02d: income=%s expense=%s budget=%s (%d categories)",
        year,
        month,
        closing.total_income,
        closing.total_expense,
        closing.total_budget,
        len(closing.details),
    )
    return closing


def reopen_month(store: LedgerStore, year: int, month: int) -> MonthlyClosing:
    """Delete the closing for a closed month and return the discarded snapshot.

    Raises :class:`PreconditionError` when the month is open.
    """

    closing = store.get_closing(year, month)
    if closing is None:
        logger.warning("reopen refused: %04d-%02d is not closed", year, month)
        raise PreconditionError(f"{year:04d}-{month:02d} is not closed", year=year, month=month)
    store.delete_closing(closing.id)
    logger.info("reopened %04d-%02d (discarded closing %s)", year, month, closing.id)
    return closing


def closing_history(
    store: LedgerStore, limit: int = DEFAULT_HISTORY_LIMIT
) -> list[MonthlyClosing]:
    """Most recent closings, newest month first."""

    if limit <= 0:
        raise ValueError("limit must be a positive integer")
    return list(store.list_closings(limit))


__all__ = [
    "DEFAULT_HISTORY_LIMIT",
    "aggregate_month",
    "build_closing",
    "close_month",
    "closing_history",
    "month_status",
    "reopen_month",
]
