"""Public API for the ``household_ledger`` package.

Each function opens its own transactional scope against the ledger database
(``DATABASE_URL`` unless ``database_url`` is given), reads the exchange rate
once, and delegates to the pure engine in ``aggregation``/``closing``.

Errors
------
- :class:`~household_ledger.errors.ConfigurationError`: bad exchange rate or
  budget item definition.
- :class:`~household_ledger.errors.PreconditionError`: closing an already
  closed or empty month, reopening an open month.
- :class:`~household_ledger.errors.LedgerIntegrityError`: the database write
  failed; the transaction was rolled back and nothing is visible. Retrying is
  safe.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from db.client import session_scope

from . import closing as _closing
from . import settings as _settings
from .aggregation import budget_usage_rate
from .budget_period import monthly_obligation
from .errors import LedgerIntegrityError
from .models import AggregationResult, BudgetItem, EntryType, MonthlyClosing, MonthStatus
from .persistence import SqlLedgerStore


@contextmanager
def ledger_session(*, database_url: str | None = None) -> Iterator[SqlLedgerStore]:
    """Yield a store inside one transaction; database failures roll back.

    SQLAlchemy errors are re-raised as :class:`LedgerIntegrityError` after
    the rollback so callers see a single failure and never a partial write.
    """

    try:
        with session_scope(database_url=database_url) as session:
            yield SqlLedgerStore(session)
    except SQLAlchemyError as e:
        raise LedgerIntegrityError(f"ledger write failed and was rolled back: {e}") from e


def compute_monthly_obligation(item: BudgetItem, year: int, month: int) -> Decimal | None:
    """Obligation of ``item`` for the month in the item's currency (``None`` if n/a)."""

    return monthly_obligation(item, year, month)


def aggregate_month(
    year: int, month: int, *, database_url: str | None = None
) -> AggregationResult:
    with ledger_session(database_url=database_url) as store:
        return _closing.aggregate_month(store, year, month)


def month_status(year: int, month: int, *, database_url: str | None = None) -> MonthStatus:
    with ledger_session(database_url=database_url) as store:
        return _closing.month_status(store, year, month)


def close_month(
    year: int,
    month: int,
    memo: str | None = None,
    *,
    database_url: str | None = None,
    now: datetime | None = None,
) -> MonthlyClosing:
    with ledger_session(database_url=database_url) as store:
        return _closing.close_month(store, year, month, memo, now=now)


def reopen_month(year: int, month: int, *, database_url: str | None = None) -> None:
    with ledger_session(database_url=database_url) as store:
        _closing.reopen_month(store, year, month)


def get_closing(
    year: int, month: int, *, database_url: str | None = None
) -> MonthlyClosing | None:
    with ledger_session(database_url=database_url) as store:
        return store.get_closing(year, month)


def closing_history(
    limit: int = _closing.DEFAULT_HISTORY_LIMIT, *, database_url: str | None = None
) -> list[MonthlyClosing]:
    with ledger_session(database_url=database_url) as store:
        return _closing.closing_history(store, limit)


def months_with_activity(year: int, *, database_url: str | None = None) -> set[int]:
    """Months of ``year`` that have a closing or at least one transaction."""

    with ledger_session(database_url=database_url) as store:
        return store.months_with_activity(year)


def get_exchange_rate(*, database_url: str | None = None) -> Decimal:
    with ledger_session(database_url=database_url) as store:
        return _settings.get_exchange_rate(store)


def set_exchange_rate(value: Any, *, database_url: str | None = None) -> Decimal:
    with ledger_session(database_url=database_url) as store:
        return _settings.set_exchange_rate(store, value)


# ---- authoring -------------------------------------------------------------------


def add_category(
    name: str, type: EntryType | str, *, id: str | None = None, database_url: str | None = None
) -> str:
    with ledger_session(database_url=database_url) as store:
        return store.add_category(name, type, id=id)


def add_transaction(*, database_url: str | None = None, **fields: Any) -> str:
    """Record a transaction and return its id. See ``SqlLedgerStore.add_transaction``."""

    with ledger_session(database_url=database_url) as store:
        return store.add_transaction(**fields)


def save_budget_item(item: BudgetItem, *, database_url: str | None = None) -> str:
    """Insert or replace a budget item; invalid definitions raise ``ConfigurationError``."""

    with ledger_session(database_url=database_url) as store:
        return store.save_budget_item(item)


__all__ = [
    "add_category",
    "add_transaction",
    "aggregate_month",
    "budget_usage_rate",
    "close_month",
    "closing_history",
    "compute_monthly_obligation",
    "get_closing",
    "get_exchange_rate",
    "ledger_session",
    "month_status",
    "months_with_activity",
    "reopen_month",
    "save_budget_item",
    "set_exchange_rate",
]
