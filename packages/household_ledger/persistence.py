# ruff: noqa: I001
"""Persistence integration for household_ledger.

:class:`SqlLedgerStore` implements :class:`~household_ledger.store.LedgerStore`
on top of the SQLAlchemy models in ``db.models.ledger``. It maps rows to the
immutable domain types in ``household_ledger.models`` so the engine never
holds ORM objects.

Scope:
- Reads used by aggregation and closing (transactions, budget items,
  settings, closings).
- Closing writes/deletes. The store only flushes; the caller's
  ``session_scope`` decides commit or rollback, which keeps a closing header
  and its detail rows all-or-nothing.
- Small authoring helpers (categories, transactions, budget items) for the
  CLI and tests.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.ledger import (
    HlBudgetItem,
    HlBudgetItemCategory,
    HlCategory,
    HlMonthlyClosing,
    HlMonthlyClosingDetail,
    HlSetting,
    HlTransaction,
)
from .budget_period import validate_budget_item
from .currency import parse_currency
from .errors import ConfigurationError
from .models import (
    BudgetItem,
    BudgetType,
    ClosingDetail,
    Currency,
    EntryType,
    MonthlyClosing,
    Transaction,
)


def _to_decimal_2(raw: Any) -> Decimal:
    try:
        d = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        raise ValueError(f"Not a valid amount: {raw!r}") from None
    if not d.is_finite():
        raise ValueError(f"Not a valid amount: {raw!r}")
    return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


_EDITABLE_TX_FIELDS = frozenset(
    {
        "amount",
        "currency",
        "type",
        "category_id",
        "date",
        "include_in_stats",
        "tag",
        "memo",
        "description",
    }
)


def _norm_str(v: Any) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    return s if s else None


# ---------------------------
# Row -> domain mapping
# ---------------------------


def _transaction_from_row(row: HlTransaction) -> Transaction:
    return Transaction(
        id=row.id,
        type=EntryType(row.type),
        amount=Decimal(row.amount),
        currency=Currency(row.currency),
        category_id=row.category_id,
        date=row.date,
        include_in_stats=bool(row.include_in_stats),
        tag=row.tag or "",
        category_name=row.category.name if row.category is not None else None,
    )


def _budget_item_from_row(row: HlBudgetItem) -> BudgetItem:
    return BudgetItem(
        id=row.id,
        name=row.name,
        budget_type=BudgetType(row.budget_type),
        base_amount=Decimal(row.base_amount),
        currency=Currency(row.currency),
        category_ids=frozenset(link.category_id for link in row.category_links),
        group_name=row.group_name,
        valid_from=row.valid_from,
        valid_to=row.valid_to,
        is_active=bool(row.is_active),
        account_id=row.account_id,
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite drops the offset; stored values are always UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _closing_from_row(row: HlMonthlyClosing) -> MonthlyClosing:
    return MonthlyClosing(
        id=row.id,
        year=row.year,
        month=row.month,
        total_income=Decimal(row.total_income),
        total_expense=Decimal(row.total_expense),
        total_budget=None if row.total_budget is None else Decimal(row.total_budget),
        net_amount=Decimal(row.net_amount),
        closed_at=_as_utc(row.closed_at),
        memo=row.memo,
        details=tuple(
            ClosingDetail(
                category_id=d.category_id,
                category_name=d.category_name,
                type=EntryType(d.type),
                amount=Decimal(d.amount),
                budget_amount=None if d.budget_amount is None else Decimal(d.budget_amount),
            )
            for d in row.details
        ),
    )


class SqlLedgerStore:
    """``LedgerStore`` bound to one SQLAlchemy session (callers own the scope)."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # ---- reads consumed by the engine ---------------------------------------

    def query_transactions(
        self, start: date, end: date, *, include_in_stats_only: bool = True
    ) -> list[Transaction]:
        stmt = (
            select(HlTransaction)
            .where(HlTransaction.date >= start, HlTransaction.date < end)
            .order_by(HlTransaction.date, HlTransaction.id)
        )
        if include_in_stats_only:
            stmt = stmt.where(HlTransaction.include_in_stats.is_(True))
        rows = self.session.execute(stmt).scalars().all()
        return [_transaction_from_row(r) for r in rows]

    def query_budget_items(self, *, active_only: bool = True) -> list[BudgetItem]:
        stmt = select(HlBudgetItem).order_by(HlBudgetItem.sort_order, HlBudgetItem.name)
        if active_only:
            stmt = stmt.where(HlBudgetItem.is_active.is_(True))
        rows = self.session.execute(stmt).scalars().all()
        return [_budget_item_from_row(r) for r in rows]

    def get_setting(self, key: str) -> str | None:
        row = self.session.get(HlSetting, key)
        return None if row is None else row.value

    def set_setting(self, key: str, value: str) -> None:
        row = self.session.get(HlSetting, key)
        if row is None:
            self.session.add(HlSetting(key=key, value=value))
        else:
            row.value = value
        self.session.flush()

    # ---- closings ------------------------------------------------------------

    def _closing_row(self, year: int, month: int) -> HlMonthlyClosing | None:
        return (
            self.session.execute(
                select(HlMonthlyClosing).where(
                    HlMonthlyClosing.year == year, HlMonthlyClosing.month == month
                )
            )
            .scalars()
            .one_or_none()
        )

    def get_closing(self, year: int, month: int) -> MonthlyClosing | None:
        row = self._closing_row(year, month)
        return None if row is None else _closing_from_row(row)

    def write_closing(self, closing: MonthlyClosing) -> None:
        row = HlMonthlyClosing(
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
                HlMonthlyClosingDetail(
                    category_id=d.category_id,
                    category_name=d.category_name,
                    type=str(d.type),
                    amount=d.amount,
                    budget_amount=d.budget_amount,
                    sort_order=i,
                )
                for i, d in enumerate(closing.details)
            ],
        )
        self.session.add(row)
        # Surface constraint violations here, inside the caller's transaction.
        self.session.flush()

    def delete_closing(self, closing_id: str) -> None:
        row = self.session.get(HlMonthlyClosing, closing_id)
        if row is None:
            raise LookupError(f"closing not found: {closing_id}")
        self.session.delete(row)
        self.session.flush()

    def list_closings(self, limit: int) -> list[MonthlyClosing]:
        rows = (
            self.session.execute(
                select(HlMonthlyClosing)
                .order_by(HlMonthlyClosing.year.desc(), HlMonthlyClosing.month.desc())
                .limit(limit)
            )
            .scalars()
            .all()
        )
        return [_closing_from_row(r) for r in rows]

    def months_with_activity(self, year: int) -> set[int]:
        closed = self.session.execute(
            select(HlMonthlyClosing.month).where(HlMonthlyClosing.year == year)
        ).scalars()
        start, end = date(year, 1, 1), date(year + 1, 1, 1)
        dates = self.session.execute(
            select(HlTransaction.date)
            .where(HlTransaction.date >= start, HlTransaction.date < end)
            .distinct()
        ).scalars()
        return set(closed) | {d.month for d in dates}

    # ---- authoring helpers ---------------------------------------------------

    def add_category(
        self,
        name: str,
        type: EntryType | str,
        *,
        id: str | None = None,
        expense_type: str | None = None,
        sort_order: int = 0,
    ) -> str:
        name_n = _norm_str(name)
        if name_n is None:
            raise ValueError("Category name cannot be empty")
        row = HlCategory(
            name=name_n,
            type=str(EntryType(type)),
            expense_type=expense_type,
            sort_order=sort_order,
        )
        if id is not None:
            row.id = id
        self.session.add(row)
        self.session.flush()
        return row.id

    def add_transaction(
        self,
        *,
        type: EntryType | str,
        amount: Any,
        category_id: str,
        date: date,
        currency: Currency | str = Currency.KRW,
        include_in_stats: bool = True,
        tag: str = "",
        description: str | None = None,
        memo: str | None = None,
    ) -> str:
        amount_d = _to_decimal_2(amount)
        if amount_d < 0:
            raise ValueError("Transaction amount must not be negative")
        row = HlTransaction(
            type=str(EntryType(type)),
            amount=amount_d,
            currency=str(parse_currency(currency)),
            category_id=category_id,
            date=date,
            include_in_stats=include_in_stats,
            tag=tag or "",
            description=_norm_str(description),
            memo=_norm_str(memo),
        )
        self.session.add(row)
        self.session.flush()
        return row.id

    def update_transaction(self, transaction_id: str, **changes: Any) -> None:
        """Edit a transaction. Closed months do not lock their transactions."""

        row = self.session.get(HlTransaction, transaction_id)
        if row is None:
            raise LookupError(f"transaction not found: {transaction_id}")
        for field, value in changes.items():
            if field == "amount":
                value = _to_decimal_2(value)
                if value < 0:
                    raise ValueError("Transaction amount must not be negative")
            elif field == "currency":
                value = str(parse_currency(value))
            elif field == "type":
                value = str(EntryType(value))
            elif field not in _EDITABLE_TX_FIELDS:
                raise ValueError(f"Unknown transaction field: {field}")
            setattr(row, field, value)
        self.session.flush()

    def save_budget_item(self, item: BudgetItem, *, sort_order: int = 0) -> str:
        """Insert or replace a budget item and its category links.

        The definition is validated first; an invalid item raises
        :class:`ConfigurationError` and nothing is written.
        """

        if _norm_str(item.name) is None:
            raise ConfigurationError("Budget item name cannot be empty")
        validate_budget_item(item)
        row = self.session.get(HlBudgetItem, item.id)
        if row is None:
            row = HlBudgetItem(id=item.id)
            self.session.add(row)
        row.name = item.name.strip()
        row.group_name = _norm_str(item.group_name)
        row.budget_type = str(BudgetType(item.budget_type))
        row.base_amount = _to_decimal_2(item.base_amount)
        row.currency = str(parse_currency(item.currency))
        row.valid_from = item.valid_from
        row.valid_to = item.valid_to
        row.is_active = item.is_active
        row.sort_order = sort_order
        row.account_id = item.account_id
        row.category_links = [
            HlBudgetItemCategory(budget_item_id=item.id, category_id=c)
            for c in sorted(item.category_ids)
        ]
        self.session.flush()
        return row.id

    def set_budget_item_active(self, budget_item_id: str, active: bool) -> None:
        row = self.session.get(HlBudgetItem, budget_item_id)
        if row is None:
            raise LookupError(f"budget item not found: {budget_item_id}")
        row.is_active = active
        self.session.flush()


__all__ = [
    "SqlLedgerStore",
]
