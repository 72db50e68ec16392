from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

import household_ledger.api as api
from household_ledger.closing import aggregate_month as aggregate_with_store
from household_ledger.errors import LedgerIntegrityError, PreconditionError
from household_ledger.models import (
    BudgetItem,
    BudgetType,
    ClosedMonth,
    Currency,
    EntryType,
    OpenMonth,
    Transaction,
)
from household_ledger.persistence import SqlLedgerStore
from tests.helpers.db import seed_budget_items, seed_categories, seed_transactions

CLOSED_AT = datetime(2025, 2, 1, 9, 30, tzinfo=UTC)


# ---- Fixtures ------------------------------------------------------------------


@pytest.fixture
def ledger(db_url: str) -> dict[str, str]:
    """January 2025 with income, KRW/AED expenses and two budget items.

    Returns transaction ids by a short label.
    """

    seed_categories(
        database_url=db_url,
        categories={
            "salary": EntryType.INCOME,
            "food": EntryType.EXPENSE,
            "rent": EntryType.EXPENSE,
        },
    )
    ids = seed_transactions(
        database_url=db_url,
        rows=[
            dict(type="income", amount="3000000", category_id="salary", date=date(2025, 1, 25)),
            dict(
                type="expense",
                amount="100",
                currency="AED",
                category_id="food",
                date=date(2025, 1, 10),
            ),
            dict(type="expense", amount="20000", category_id="food", date=date(2025, 1, 31)),
            dict(type="expense", amount="1000000", category_id="rent", date=date(2025, 1, 1)),
            dict(
                type="expense",
                amount="50000",
                category_id="food",
                date=date(2025, 1, 15),
                include_in_stats=False,
            ),
            dict(type="expense", amount="7000", category_id="food", date=date(2025, 3, 2)),
        ],
    )
    seed_budget_items(
        database_url=db_url,
        items=[
            BudgetItem(
                id="b-rent",
                name="Rent",
                budget_type=BudgetType.FIXED_MONTHLY,
                base_amount=Decimal("1000000"),
                category_ids=frozenset({"rent"}),
            ),
            BudgetItem(
                id="b-insurance",
                name="Insurance",
                budget_type=BudgetType.DISTRIBUTED,
                base_amount=Decimal("1000000"),
                valid_from=date(2025, 1, 1),
                valid_to=date(2025, 3, 31),
                category_ids=frozenset({"rent", "food"}),
            ),
        ],
    )
    return {"salary": ids[0], "aed_food": ids[1], "krw_food": ids[2], "rent": ids[3]}


# ---- Close -----------------------------------------------------------------------


def test_close_snapshots_the_live_aggregation(db_url: str, ledger: dict[str, str]) -> None:
    live = api.aggregate_month(2025, 1, database_url=db_url)
    closing = api.close_month(2025, 1, "  January  ", database_url=db_url, now=CLOSED_AT)

    assert closing.total_income == live.total_income == Decimal("3000000")
    assert closing.total_expense == live.total_expense == Decimal("1058500")
    assert closing.total_budget == live.total_budget == Decimal("1333333")
    assert closing.net_amount == Decimal("1941500")
    assert closing.memo == "January"

    stored = api.get_closing(2025, 1, database_url=db_url)
    assert stored is not None
    assert stored.id == closing.id
    assert stored.closed_at == CLOSED_AT
    assert stored.total_expense == Decimal("1058500")
    assert [(d.category_id, d.type, d.amount, d.budget_amount) for d in stored.details] == [
        ("rent", EntryType.EXPENSE, Decimal("1000000"), Decimal("1333333")),
        ("food", EntryType.EXPENSE, Decimal("58500"), Decimal("333333")),
        ("salary", EntryType.INCOME, Decimal("3000000"), None),
    ]
    assert [d.category_name for d in stored.details] == ["Rent", "Food", "Salary"]


def test_closed_at_keeps_its_timezone_through_the_store(
    db_url: str, ledger: dict[str, str]
) -> None:
    closing = api.close_month(2025, 1, database_url=db_url)
    assert closing.closed_at.tzinfo is not None

    stored = api.get_closing(2025, 1, database_url=db_url)
    assert stored is not None
    assert stored.closed_at == closing.closed_at
    assert stored.closed_at.utcoffset() == timedelta(0)


def test_naive_close_time_is_taken_as_utc(db_url: str, ledger: dict[str, str]) -> None:
    api.close_month(2025, 1, database_url=db_url, now=datetime(2025, 2, 1, 9, 30))
    assert api.get_closing(2025, 1, database_url=db_url).closed_at == CLOSED_AT


def test_closing_uses_the_current_rate(db_url: str, ledger: dict[str, str]) -> None:
    api.set_exchange_rate("400", database_url=db_url)
    closing = api.close_month(2025, 1, database_url=db_url, now=CLOSED_AT)
    assert closing.total_expense == Decimal("1060000")


def test_closing_twice_is_refused(db_url: str, ledger: dict[str, str]) -> None:
    first = api.close_month(2025, 1, database_url=db_url, now=CLOSED_AT)
    with pytest.raises(PreconditionError) as excinfo:
        api.close_month(2025, 1, database_url=db_url)
    assert (excinfo.value.year, excinfo.value.month) == (2025, 1)

    history = api.closing_history(database_url=db_url)
    assert [c.id for c in history] == [first.id]


def test_closing_a_month_without_activity_is_refused(db_url: str, ledger: dict[str, str]) -> None:
    # February has a budget but no transactions
    with pytest.raises(PreconditionError):
        api.close_month(2025, 2, database_url=db_url)
    assert api.get_closing(2025, 2, database_url=db_url) is None


def test_excluded_only_month_counts_as_empty(db_url: str) -> None:
    seed_categories(database_url=db_url, categories={"food": EntryType.EXPENSE})
    seed_transactions(
        database_url=db_url,
        rows=[
            dict(
                type="expense",
                amount="9000",
                category_id="food",
                date=date(2025, 6, 5),
                include_in_stats=False,
            )
        ],
    )
    with pytest.raises(PreconditionError):
        api.close_month(2025, 6, database_url=db_url)


# ---- Reopen ----------------------------------------------------------------------


def test_reopen_removes_the_snapshot(db_url: str, ledger: dict[str, str]) -> None:
    api.close_month(2025, 1, database_url=db_url, now=CLOSED_AT)
    api.reopen_month(2025, 1, database_url=db_url)

    assert api.get_closing(2025, 1, database_url=db_url) is None
    status = api.month_status(2025, 1, database_url=db_url)
    assert isinstance(status, OpenMonth)
    assert not status.is_closed

    # closable again after reopening
    again = api.close_month(2025, 1, database_url=db_url, now=CLOSED_AT)
    assert api.get_closing(2025, 1, database_url=db_url).id == again.id


def test_reopening_an_open_month_is_refused(db_url: str, ledger: dict[str, str]) -> None:
    with pytest.raises(PreconditionError):
        api.reopen_month(2025, 1, database_url=db_url)


# ---- Snapshot vs live ------------------------------------------------------------


def test_snapshot_is_frozen_while_live_totals_drift(db_url: str, ledger: dict[str, str]) -> None:
    api.close_month(2025, 1, database_url=db_url, now=CLOSED_AT)
    status = api.month_status(2025, 1, database_url=db_url)
    assert isinstance(status, ClosedMonth)
    assert not status.diverged

    # closed months do not lock their transactions
    with api.ledger_session(database_url=db_url) as store:
        store.update_transaction(ledger["krw_food"], amount="25000")
    api.set_exchange_rate("400", database_url=db_url)

    status = api.month_status(2025, 1, database_url=db_url)
    assert isinstance(status, ClosedMonth)
    assert status.diverged
    assert status.snapshot.total_expense == Decimal("1058500")
    assert status.live.total_expense == Decimal("1065000")

    # reopen + close refreshes the snapshot
    api.reopen_month(2025, 1, database_url=db_url)
    refreshed = api.close_month(2025, 1, database_url=db_url, now=CLOSED_AT)
    assert refreshed.total_expense == Decimal("1065000")
    status = api.month_status(2025, 1, database_url=db_url)
    assert isinstance(status, ClosedMonth)
    assert not status.diverged


def test_moving_a_transaction_between_categories_counts_as_drift(
    db_url: str, ledger: dict[str, str]
) -> None:
    api.close_month(2025, 1, database_url=db_url, now=CLOSED_AT)
    with api.ledger_session(database_url=db_url) as store:
        store.update_transaction(ledger["krw_food"], category_id="rent")

    status = api.month_status(2025, 1, database_url=db_url)
    assert isinstance(status, ClosedMonth)
    # totals are unchanged, only the per-category split moved
    assert status.live.total_expense == status.snapshot.total_expense
    assert status.diverged
    live = {(row.category_id, row.amount) for row in status.live.per_category}
    assert ("rent", Decimal("1020000")) in live


# ---- Atomicity -------------------------------------------------------------------


def test_failed_write_leaves_nothing_behind(
    db_url: str, ledger: dict[str, str], monkeypatch: pytest.MonkeyPatch
) -> None:
    original = SqlLedgerStore.write_closing

    def _write_then_fail(self: SqlLedgerStore, closing) -> None:
        original(self, closing)
        raise OperationalError("INSERT INTO hl_monthly_closing_details", {}, Exception("disk I/O"))

    monkeypatch.setattr(SqlLedgerStore, "write_closing", _write_then_fail)

    with pytest.raises(LedgerIntegrityError) as excinfo:
        api.close_month(2025, 1, database_url=db_url)
    assert isinstance(excinfo.value.__cause__, OperationalError)

    assert api.get_closing(2025, 1, database_url=db_url) is None
    assert isinstance(api.month_status(2025, 1, database_url=db_url), OpenMonth)


def test_duplicate_closing_row_is_rolled_back(
    db_url: str, ledger: dict[str, str], monkeypatch: pytest.MonkeyPatch
) -> None:
    first = api.close_month(2025, 1, database_url=db_url, now=CLOSED_AT)

    # Skip the state check so the unique (year, month) constraint fires.
    with monkeypatch.context() as m:
        m.setattr(SqlLedgerStore, "get_closing", lambda self, year, month: None)
        with pytest.raises(LedgerIntegrityError):
            api.close_month(2025, 1, database_url=db_url)

    history = api.closing_history(database_url=db_url)
    assert [c.id for c in history] == [first.id]
    assert len(history[0].details) == 3


# ---- History and navigation --------------------------------------------------------


def test_closing_history_is_newest_first_and_limited(db_url: str) -> None:
    seed_categories(database_url=db_url, categories={"food": EntryType.EXPENSE})
    seed_transactions(
        database_url=db_url,
        rows=[
            dict(type="expense", amount="1000", category_id="food", date=date(y, m, 5))
            for y, m in [(2024, 11), (2024, 12), (2025, 1), (2025, 2)]
        ],
    )
    for y, m in [(2025, 1), (2024, 11), (2025, 2), (2024, 12)]:
        api.close_month(y, m, database_url=db_url, now=CLOSED_AT)

    history = api.closing_history(3, database_url=db_url)
    assert [(c.year, c.month) for c in history] == [(2025, 2), (2025, 1), (2024, 12)]
    assert len(api.closing_history(database_url=db_url)) == 4

    with pytest.raises(ValueError):
        api.closing_history(0, database_url=db_url)


def test_months_with_activity(db_url: str, ledger: dict[str, str]) -> None:
    assert api.months_with_activity(2025, database_url=db_url) == {1, 3}
    assert api.months_with_activity(2024, database_url=db_url) == set()

    api.close_month(2025, 1, database_url=db_url, now=CLOSED_AT)
    assert api.months_with_activity(2025, database_url=db_url) == {1, 3}


def test_engine_works_against_an_in_memory_store() -> None:
    class _Store:
        def __init__(self) -> None:
            self.settings = {"aed_to_krw_rate": "10"}

        def query_transactions(self, start, end, *, include_in_stats_only=True):
            return [
                Transaction(
                    id="t",
                    type=EntryType.EXPENSE,
                    amount=Decimal("3"),
                    currency=Currency.AED,
                    category_id="food",
                    date=start,
                )
            ]

        def query_budget_items(self, *, active_only=True):
            return []

        def get_setting(self, key):
            return self.settings.get(key)

    result = aggregate_with_store(_Store(), 2025, 4)  # type: ignore[arg-type]
    assert result.total_expense == Decimal("30")
    assert result.per_category[0].category_name == "food"
