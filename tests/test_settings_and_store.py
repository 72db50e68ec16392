from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

import household_ledger.api as api
from household_ledger.currency import EXCHANGE_RATE_SETTING
from household_ledger.errors import ConfigurationError
from household_ledger.models import BudgetItem, BudgetType, Currency, EntryType
from tests.helpers.db import seed_budget_items, seed_categories, seed_transactions


# ---- Exchange rate setting -----------------------------------------------------


def test_rate_defaults_to_385_when_unset(db_url: str) -> None:
    assert api.get_exchange_rate(database_url=db_url) == Decimal("385")


def test_rate_round_trips_through_the_store(db_url: str) -> None:
    assert api.set_exchange_rate(" 372.5 ", database_url=db_url) == Decimal("372.5")
    assert api.get_exchange_rate(database_url=db_url) == Decimal("372.5")


@pytest.mark.parametrize("bad", ["0", "-3", "abc", ""])
def test_invalid_rate_is_rejected_before_writing(db_url: str, bad: str) -> None:
    api.set_exchange_rate("390", database_url=db_url)
    with pytest.raises(ConfigurationError):
        api.set_exchange_rate(bad, database_url=db_url)
    assert api.get_exchange_rate(database_url=db_url) == Decimal("390")


def test_corrupt_stored_rate_surfaces_as_configuration_error(db_url: str) -> None:
    with api.ledger_session(database_url=db_url) as store:
        store.set_setting(EXCHANGE_RATE_SETTING, "not-a-number")
    with pytest.raises(ConfigurationError):
        api.get_exchange_rate(database_url=db_url)
    with pytest.raises(ConfigurationError):
        api.aggregate_month(2025, 1, database_url=db_url)


def test_aggregation_reads_the_stored_rate(db_url: str) -> None:
    seed_categories(database_url=db_url, categories={"food": EntryType.EXPENSE})
    seed_transactions(
        database_url=db_url,
        rows=[
            dict(
                type="expense",
                amount="12.5",
                currency=Currency.AED,
                category_id="food",
                date=date(2025, 4, 2),
            )
        ],
    )
    assert api.aggregate_month(2025, 4, database_url=db_url).total_expense == Decimal("4812.5")
    api.set_exchange_rate("400", database_url=db_url)
    assert api.aggregate_month(2025, 4, database_url=db_url).total_expense == Decimal("5000")


# ---- Store round trips -----------------------------------------------------------


def test_budget_items_round_trip_with_category_links(db_url: str) -> None:
    seed_categories(
        database_url=db_url,
        categories={"food": EntryType.EXPENSE, "travel": EntryType.EXPENSE},
    )
    trip = BudgetItem(
        id="trip",
        name="  Summer trip ",
        budget_type=BudgetType.DISTRIBUTED,
        base_amount=Decimal("1200"),
        currency=Currency.AED,
        category_ids=frozenset({"food", "travel"}),
        group_name="Holidays",
        valid_from=date(2025, 6, 1),
        valid_to=date(2025, 8, 31),
    )
    seed_budget_items(database_url=db_url, items=[trip])

    with api.ledger_session(database_url=db_url) as store:
        (loaded,) = store.query_budget_items()
    assert loaded.name == "Summer trip"
    assert loaded.category_ids == frozenset({"food", "travel"})
    assert loaded.currency is Currency.AED
    assert loaded.base_amount == Decimal("1200")
    assert api.compute_monthly_obligation(loaded, 2025, 7) == Decimal("400")

    # re-saving replaces the links
    seed_budget_items(
        database_url=db_url,
        items=[
            BudgetItem(
                id="trip",
                name="Summer trip",
                budget_type=BudgetType.FIXED_MONTHLY,
                base_amount=Decimal("50"),
                category_ids=frozenset({"travel"}),
            )
        ],
    )
    with api.ledger_session(database_url=db_url) as store:
        (loaded,) = store.query_budget_items()
    assert loaded.budget_type is BudgetType.FIXED_MONTHLY
    assert loaded.category_ids == frozenset({"travel"})


def test_invalid_budget_item_is_rejected_at_save(db_url: str) -> None:
    broken = BudgetItem(
        id="broken",
        name="Broken",
        budget_type=BudgetType.DISTRIBUTED,
        base_amount=Decimal("100"),
        valid_from=date(2025, 5, 1),
    )
    with pytest.raises(ConfigurationError):
        seed_budget_items(database_url=db_url, items=[broken])
    with api.ledger_session(database_url=db_url) as store:
        assert store.query_budget_items(active_only=False) == []


def test_inactive_items_are_filtered_unless_requested(db_url: str) -> None:
    seed_budget_items(
        database_url=db_url,
        items=[
            BudgetItem(
                id="gym",
                name="Gym",
                budget_type=BudgetType.FIXED_MONTHLY,
                base_amount=Decimal("90000"),
            )
        ],
    )
    with api.ledger_session(database_url=db_url) as store:
        store.set_budget_item_active("gym", False)
    with api.ledger_session(database_url=db_url) as store:
        assert store.query_budget_items() == []
        assert [i.id for i in store.query_budget_items(active_only=False)] == ["gym"]


def test_query_transactions_is_half_open_and_filters_stats(db_url: str) -> None:
    seed_categories(database_url=db_url, categories={"food": EntryType.EXPENSE})
    seed_transactions(
        database_url=db_url,
        rows=[
            dict(type="expense", amount="1", category_id="food", date=date(2025, 1, 1)),
            dict(type="expense", amount="2", category_id="food", date=date(2025, 1, 31)),
            dict(type="expense", amount="4", category_id="food", date=date(2025, 2, 1)),
            dict(
                type="expense",
                amount="8",
                category_id="food",
                date=date(2025, 1, 9),
                include_in_stats=False,
                tag="reimbursed",
            ),
        ],
    )
    with api.ledger_session(database_url=db_url) as store:
        counted = store.query_transactions(date(2025, 1, 1), date(2025, 2, 1))
        everything = store.query_transactions(
            date(2025, 1, 1), date(2025, 2, 1), include_in_stats_only=False
        )
    assert [t.amount for t in counted] == [Decimal("1"), Decimal("2")]
    assert len(everything) == 3
    assert {t.tag for t in everything} == {"", "reimbursed"}
    assert all(t.category_name == "Food" for t in everything)


def test_negative_transaction_amount_is_rejected(db_url: str) -> None:
    seed_categories(database_url=db_url, categories={"food": EntryType.EXPENSE})
    with pytest.raises(ValueError):
        seed_transactions(
            database_url=db_url,
            rows=[dict(type="expense", amount="-5", category_id="food", date=date(2025, 1, 1))],
        )


def test_update_transaction_rejects_unknown_fields(db_url: str) -> None:
    seed_categories(database_url=db_url, categories={"food": EntryType.EXPENSE})
    (tx_id,) = seed_transactions(
        database_url=db_url,
        rows=[dict(type="expense", amount="5", category_id="food", date=date(2025, 1, 1))],
    )
    with pytest.raises(ValueError), api.ledger_session(database_url=db_url) as store:
        store.update_transaction(tx_id, created_at=date(2020, 1, 1))


def test_update_transaction_rejects_negative_amount(db_url: str) -> None:
    seed_categories(database_url=db_url, categories={"food": EntryType.EXPENSE})
    (tx_id,) = seed_transactions(
        database_url=db_url,
        rows=[dict(type="expense", amount="5", category_id="food", date=date(2025, 1, 1))],
    )
    with pytest.raises(ValueError, match="negative"), api.ledger_session(
        database_url=db_url
    ) as store:
        store.update_transaction(tx_id, amount="-5")

    with api.ledger_session(database_url=db_url) as store:
        (tx,) = store.query_transactions(date(2025, 1, 1), date(2025, 2, 1))
    assert tx.amount == Decimal("5")
