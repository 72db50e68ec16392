# ruff: noqa: I001
"""CLI for the ``household_ledger`` package.

A Typer console interface over :mod:`household_ledger.api`. Environment
variables (notably ``DATABASE_URL``) are loaded from a local ``.env`` using
``python-dotenv`` before any command runs; every command also accepts
``--database-url`` to override it.

Ledger failures (:class:`~household_ledger.errors.LedgerError`) are printed to
stderr and turn into exit status 1. Nothing is retried automatically.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import api
from .closing import DEFAULT_HISTORY_LIMIT
from .currency import format_amount
from .errors import LedgerError
from .logging_setup import configure_logging
from .models import (
    REPORTING_CURRENCY,
    AggregationResult,
    BudgetItem,
    BudgetType,
    ClosedMonth,
    ClosingExport,
    Currency,
    EntryType,
)

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Household ledger: monthly aggregation, budgets and month-end closing. "
        "Loads DATABASE_URL from a local .env before running."
    ),
)

YearArg = Annotated[int, typer.Argument(min=1900, max=9999, help="Calendar year, e.g. 2025.")]
MonthArg = Annotated[int, typer.Argument(min=1, max=12, help="Calendar month, 1-12.")]
DatabaseUrlOpt = Annotated[
    str | None,
    typer.Option("--database-url", help="Override DATABASE_URL (falls back to env var)."),
]


# ---- Small module-level helpers used by CLI commands -------------------------


def _label(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def _krw(value: Decimal | None) -> str:
    if value is None:
        return "-"
    sign = "-" if value < 0 else ""
    return sign + format_amount(value, REPORTING_CURRENCY)


def _format_closed_at(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


def _fail(err: Exception) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {escape(str(err))}")
    return typer.Exit(1)


def _print_summary(result: AggregationResult) -> None:
    console.print(f"Income:  {_krw(result.total_income)}")
    console.print(f"Expense: {_krw(result.total_expense)}")
    console.print(f"Net:     {_krw(result.net_amount)}")
    console.print(f"Budget:  {_krw(result.total_budget)}")
    usage = api.budget_usage_rate(result)
    if usage is not None:
        console.print(f"Budget used: {usage}%")


# ---- Commands ------------------------------------------------------------------


@app.command("init-db")
def init_db_cmd(database_url: DatabaseUrlOpt = None) -> None:
    """Create any missing ledger tables (local SQLite use; Postgres uses Alembic)."""

    from db.client import create_schema

    try:
        create_schema(database_url=database_url)
    except RuntimeError as e:
        raise _fail(e) from e
    console.print("[green]Ledger schema is ready.[/green]")


# negative rates must reach the parser instead of being read as options
@app.command("set-rate", context_settings={"ignore_unknown_options": True})
def set_rate_cmd(
    rate: Annotated[str, typer.Argument(help="KRW per 1 AED, e.g. 385 or 372.5.")],
    database_url: DatabaseUrlOpt = None,
) -> None:
    """Store the AED->KRW exchange rate used by every aggregation."""

    try:
        stored = api.set_exchange_rate(rate, database_url=database_url)
    except (LedgerError, RuntimeError) as e:
        raise _fail(e) from e
    console.print(f"1 AED = {stored} KRW")


@app.command("show-rate")
def show_rate_cmd(database_url: DatabaseUrlOpt = None) -> None:
    """Print the current AED->KRW exchange rate (385 when never set)."""

    try:
        rate = api.get_exchange_rate(database_url=database_url)
    except (LedgerError, RuntimeError) as e:
        raise _fail(e) from e
    console.print(f"1 AED = {rate} KRW")


@app.command("add-category")
def add_category_cmd(
    name: Annotated[str, typer.Argument(help="Display name, e.g. Groceries.")],
    kind: Annotated[EntryType, typer.Option("--type", help="income or expense.")],
    category_id: Annotated[
        str | None, typer.Option("--id", help="Explicit id (generated when omitted).")
    ] = None,
    database_url: DatabaseUrlOpt = None,
) -> None:
    """Create a category that transactions and budget items can link to."""

    try:
        new_id = api.add_category(name, kind, id=category_id, database_url=database_url)
    except (LedgerError, ValueError, RuntimeError) as e:
        raise _fail(e) from e
    console.print(f"Added {kind.value} category {escape(name.strip())} ({new_id})")


@app.command("add-transaction")
def add_transaction_cmd(
    kind: Annotated[EntryType, typer.Option("--type", help="income or expense.")],
    amount: Annotated[str, typer.Option(help="Non-negative amount in --currency.")],
    category_id: Annotated[str, typer.Option("--category", help="Category id.")],
    on: Annotated[
        datetime, typer.Option("--date", formats=["%Y-%m-%d"], help="Booking date, YYYY-MM-DD.")
    ],
    currency: Annotated[Currency, typer.Option()] = Currency.KRW,
    exclude_from_stats: Annotated[
        bool, typer.Option("--exclude-from-stats", help="Keep it out of monthly totals.")
    ] = False,
    tag: Annotated[str, typer.Option()] = "",
    memo: Annotated[str | None, typer.Option()] = None,
    database_url: DatabaseUrlOpt = None,
) -> None:
    """Record an income or expense transaction."""

    try:
        new_id = api.add_transaction(
            type=kind,
            amount=amount,
            category_id=category_id,
            date=on.date(),
            currency=currency,
            include_in_stats=not exclude_from_stats,
            tag=tag,
            memo=memo,
            database_url=database_url,
        )
    except (LedgerError, ValueError, RuntimeError) as e:
        raise _fail(e) from e
    console.print(
        f"Added {kind.value} {escape(amount)} {currency.value} on {on:%Y-%m-%d} ({new_id})"
    )


@app.command("add-budget-item")
def add_budget_item_cmd(
    name: Annotated[str, typer.Argument(help="Display name, e.g. Rent.")],
    budget_type: Annotated[BudgetType, typer.Option("--type", help="How the amount recurs.")],
    amount: Annotated[str, typer.Option(help="Base amount in --currency.")],
    currency: Annotated[Currency, typer.Option()] = Currency.KRW,
    categories: Annotated[
        list[str] | None, typer.Option("--category", help="Linked category id (repeatable).")
    ] = None,
    valid_from: Annotated[
        datetime | None,
        typer.Option("--from", formats=["%Y-%m-%d"], help="First day (distributed only)."),
    ] = None,
    valid_to: Annotated[
        datetime | None,
        typer.Option("--to", formats=["%Y-%m-%d"], help="Last day (distributed only)."),
    ] = None,
    item_id: Annotated[
        str | None, typer.Option("--id", help="Replace the item with this id.")
    ] = None,
    database_url: DatabaseUrlOpt = None,
) -> None:
    """Create or replace a budget item. Invalid definitions are rejected."""

    try:
        item = BudgetItem(
            id=item_id or str(uuid.uuid4()),
            name=name,
            budget_type=budget_type,
            base_amount=Decimal(amount),
            currency=currency,
            category_ids=frozenset(categories or ()),
            valid_from=valid_from.date() if valid_from else None,
            valid_to=valid_to.date() if valid_to else None,
        )
        saved = api.save_budget_item(item, database_url=database_url)
    except InvalidOperation as e:
        raise _fail(ValueError(f"Invalid amount: {amount!r}")) from e
    except (LedgerError, ValueError, RuntimeError) as e:
        raise _fail(e) from e
    console.print(f"Saved budget item {escape(name.strip())} ({saved})")


@app.command("aggregate")
def aggregate_cmd(year: YearArg, month: MonthArg, database_url: DatabaseUrlOpt = None) -> None:
    """Show live totals and per-category amounts for a month."""

    try:
        result = api.aggregate_month(year, month, database_url=database_url)
    except (LedgerError, RuntimeError) as e:
        raise _fail(e) from e

    table = Table(title=f"{_label(year, month)} (1 AED = {result.rate} KRW)")
    table.add_column("Category")
    table.add_column("Type")
    table.add_column("Amount", justify="right")
    table.add_column("Budget", justify="right")
    for row in result.per_category:
        table.add_row(
            escape(row.category_name), row.type.value, _krw(row.amount), _krw(row.budget_amount)
        )
    if result.per_category:
        console.print(table)
    else:
        console.print(f"No transactions in {_label(year, month)}.")
    _print_summary(result)


@app.command("obligations")
def obligations_cmd(year: YearArg, month: MonthArg, database_url: DatabaseUrlOpt = None) -> None:
    """List what each active budget item contributes to a month."""

    from .currency import normalize
    from .settings import get_exchange_rate

    try:
        with api.ledger_session(database_url=database_url) as store:
            rate = get_exchange_rate(store)
            items = store.query_budget_items(active_only=True)
            rows = [(item, api.compute_monthly_obligation(item, year, month)) for item in items]
    except (LedgerError, RuntimeError) as e:
        raise _fail(e) from e

    table = Table(title=f"Budget obligations for {_label(year, month)}")
    table.add_column("Item")
    table.add_column("Type")
    table.add_column("Amount", justify="right")
    table.add_column("KRW", justify="right")
    for item, obligation in rows:
        if obligation is None:
            continue
        table.add_row(
            escape(item.name),
            item.budget_type.value,
            format_amount(obligation, item.currency),
            _krw(normalize(obligation, item.currency, rate)),
        )
    console.print(table)


@app.command("status")
def status_cmd(year: YearArg, month: MonthArg, database_url: DatabaseUrlOpt = None) -> None:
    """Report whether a month is open or closed, and whether it drifted since closing."""

    try:
        status = api.month_status(year, month, database_url=database_url)
    except (LedgerError, RuntimeError) as e:
        raise _fail(e) from e

    label = _label(year, month)
    if not isinstance(status, ClosedMonth):
        console.print(f"{label}: open")
        _print_summary(status.live)
        return

    console.print(f"{label}: closed at {_format_closed_at(status.snapshot.closed_at)}")
    if status.diverged:
        console.print(
            "[yellow]Snapshot is out of date: transactions changed after closing.[/yellow]"
        )
        console.print(
            f"Snapshot income {_krw(status.snapshot.total_income)}, "
            f"live {_krw(status.live.total_income)}"
        )
        console.print(
            f"Snapshot expense {_krw(status.snapshot.total_expense)}, "
            f"live {_krw(status.live.total_expense)}"
        )
    else:
        console.print("Snapshot matches live totals.")


@app.command("close")
def close_cmd(
    year: YearArg,
    month: MonthArg,
    memo: Annotated[str | None, typer.Option(help="Optional note stored with the closing.")] = None,
    database_url: DatabaseUrlOpt = None,
) -> None:
    """Freeze the month's totals and per-category amounts as a closing."""

    try:
        closing = api.close_month(year, month, memo, database_url=database_url)
    except (LedgerError, RuntimeError) as e:
        raise _fail(e) from e
    console.print(
        f"[green]Closed {_label(year, month)}[/green]: income {_krw(closing.total_income)}, "
        f"expense {_krw(closing.total_expense)}, net {_krw(closing.net_amount)}"
    )


@app.command("reopen")
def reopen_cmd(year: YearArg, month: MonthArg, database_url: DatabaseUrlOpt = None) -> None:
    """Discard the month's closing snapshot so it can be edited and closed again."""

    try:
        api.reopen_month(year, month, database_url=database_url)
    except (LedgerError, RuntimeError) as e:
        raise _fail(e) from e
    console.print(f"Reopened {_label(year, month)}.")


@app.command("history")
def history_cmd(
    limit: Annotated[
        int, typer.Option(min=1, help="Number of closings to show.")
    ] = DEFAULT_HISTORY_LIMIT,
    database_url: DatabaseUrlOpt = None,
) -> None:
    """List recent closings, newest month first."""

    try:
        closings = api.closing_history(limit, database_url=database_url)
    except (LedgerError, RuntimeError) as e:
        raise _fail(e) from e
    if not closings:
        console.print("No closed months yet.")
        return

    table = Table(title="Closing history")
    table.add_column("Month")
    table.add_column("Income", justify="right")
    table.add_column("Expense", justify="right")
    table.add_column("Net", justify="right")
    table.add_column("Memo")
    for c in closings:
        table.add_row(
            _label(c.year, c.month),
            _krw(c.total_income),
            _krw(c.total_expense),
            _krw(c.net_amount),
            escape(c.memo or ""),
        )
    console.print(table)


@app.command("show-closing")
def show_closing_cmd(
    year: YearArg,
    month: MonthArg,
    as_json: Annotated[bool, typer.Option("--json", help="Print the closing as JSON.")] = False,
    database_url: DatabaseUrlOpt = None,
) -> None:
    """Print the frozen snapshot of a closed month."""

    try:
        closing = api.get_closing(year, month, database_url=database_url)
    except (LedgerError, RuntimeError) as e:
        raise _fail(e) from e
    if closing is None:
        raise _fail(LookupError(f"{_label(year, month)} is not closed"))

    if as_json:
        # plain echo keeps the JSON free of console markup and wrapping
        typer.echo(ClosingExport.from_closing(closing).model_dump_json(indent=2))
        return

    table = Table(title=f"Closing {_label(year, month)}")
    table.add_column("Category")
    table.add_column("Type")
    table.add_column("Amount", justify="right")
    table.add_column("Budget", justify="right")
    for d in closing.details:
        table.add_row(escape(d.category_name), d.type.value, _krw(d.amount), _krw(d.budget_amount))
    console.print(table)
    console.print(f"Income:  {_krw(closing.total_income)}")
    console.print(f"Expense: {_krw(closing.total_expense)}")
    console.print(f"Net:     {_krw(closing.net_amount)}")
    console.print(f"Budget:  {_krw(closing.total_budget)}")
    console.print(f"Closed at {_format_closed_at(closing.closed_at)}")
    if closing.memo:
        console.print(f"Memo: {escape(closing.memo)}")


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging."""

    # Load environment from .env in CWD (override=False to keep existing env)
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m household_ledger.cli`
    app()
