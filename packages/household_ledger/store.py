"""Data-access interface consumed by the closing engine.

The engine only talks to storage through this protocol. The SQLAlchemy
implementation lives in ``household_ledger.persistence``; tests may supply any
object with the same methods.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Protocol

from .models import BudgetItem, MonthlyClosing, Transaction


class LedgerStore(Protocol):
    def query_transactions(
        self, start: date, end: date, *, include_in_stats_only: bool = True
    ) -> Sequence[Transaction]:
        """Transactions with ``start <= date < end``."""
        ...

    def query_budget_items(self, *, active_only: bool = True) -> Sequence[BudgetItem]: ...

    def get_setting(self, key: str) -> str | None: ...

    def set_setting(self, key: str, value: str) -> None: ...

    def get_closing(self, year: int, month: int) -> MonthlyClosing | None: ...

    def write_closing(self, closing: MonthlyClosing) -> None:
        """Persist the header and all detail rows as one unit."""
        ...

    def delete_closing(self, closing_id: str) -> None:
        """Remove the header; detail rows go with it."""
        ...

    def list_closings(self, limit: int) -> Sequence[MonthlyClosing]: ...

    def months_with_activity(self, year: int) -> set[int]: ...


__all__ = ["LedgerStore"]
