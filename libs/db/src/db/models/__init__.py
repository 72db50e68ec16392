"""Shared SQLAlchemy models registry for the household ledger database.

Currently includes the ledger tables used by ``household_ledger``.
"""

from .ledger import (
    Base,
    HlAccount,
    HlBudgetItem,
    HlBudgetItemCategory,
    HlCategory,
    HlMonthlyClosing,
    HlMonthlyClosingDetail,
    HlSetting,
    HlTransaction,
)

__all__ = [
    "Base",
    "HlAccount",
    "HlBudgetItem",
    "HlBudgetItemCategory",
    "HlCategory",
    "HlMonthlyClosing",
    "HlMonthlyClosingDetail",
    "HlSetting",
    "HlTransaction",
]
