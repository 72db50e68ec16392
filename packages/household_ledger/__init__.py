"""Public interface for the ``household_ledger`` package.

This module exposes the package's API functions, domain models and error
types as the stable import surface. There is no runtime logic here, only
symbol re-exports.
"""

from .api import (
    aggregate_month,
    budget_usage_rate,
    close_month,
    closing_history,
    compute_monthly_obligation,
    get_closing,
    get_exchange_rate,
    ledger_session,
    month_status,
    months_with_activity,
    reopen_month,
    set_exchange_rate,
)
from .errors import (
    ConfigurationError,
    LedgerError,
    LedgerIntegrityError,
    PreconditionError,
)
from .models import (
    REPORTING_CURRENCY,
    AggregationResult,
    BudgetItem,
    BudgetType,
    CategoryTotal,
    ClosedMonth,
    ClosingDetail,
    ClosingExport,
    Currency,
    EntryType,
    MonthlyClosing,
    MonthStatus,
    OpenMonth,
    Transaction,
)

__all__ = [
    # API
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
    "set_exchange_rate",
    # Errors
    "LedgerError",
    "ConfigurationError",
    "PreconditionError",
    "LedgerIntegrityError",
    # Models / types
    "REPORTING_CURRENCY",
    "AggregationResult",
    "BudgetItem",
    "BudgetType",
    "CategoryTotal",
    "ClosedMonth",
    "ClosingDetail",
    "ClosingExport",
    "Currency",
    "EntryType",
    "MonthlyClosing",
    "MonthStatus",
    "OpenMonth",
    "Transaction",
]
