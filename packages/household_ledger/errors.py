"""Exception types raised by the ledger engine.

All of them derive from :class:`LedgerError` so a UI or CLI boundary can catch
one type, show the message, and let the user retry. None of them is fatal to
the process.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for recoverable ledger failures."""


class ConfigurationError(LedgerError, ValueError):
    """Invalid user configuration: exchange rate or budget item definition."""


class PreconditionError(LedgerError):
    """A closing transition was requested from the wrong state."""

    def __init__(self, message: str, *, year: int, month: int) -> None:
        super().__init__(message)
        self.year = year
        self.month = month


class LedgerIntegrityError(LedgerError):
    """A multi-row write failed and was rolled back as a whole.

    The underlying database error is available as ``__cause__``.
    """


__all__ = [
    "ConfigurationError",
    "LedgerError",
    "LedgerIntegrityError",
    "PreconditionError",
]
