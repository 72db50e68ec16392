"""User settings kept in the ledger store (currently the AED->KRW rate)."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from .currency import DEFAULT_AED_TO_KRW_RATE, EXCHANGE_RATE_SETTING, parse_rate
from .logging_setup import get_logger
from .store import LedgerStore

logger = get_logger("household_ledger.settings")


def get_exchange_rate(store: LedgerStore) -> Decimal:
    """Return the configured rate, or the default 385 when unset.

    A stored value that is not a positive number raises
    :class:`~household_ledger.errors.ConfigurationError`.
    """

    raw = store.get_setting(EXCHANGE_RATE_SETTING)
    if raw is None or not raw.strip():
        return DEFAULT_AED_TO_KRW_RATE
    return parse_rate(raw)


def set_exchange_rate(store: LedgerStore, value: Any) -> Decimal:
    """Validate and store a new rate. Invalid values are rejected before writing."""

    rate = parse_rate(value)
    store.set_setting(EXCHANGE_RATE_SETTING, str(rate))
    logger.info("exchange rate set: 1 AED = %s KRW", rate)
    return rate


__all__ = ["get_exchange_rate", "set_exchange_rate"]
