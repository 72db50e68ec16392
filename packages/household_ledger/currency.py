"""Reporting-currency normalization.

A single AED->KRW rate applies to every amount being evaluated, historical or
current. Callers read the rate once per operation and pass it explicitly;
there is no module-level rate and no rate history.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from .errors import ConfigurationError
from .models import REPORTING_CURRENCY, Currency

EXCHANGE_RATE_SETTING = "aed_to_krw_rate"
DEFAULT_AED_TO_KRW_RATE = Decimal("385")


def to_decimal(raw: Any) -> Decimal:
    """Convert ints, strings and floats to ``Decimal`` without binary noise."""

    if isinstance(raw, Decimal):
        return raw
    if isinstance(raw, bool):
        raise TypeError("booleans are not amounts")
    return Decimal(str(raw))


def parse_currency(raw: str | Currency) -> Currency:
    try:
        return Currency(str(raw).strip().upper())
    except ValueError:
        raise ConfigurationError(f"Unsupported currency: {raw!r}") from None


def parse_rate(raw: Any) -> Decimal:
    """Validate an AED->KRW rate. It must be a finite number greater than zero."""

    try:
        rate = to_decimal(raw.strip() if isinstance(raw, str) else raw)
    except (InvalidOperation, ValueError, TypeError):
        raise ConfigurationError(f"Exchange rate is not a number: {raw!r}") from None
    if not rate.is_finite() or rate <= 0:
        raise ConfigurationError(f"Exchange rate must be greater than zero, got {raw!r}")
    return rate


def normalize(amount: Any, currency: str | Currency, rate: Decimal) -> Decimal:
    """Return ``amount`` expressed in the reporting currency.

    Reporting-currency amounts pass through unchanged; AED amounts are
    multiplied by ``rate``. No rounding is applied here.
    """

    value = to_decimal(amount)
    if parse_currency(currency) == REPORTING_CURRENCY:
        return value
    return value * rate


def round_half_up(value: Decimal, places: int = 0) -> Decimal:
    exp = Decimal(1).scaleb(-places)
    return value.quantize(exp, rounding=ROUND_HALF_UP)


def format_amount(amount: Any, currency: str | Currency) -> str:
    """Human display: ``"1,234,567 원"`` or ``"12.50 AED"`` / ``"12 AED"``.

    KRW shows whole units. AED shows two decimals only when the value has a
    fractional part. The sign is dropped; callers decide how to present it.
    """

    value = abs(to_decimal(amount))
    if parse_currency(currency) == Currency.KRW:
        return f"{round_half_up(value):,.0f} 원"
    if value == value.to_integral_value():
        return f"{value:,.0f} AED"
    return f"{round_half_up(value, 2):,.2f} AED"


__all__ = [
    "DEFAULT_AED_TO_KRW_RATE",
    "EXCHANGE_RATE_SETTING",
    "format_amount",
    "normalize",
    "parse_currency",
    "parse_rate",
    "round_half_up",
    "to_decimal",
]
