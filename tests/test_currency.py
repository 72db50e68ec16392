from __future__ import annotations

from decimal import Decimal

import pytest

from household_ledger.currency import (
    DEFAULT_AED_TO_KRW_RATE,
    format_amount,
    normalize,
    parse_currency,
    parse_rate,
    round_half_up,
)
from household_ledger.errors import ConfigurationError
from household_ledger.models import Currency

RATE = Decimal("385")


def test_krw_amounts_pass_through_unchanged() -> None:
    assert normalize(Decimal("48500"), Currency.KRW, RATE) == Decimal("48500")
    # any rate: KRW never depends on it
    assert normalize(Decimal("48500"), "KRW", Decimal("1000")) == Decimal("48500")


def test_aed_amounts_are_multiplied_by_rate() -> None:
    assert normalize(Decimal("100"), Currency.AED, RATE) == Decimal("38500")
    assert normalize("10.5", "aed", RATE) == Decimal("4042.5")


def test_normalize_does_not_round() -> None:
    assert normalize(Decimal("0.01"), Currency.AED, Decimal("372.55")) == Decimal("3.7255")


def test_float_input_has_no_binary_noise() -> None:
    assert normalize(0.1, Currency.AED, Decimal("10")) == Decimal("1.0")


def test_default_rate_is_385() -> None:
    assert DEFAULT_AED_TO_KRW_RATE == Decimal("385")


def test_parse_currency_is_case_insensitive_and_rejects_unknown() -> None:
    assert parse_currency(" aed ") is Currency.AED
    with pytest.raises(ConfigurationError):
        parse_currency("USD")


@pytest.mark.parametrize("raw", ["abc", "", "0", "-1", "NaN", "inf", None, True])
def test_parse_rate_rejects_non_positive_or_non_numeric(raw: object) -> None:
    with pytest.raises(ConfigurationError):
        parse_rate(raw)


def test_parse_rate_accepts_positive_numbers() -> None:
    assert parse_rate(" 372.5 ") == Decimal("372.5")
    assert parse_rate(400) == Decimal("400")


def test_configuration_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        parse_rate("zero")


def test_round_half_up_rounds_ties_away_from_zero() -> None:
    assert round_half_up(Decimal("2.5")) == Decimal("3")
    assert round_half_up(Decimal("3.5")) == Decimal("4")
    assert round_half_up(Decimal("333333.333")) == Decimal("333333")
    assert round_half_up(Decimal("1.005"), 2) == Decimal("1.01")


def test_format_amount_krw_whole_units_with_suffix() -> None:
    assert format_amount(Decimal("1234567"), Currency.KRW) == "1,234,567 원"
    assert format_amount(Decimal("999.5"), "KRW") == "1,000 원"
    assert format_amount(Decimal("-5000"), "KRW") == "5,000 원"


def test_format_amount_aed_decimals_only_when_fractional() -> None:
    assert format_amount(Decimal("12"), Currency.AED) == "12 AED"
    assert format_amount(Decimal("12.5"), Currency.AED) == "12.50 AED"
    assert format_amount(Decimal("1200.00"), Currency.AED) == "1,200 AED"
