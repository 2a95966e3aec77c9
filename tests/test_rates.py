from decimal import Decimal

import pytest

from treasury.domain import Currency
from treasury.errors import TransferErrorKind
from treasury.rates import RateTable, resolve_rate


def make_rates():
    return RateTable.from_codes({"USD-KES": Decimal("150.5"), "KES-USD": Decimal("0.0067")})


def test_lookup_is_directional():
    rates = make_rates()
    assert rates.lookup(Currency.USD, Currency.KES).get_or_else(None) == Decimal("150.5")
    assert rates.lookup(Currency.KES, Currency.USD).get_or_else(None) == Decimal("0.0067")
    assert rates.lookup(Currency.USD, Currency.NGN).is_none()
    assert len(rates) == 2


def test_same_currency_is_exact_parity():
    result = resolve_rate(make_rates(), Currency.USD, Currency.USD)
    assert result.get_or_else(None) == Decimal("1.0")


def test_unknown_pair_falls_back_to_parity(caplog):
    with caplog.at_level("WARNING", logger="treasury.rates"):
        result = resolve_rate(make_rates(), Currency.NGN, Currency.KES)
    assert result.get_or_else(None) == 1
    assert "falling back to parity" in caplog.text


def test_unknown_pair_rejected_in_strict_mode():
    result = resolve_rate(make_rates(), Currency.NGN, Currency.KES, strict=True)
    assert result.is_left()
    error = result.get_error()
    assert error.kind == TransferErrorKind.UNSUPPORTED_CURRENCY_PAIR
    assert error.details == {"from_currency": "NGN", "to_currency": "KES"}


def test_known_pair_ok_in_strict_mode():
    result = resolve_rate(make_rates(), Currency.USD, Currency.KES, strict=True)
    assert result.get_or_else(None) == Decimal("150.5")


def test_malformed_pairs_raise():
    with pytest.raises(ValueError):
        RateTable.from_codes({"USDKES": 1})
    with pytest.raises(ValueError):
        RateTable.from_codes({"USD-EUR": 1})
    with pytest.raises(ValueError):
        RateTable({(Currency.USD, Currency.KES): Decimal("0")})


def test_non_numeric_rate_raises_value_error():
    with pytest.raises(ValueError, match="not a number"):
        RateTable.from_codes({"USD-KES": "x"})
    with pytest.raises(ValueError):
        RateTable({(Currency.USD, Currency.KES): "fast"})
