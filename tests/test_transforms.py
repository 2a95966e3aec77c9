import json
import os
from datetime import datetime
from decimal import Decimal

import pytest

from treasury.domain import Account, Currency
from treasury.errors import SeedError
from treasury.transforms import currency_totals, destination_choices, load_seed

SEED_PATH = os.path.join(os.path.dirname(__file__), "..", "data", "seed.json")


def test_load_seed():
    accounts, transactions, rates = load_seed(SEED_PATH)

    assert len(accounts) == 10
    assert len(transactions) == 5
    assert len(rates) == 6

    usd_1 = next(a for a in accounts if a.name == "Bank_USD_1")
    assert usd_1.currency == Currency.USD
    assert usd_1.balance == Decimal("125000")

    first = transactions[0]
    assert first.fx_rate == Decimal("150.5")
    assert first.timestamp == datetime(2024, 12, 15, 10, 30)
    assert [t.is_future for t in transactions] == [False, False, False, True, True]
    assert rates.lookup(Currency.NGN, Currency.USD).get_or_else(None) == Decimal("0.0012")


def test_load_seed_keeps_decimal_precision():
    _, _, rates = load_seed(SEED_PATH)
    assert rates.lookup(Currency.KES, Currency.USD).get_or_else(None) == Decimal("0.0067")


def test_load_seed_rejects_bad_currency(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps({
        "accounts": [{"id": "1", "name": "Euro", "currency": "EUR", "balance": 1}],
        "transactions": [],
        "fx_rates": {},
    }))
    with pytest.raises(SeedError):
        load_seed(str(path))


def write_seed(tmp_path, accounts=None, fx_rates=None):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps({
        "accounts": accounts or [{"id": "1", "name": "Bank_USD_1", "currency": "USD", "balance": 1}],
        "transactions": [],
        "fx_rates": fx_rates or {},
    }))
    return str(path)


def test_load_seed_rejects_non_numeric_balance(tmp_path):
    path = write_seed(tmp_path, accounts=[{"id": "1", "name": "Bank_USD_1", "currency": "USD", "balance": "abc"}])
    with pytest.raises(SeedError):
        load_seed(path)


def test_load_seed_rejects_non_numeric_rate(tmp_path):
    path = write_seed(tmp_path, fx_rates={"USD-KES": "x"})
    with pytest.raises(SeedError):
        load_seed(path)


def test_load_seed_rejects_missing_section(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps({"accounts": [], "transactions": []}))
    with pytest.raises(SeedError):
        load_seed(str(path))


def test_currency_totals():
    accounts = (
        Account("1", "Mpesa_KES_1", Currency.KES, Decimal("2450000")),
        Account("3", "Bank_USD_1", Currency.USD, Decimal("125000")),
        Account("2", "Mpesa_KES_2", Currency.KES, Decimal("1890000")),
    )
    totals = currency_totals(accounts)
    assert list(totals) == [Currency.KES, Currency.USD]
    assert totals[Currency.KES] == (Decimal("4340000"), 2)
    assert totals[Currency.USD] == (Decimal("125000"), 1)


def test_currency_totals_empty():
    assert currency_totals(()) == {}


def test_destination_choices_drop_the_source():
    accounts = (
        Account("1", "Mpesa_KES_1", Currency.KES, Decimal("1")),
        Account("3", "Bank_USD_1", Currency.USD, Decimal("1")),
        Account("4", "Bank_USD_2", Currency.USD, Decimal("1")),
    )
    assert [a.id for a in destination_choices(accounts, "3")] == ["1", "4"]
    assert [a.id for a in destination_choices(accounts, None)] == ["1", "3", "4"]
