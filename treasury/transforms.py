import json
from datetime import datetime
from decimal import Decimal, InvalidOperation
from functools import reduce
from typing import Dict, Iterable, Optional, Tuple

from treasury.domain import Account, Currency, Transaction
from treasury.errors import SeedError
from treasury.rates import RateTable


def as_instant(ts: datetime) -> datetime:
    """Aware view of ``ts`` for ordering; naive values are read as local time."""
    return ts.astimezone()


def _account(raw: dict) -> Account:
    return Account(
        id=str(raw["id"]),
        name=raw["name"],
        currency=Currency(raw["currency"]),
        balance=Decimal(str(raw["balance"])),
    )


def _transaction(raw: dict) -> Transaction:
    return Transaction(
        id=str(raw["id"]),
        from_account=raw["from_account"],
        to_account=raw["to_account"],
        amount=Decimal(str(raw["amount"])),
        currency=Currency(raw["currency"]),
        fx_rate=Decimal(str(raw["fx_rate"])),
        timestamp=datetime.fromisoformat(raw["timestamp"]),
        is_future=bool(raw.get("is_future", False)),
        note=raw.get("note", ""),
    )


def load_seed(
    path: str,
) -> Tuple[
    Tuple[Account, ...],
    Tuple[Transaction, ...],
    RateTable,
]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f, parse_float=Decimal)

    try:
        accounts = tuple(_account(a) for a in data["accounts"])
        transactions = tuple(_transaction(t) for t in data["transactions"])
        rates = RateTable.from_codes(data["fx_rates"])
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        raise SeedError(f"Invalid seed file {path}: {e}") from e

    return accounts, transactions, rates


def currency_totals(accounts: Iterable[Account]) -> Dict[Currency, Tuple[Decimal, int]]:
    """Total balance and account count per currency, in first-seen order."""
    def step(acc: Dict[Currency, Tuple[Decimal, int]], a: Account):
        total, count = acc.get(a.currency, (Decimal(0), 0))
        return {**acc, a.currency: (total + a.balance, count + 1)}

    return reduce(step, accounts, {})


def destination_choices(accounts: Iterable[Account], source_id: Optional[str]) -> Tuple[Account, ...]:
    return tuple(a for a in accounts if a.id != source_id)
