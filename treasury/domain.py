from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class Currency(str, Enum):
    KES = "KES"
    USD = "USD"
    NGN = "NGN"


@dataclass(frozen=True)
class Account:
    id: str
    name: str
    currency: Currency
    balance: Decimal  # never negative after a committed transfer


@dataclass(frozen=True)
class Transaction:
    id: str
    from_account: str  # account name at transfer time, not id
    to_account: str
    amount: Decimal    # in the source currency
    currency: Currency
    fx_rate: Decimal
    timestamp: datetime
    is_future: bool = False
    note: str = ""

    @property
    def converted_amount(self) -> Decimal:
        return self.amount * self.fx_rate


@dataclass(frozen=True)
class TransferRequest:
    source_account_id: str
    destination_account_id: str
    amount: Union[str, int, float, Decimal, None]  # raw caller input
    note: str = ""
    future_instant: Optional[datetime] = None

    @property
    def is_future(self) -> bool:
        return self.future_instant is not None


@dataclass(frozen=True)
class TransactionFilter:
    account: Optional[str] = None       # account name
    currency: Optional[Currency] = None
    show_future: bool = True
