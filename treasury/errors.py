from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class TransferErrorKind(str, Enum):
    ACCOUNT_NOT_FOUND = "account_not_found"
    SAME_ACCOUNT = "same_account"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    UNSUPPORTED_CURRENCY_PAIR = "unsupported_currency_pair"
    TIMEOUT = "timeout"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class TransferError:
    """A rejected transfer. Returned inside ``Left``, never raised."""

    kind: TransferErrorKind
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class SeedError(ValueError):
    """Raised when the seed file is missing fields or holds invalid values."""
