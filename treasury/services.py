import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, Iterable, Optional, Tuple

from treasury.config import Settings
from treasury.domain import Account, Currency, Transaction, TransactionFilter, TransferRequest
from treasury.errors import TransferError, TransferErrorKind
from treasury.history import query_transactions
from treasury.processor import process
from treasury.rates import RateTable
from treasury.store import AccountStore, TransactionLog
from treasury.transforms import currency_totals, load_seed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferOutcome:
    success: bool
    message: str
    transaction: Optional[Transaction] = None
    error: Optional[TransferError] = None


class TreasuryService:
    """Facade the dashboard talks to.

    Owns the account store, transaction log and rate table for one session.
    ``submit_transfer`` waits out the simulated latency first and only then
    hands the request to the processor, so validation always sees the
    balances as they are at settlement time.
    """

    def __init__(
        self,
        accounts: Iterable[Account],
        rates: RateTable,
        transactions: Iterable[Transaction] = (),
        *,
        delay_seconds: float = 0.0,
        timeout_seconds: Optional[float] = None,
        strict_fx: bool = False,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = AccountStore(accounts)
        self.log = TransactionLog(transactions)
        self.rates = rates
        self.delay_seconds = delay_seconds
        self.timeout_seconds = timeout_seconds
        self.strict_fx = strict_fx
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "TreasuryService":
        accounts, transactions, rates = load_seed(settings.seed_path)
        logger.info(
            "Loaded %d accounts, %d transactions, %d FX pairs from %s",
            len(accounts), len(transactions), len(rates), settings.seed_path,
        )
        return cls(
            accounts,
            rates,
            transactions,
            delay_seconds=settings.transfer_delay_seconds,
            timeout_seconds=settings.transfer_timeout_seconds,
            strict_fx=settings.strict_fx,
        )

    async def submit_transfer(self, request: TransferRequest) -> TransferOutcome:
        try:
            await asyncio.wait_for(asyncio.sleep(self.delay_seconds), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "Transfer %s -> %s timed out after %ss",
                request.source_account_id, request.destination_account_id, self.timeout_seconds,
            )
            error = TransferError(
                TransferErrorKind.TIMEOUT,
                "Transfer timed out. Please try again.",
                {"timeout_seconds": self.timeout_seconds},
            )
            return TransferOutcome(success=False, message=error.message, error=error)

        result = process(
            request, self.store, self.log, self.rates,
            strict_fx=self.strict_fx, clock=self.clock,
        )
        if result.is_left():
            error = result.get_error()
            return TransferOutcome(success=False, message=error.message, error=error)

        tx = result.get_or_else(None)
        if tx.is_future:
            message = f"Transfer scheduled for {tx.timestamp:%Y-%m-%d %H:%M}"
        else:
            message = "Transfer completed successfully"
        return TransferOutcome(success=True, message=message, transaction=tx)

    def get_accounts(self) -> Tuple[Account, ...]:
        return self.store.snapshot()

    def get_transactions(self, filters: TransactionFilter = TransactionFilter()) -> Tuple[Transaction, ...]:
        return query_transactions(self.log.entries(), filters)

    def portfolio_summary(self) -> Dict[Currency, Tuple[Decimal, int]]:
        return currency_totals(self.store.snapshot())
