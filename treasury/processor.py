import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, NamedTuple
from uuid import uuid4

from treasury.domain import Account, Transaction, TransferRequest
from treasury.errors import TransferError, TransferErrorKind
from treasury.functional import Either, Left, Right, parse_amount
from treasury.rates import RateTable, resolve_rate
from treasury.store import AccountStore, TransactionLog

logger = logging.getLogger(__name__)


class ValidatedTransfer(NamedTuple):
    source: Account
    destination: Account
    amount: Decimal


def new_transaction_id() -> str:
    return f"tx_{uuid4().hex}"


def validate_transfer(
    request: TransferRequest, store: AccountStore
) -> Either[TransferError, ValidatedTransfer]:
    """Run the transfer rules in order; the first failing rule wins."""
    source = store.get(request.source_account_id).get_or_else(None)
    destination = store.get(request.destination_account_id).get_or_else(None)
    if source is None or destination is None:
        missing = request.source_account_id if source is None else request.destination_account_id
        return Left(TransferError(
            TransferErrorKind.ACCOUNT_NOT_FOUND,
            f"Account with ID {missing} does not exist",
            {"account_id": missing},
        ))

    if source.id == destination.id:
        return Left(TransferError(
            TransferErrorKind.SAME_ACCOUNT,
            "Source and destination accounts must be different",
            {"account_id": source.id},
        ))

    parsed = parse_amount(request.amount)
    if parsed.is_left():
        return parsed
    amount = parsed.get_or_else(Decimal(0))

    # compared in the source currency; FX only affects the credit side
    if source.balance < amount:
        return Left(TransferError(
            TransferErrorKind.INSUFFICIENT_BALANCE,
            "Insufficient balance in source account",
            {"account_id": source.id, "balance": source.balance, "amount": amount},
        ))

    return Right(ValidatedTransfer(source, destination, amount))


def _settle(
    request: TransferRequest,
    store: AccountStore,
    log: TransactionLog,
    rates: RateTable,
    strict_fx: bool,
    clock: Callable[[], datetime],
    id_factory: Callable[[], str],
) -> Either[TransferError, Transaction]:
    with store.locked(request.source_account_id, request.destination_account_id):
        validated = validate_transfer(request, store)
        if validated.is_left():
            return validated
        source, destination, amount = validated.get_or_else(None)

        rate = resolve_rate(rates, source.currency, destination.currency, strict=strict_fx)
        if rate.is_left():
            return rate
        fx_rate = rate.get_or_else(None)

        if request.future_instant is not None:
            timestamp = request.future_instant
        else:
            timestamp = clock()

        tx = Transaction(
            id=id_factory(),
            from_account=source.name,
            to_account=destination.name,
            amount=amount,
            currency=source.currency,
            fx_rate=fx_rate,
            timestamp=timestamp,
            is_future=request.is_future,
            note=request.note or "",
        )

        if tx.is_future:
            # scheduled transfers are recorded only; nothing settles them later
            log.prepend(tx)
            return Right(tx)

        previous = store.settle(source.id, destination.id, amount, tx.converted_amount)
        try:
            log.prepend(tx)
        except Exception:
            store.restore(*previous)
            raise
        return Right(tx)


def process(
    request: TransferRequest,
    store: AccountStore,
    log: TransactionLog,
    rates: RateTable,
    *,
    strict_fx: bool = False,
    clock: Callable[[], datetime] = datetime.now,
    id_factory: Callable[[], str] = new_transaction_id,
) -> Either[TransferError, Transaction]:
    """Validate a transfer, settle it if immediate, and record it.

    Returns ``Right(transaction)`` on success. Every failure, including an
    unexpected fault inside the processor, comes back as ``Left`` with the
    store and log untouched.
    """
    try:
        result = _settle(request, store, log, rates, strict_fx, clock, id_factory)
    except Exception as e:
        logger.exception(
            "Transfer %s -> %s failed unexpectedly",
            request.source_account_id, request.destination_account_id,
        )
        return Left(TransferError(
            TransferErrorKind.INTERNAL_ERROR,
            "Transfer failed. Please try again.",
            {"error": str(e)},
        ))

    if result.is_left():
        logger.warning("Transfer rejected: %s", result.get_error())
    else:
        tx = result.get_or_else(None)
        logger.info(
            "%s %s: %s %s %s -> %s at %s",
            "Scheduled" if tx.is_future else "Settled",
            tx.id, tx.amount, tx.currency.value, tx.from_account, tx.to_account, tx.fx_rate,
        )
    return result
