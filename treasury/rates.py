import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Mapping, Tuple

from treasury.domain import Currency
from treasury.errors import TransferError, TransferErrorKind
from treasury.functional import Either, Left, Maybe, Nothing, Right, Some

logger = logging.getLogger(__name__)

Pair = Tuple[Currency, Currency]

PARITY = Decimal("1.0")


class RateTable:
    """Static conversion factors keyed by ordered currency pair.

    ``rates[(USD, KES)]`` is the number of KES credited per USD debited.
    The reverse pair is a separate entry and is never derived.
    """

    def __init__(self, rates: Mapping[Pair, Decimal]):
        table: Dict[Pair, Decimal] = {}
        for (src, dst), factor in rates.items():
            src, dst = Currency(src), Currency(dst)
            try:
                factor = Decimal(str(factor))
            except InvalidOperation as e:
                raise ValueError(f"FX rate for {src.value}-{dst.value} is not a number: {factor!r}") from e
            if not factor.is_finite() or factor <= 0:
                raise ValueError(f"FX rate for {src.value}-{dst.value} must be positive, got {factor}")
            table[(src, dst)] = factor
        self._rates = table

    @classmethod
    def from_codes(cls, codes: Mapping[str, object]) -> "RateTable":
        """Build a table from ``{"USD-KES": 150.5, ...}`` style keys."""
        rates: Dict[Pair, Decimal] = {}
        for key, factor in codes.items():
            try:
                src, dst = key.split("-")
                pair = (Currency(src), Currency(dst))
            except ValueError as e:
                raise ValueError(f"Malformed FX pair {key!r}") from e
            rates[pair] = factor
        return cls(rates)

    def lookup(self, src: Currency, dst: Currency) -> Maybe[Decimal]:
        factor = self._rates.get((src, dst))
        return Some(factor) if factor is not None else Nothing()

    def __len__(self) -> int:
        return len(self._rates)


def resolve_rate(
    rates: RateTable, src: Currency, dst: Currency, strict: bool = False
) -> Either[TransferError, Decimal]:
    if src == dst:
        return Right(PARITY)

    found = rates.lookup(src, dst)
    if found.is_some():
        return Right(found.get_or_else(PARITY))

    if strict:
        return Left(TransferError(
            TransferErrorKind.UNSUPPORTED_CURRENCY_PAIR,
            f"No FX rate configured for {src.value} to {dst.value}",
            {"from_currency": src.value, "to_currency": dst.value},
        ))

    logger.warning("No FX rate for %s-%s, falling back to parity", src.value, dst.value)
    return Right(PARITY)
