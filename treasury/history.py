from typing import Callable, Iterable, List, Tuple

from treasury.domain import Currency, Transaction, TransactionFilter
from treasury.transforms import as_instant

Predicate = Callable[[Transaction], bool]


def by_account(name: str) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return name in (t.from_account, t.to_account)

    return _filter


def by_currency(currency: Currency) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.currency == currency

    return _filter


def exclude_future() -> Predicate:
    def _filter(t: Transaction) -> bool:
        return not t.is_future

    return _filter


def predicates_for(filters: TransactionFilter) -> List[Predicate]:
    preds: List[Predicate] = []
    if filters.account:
        preds.append(by_account(filters.account))
    if filters.currency is not None:
        preds.append(by_currency(Currency(filters.currency)))
    if not filters.show_future:
        preds.append(exclude_future())
    return preds


def query_transactions(
    trans: Iterable[Transaction], filters: TransactionFilter = TransactionFilter()
) -> Tuple[Transaction, ...]:
    """Matching transactions, latest timestamp first.

    Naive and aware timestamps are compared as instants, naive ones read as
    local time. ``sorted`` is stable, so equal instants keep log order.
    """
    preds = predicates_for(filters)
    matching = (t for t in trans if all(p(t) for p in preds))
    return tuple(sorted(matching, key=lambda t: as_instant(t.timestamp), reverse=True))
