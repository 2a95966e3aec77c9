import threading
from contextlib import contextmanager
from dataclasses import replace
from decimal import Decimal
from typing import Dict, Iterable, Iterator, List, Tuple

from treasury.domain import Account, Transaction
from treasury.functional import Maybe, Nothing, Some


class AccountStore:
    """In-memory accounts owned by the application layer.

    Accounts are frozen; a settlement swaps in new instances for both sides
    under one state lock so a snapshot never shows half a transfer.
    """

    def __init__(self, accounts: Iterable[Account]):
        self._accounts: Dict[str, Account] = {}
        for acc in accounts:
            if acc.id in self._accounts:
                raise ValueError(f"Duplicate account id {acc.id!r}")
            if acc.balance < 0:
                raise ValueError(f"Account {acc.id!r} has a negative balance")
            self._accounts[acc.id] = acc
        self._state_lock = threading.Lock()
        self._account_locks = {acc_id: threading.Lock() for acc_id in self._accounts}

    def get(self, account_id: str) -> Maybe[Account]:
        with self._state_lock:
            acc = self._accounts.get(account_id)
        return Some(acc) if acc is not None else Nothing()

    def snapshot(self) -> Tuple[Account, ...]:
        with self._state_lock:
            return tuple(self._accounts.values())

    def __len__(self) -> int:
        return len(self._accounts)

    @contextmanager
    def locked(self, *account_ids: str) -> Iterator[None]:
        # sorted acquisition order keeps two opposite transfers from deadlocking
        ids = sorted({i for i in account_ids if i in self._account_locks})
        acquired: List[threading.Lock] = []
        try:
            for acc_id in ids:
                lock = self._account_locks[acc_id]
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    def settle(
        self, source_id: str, destination_id: str, debit: Decimal, credit: Decimal
    ) -> Tuple[Account, Account]:
        """Debit the source and credit the destination together.

        Returns the accounts as they were before, for ``restore``.
        """
        with self._state_lock:
            src = self._accounts[source_id]
            dst = self._accounts[destination_id]
            new_balance = src.balance - debit
            if new_balance < 0:
                raise ValueError(f"Settlement would overdraw account {source_id!r}")
            self._accounts[source_id] = replace(src, balance=new_balance)
            self._accounts[destination_id] = replace(dst, balance=dst.balance + credit)
        return src, dst

    def restore(self, *accounts: Account) -> None:
        with self._state_lock:
            for acc in accounts:
                self._accounts[acc.id] = acc


class TransactionLog:
    """Append-only history, newest entry first."""

    def __init__(self, transactions: Iterable[Transaction] = ()):
        self._entries: List[Transaction] = list(transactions)
        self._lock = threading.Lock()

    def prepend(self, tx: Transaction) -> None:
        with self._lock:
            self._entries.insert(0, tx)

    def entries(self) -> Tuple[Transaction, ...]:
        with self._lock:
            return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
