import threading
from decimal import Decimal

import pytest

from treasury.domain import Account, Currency
from treasury.store import AccountStore, TransactionLog


def make_acc(id, name, currency, balance):
    return Account(id=id, name=name, currency=currency, balance=Decimal(balance))


def make_store():
    return AccountStore([
        make_acc("1", "Mpesa_KES_1", Currency.KES, "2450000"),
        make_acc("3", "Bank_USD_1", Currency.USD, "125000"),
    ])


def test_snapshot_keeps_seed_order():
    store = make_store()
    assert [a.id for a in store.snapshot()] == ["1", "3"]
    assert store.snapshot() == store.snapshot()


def test_settle_swaps_both_accounts_and_returns_previous():
    store = make_store()
    before_src, before_dst = store.settle("3", "1", Decimal("1000"), Decimal("150500"))

    assert before_src.balance == Decimal("125000")
    assert before_dst.balance == Decimal("2450000")
    assert store.get("3").get_or_else(None).balance == Decimal("124000")
    assert store.get("1").get_or_else(None).balance == Decimal("2600500")


def test_settle_refuses_to_overdraw():
    store = make_store()
    with pytest.raises(ValueError):
        store.settle("3", "1", Decimal("125000.01"), Decimal("1"))
    assert store.get("3").get_or_else(None).balance == Decimal("125000")
    assert store.get("1").get_or_else(None).balance == Decimal("2450000")


def test_restore_puts_accounts_back():
    store = make_store()
    previous = store.settle("3", "1", Decimal("10"), Decimal("10"))
    store.restore(*previous)
    assert store.get("3").get_or_else(None).balance == Decimal("125000")
    assert store.get("1").get_or_else(None).balance == Decimal("2450000")


def test_rejects_duplicate_ids_and_negative_balances():
    with pytest.raises(ValueError):
        AccountStore([make_acc("1", "A", Currency.USD, "1"), make_acc("1", "B", Currency.USD, "1")])
    with pytest.raises(ValueError):
        AccountStore([make_acc("1", "A", Currency.USD, "-1")])


def test_locked_ignores_unknown_ids_and_releases():
    store = make_store()
    with store.locked("3", "1", "missing"):
        pass
    # reacquiring would block forever if a lock leaked
    with store.locked("1", "3"):
        pass


def test_locked_blocks_other_threads_on_the_same_account():
    store = make_store()
    entered = threading.Event()

    def worker():
        with store.locked("3"):
            entered.set()

    with store.locked("1", "3"):
        t = threading.Thread(target=worker)
        t.start()
        assert not entered.wait(0.05)
    t.join(1)
    assert entered.is_set()


def test_log_prepends():
    log = TransactionLog(["old"])
    log.prepend("new")
    assert log.entries() == ("new", "old")
    assert len(log) == 2
