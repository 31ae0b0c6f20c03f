import pytest

from squadgrid.ledger import InvalidTransition


def _pending_deposit(store, acct, link_id=None):
    return store.create_transaction(
        transaction_type="deposit", amount="40.00", currency="USDT", status="pending",
        payment_method="ramp", account_id=acct.account_id, payment_link_id=link_id,
    )


def test_pending_has_no_completed_at(store):
    acct = store.create_virtual_account("A", "business")
    tx = _pending_deposit(store, acct)
    assert tx.completed_at is None


def test_settle_to_completed_applies_balance_once(store, clock):
    acct = store.create_virtual_account("A", "business")
    tx = _pending_deposit(store, acct)
    clock.advance(minutes=5)
    store.settle_transaction(tx.id, "processing")
    assert acct.balances["USDT"] == "0.00"
    settled = store.settle_transaction(tx.id, "completed")
    assert settled.completed_at == clock.now
    assert acct.balances["USDT"] == "40.00"
    with pytest.raises(InvalidTransition):
        store.settle_transaction(tx.id, "completed")
    assert acct.balances["USDT"] == "40.00"


def test_settle_failed_keeps_balance_and_updates_link(store):
    acct = store.create_virtual_account("A", "business")
    link = store.create_payment_link(amount="40", currency="USDT", merchant_wallet="w")
    tx = _pending_deposit(store, acct, link_id=link.link_id)
    assert (link.transaction_count, link.completed_count) == (1, 0)
    store.settle_transaction(tx.id, "failed")
    assert tx.completed_at is None
    assert acct.total_balance == "0.00"
    with pytest.raises(InvalidTransition):
        store.settle_transaction(tx.id, "pending")


def test_settle_completed_link_payment_recounts(store):
    link = store.create_payment_link(amount="40", currency="USDC", merchant_wallet="w")
    tx = store.create_transaction(
        transaction_type="payment", amount="40", currency="USDC", status="pending",
        payment_method="wallet", payment_link_id=link.link_id,
    )
    store.settle_transaction(tx.id, "completed")
    assert (link.transaction_count, link.completed_count) == (1, 1)


def test_settle_unknown_returns_none(store):
    assert store.settle_transaction("nope", "completed") is None
