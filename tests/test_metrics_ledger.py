from prometheus_client import REGISTRY


def _sample(metric: str, labels: dict) -> float:
    val = REGISTRY.get_sample_value(metric, labels)
    return 0.0 if val is None else float(val)


def test_transaction_counter_increments(store):
    labels = {"type": "deposit", "status": "completed", "currency": "PYUSD"}
    before = _sample("ledger_transactions_total", labels)
    store.create_transaction(
        transaction_type="deposit", amount="1", currency="PYUSD", status="completed", payment_method="ramp",
    )
    assert _sample("ledger_transactions_total", labels) - before == 1.0


def test_floor_clamp_counted_and_balance_gauge_set(store):
    acct = store.create_virtual_account("A", "business")
    store.update_virtual_account(acct.account_id, balances={"USDT": "10.00", "USDC": "2.50"})
    before = _sample("balance_floor_clamps_total", {"currency": "USDT"})
    store.create_transaction(
        transaction_type="withdrawal", amount="11", currency="USDT", status="completed",
        payment_method="wallet", account_id=acct.account_id,
    )
    assert _sample("balance_floor_clamps_total", {"currency": "USDT"}) - before == 1.0
    assert _sample("account_balance_usd", {"account": acct.account_id}) == 2.5


def test_links_and_widgets_counted(store):
    before_links = _sample("payment_links_created_total", {"currency": "USDT"})
    before_widgets = _sample("widgets_created_total", {"type": "inline"})
    link = store.create_payment_link(amount="3", currency="USDT", merchant_wallet="w")
    store.create_widget(name="W", type="inline", payment_link_id=link.link_id, button_text="Go")
    assert _sample("payment_links_created_total", {"currency": "USDT"}) - before_links == 1.0
    assert _sample("widgets_created_total", {"type": "inline"}) - before_widgets == 1.0


def test_settlement_counts_one_event_per_status(store):
    pending = {"type": "withdrawal", "status": "pending", "currency": "USDC"}
    completed = {"type": "withdrawal", "status": "completed", "currency": "USDC"}
    before_pending = _sample("ledger_transactions_total", pending)
    before_completed = _sample("ledger_transactions_total", completed)
    tx = store.create_transaction(
        transaction_type="withdrawal", amount="3", currency="USDC", status="pending", payment_method="wallet",
    )
    store.settle_transaction(tx.id, "completed")
    assert _sample("ledger_transactions_total", pending) - before_pending == 1.0
    assert _sample("ledger_transactions_total", completed) - before_completed == 1.0
