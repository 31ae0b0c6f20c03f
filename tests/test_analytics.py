from datetime import datetime, timezone

from squadgrid.ledger import compute_analytics


def _tx(store, status="completed", amount="10.00", currency="USDC", method="wallet"):
    return store.create_transaction(
        transaction_type="payment", amount=amount, currency=currency,
        status=status, payment_method=method,
    )


def test_empty_store(store):
    stats = compute_analytics(store)
    assert stats.transaction_count == 0
    assert stats.success_rate == 0
    assert stats.avg_transaction_value == 0
    assert stats.total_revenue == 0
    assert len(stats.revenue_by_month) == 12
    assert stats.payment_method_distribution == []
    assert stats.revenue_by_currency == {"USDC": 0.0, "USDT": 0.0, "PYUSD": 0.0}


def test_all_completed_is_full_success(store):
    _tx(store, amount="10")
    _tx(store, amount="30", currency="USDT")
    stats = compute_analytics(store)
    assert stats.success_rate == 100
    assert stats.total_revenue == 40.0
    assert stats.avg_transaction_value == 20.0
    assert stats.revenue_by_currency["USDT"] == 30.0


def test_status_buckets_and_method_distribution(store):
    _tx(store, method="wallet")
    _tx(store, status="pending", method="wallet")
    _tx(store, status="processing", method="card")
    _tx(store, status="failed", method="card")
    _tx(store, status="cancelled", method="wallet")
    stats = compute_analytics(store)
    assert stats.total_completed_transactions == 1
    assert stats.total_pending_transactions == 2
    assert stats.total_failed_transactions == 2
    assert stats.success_rate == 20.0
    # failed revenue does not count
    assert stats.total_revenue == 10.0
    methods = {m.method: (m.count, m.percentage) for m in stats.payment_method_distribution}
    assert methods == {"wallet": (3, 60.0), "card": (2, 40.0)}


def test_revenue_by_month_buckets(store, clock):
    clock.now = datetime(2026, 3, 31, 23, 30, tzinfo=timezone.utc)
    _tx(store, amount="5")
    clock.now = datetime(2025, 11, 1, 0, 0, tzinfo=timezone.utc)
    _tx(store, amount="7")
    clock.now = datetime(2025, 10, 31, 23, 59, tzinfo=timezone.utc)
    _tx(store, amount="1000")  # outside the 12-month window
    clock.now = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)
    _tx(store, amount="3")
    _tx(store, amount="4", status="failed")

    months = compute_analytics(store).revenue_by_month
    assert len(months) == 12
    assert months[0].month == "Nov 2025"
    assert months[-1].month == "Oct 2026"
    by_label = {m.month: (m.revenue, m.transaction_count) for m in months}
    assert by_label["Nov 2025"] == (7.0, 1)
    assert by_label["Mar 2026"] == (5.0, 1)
    assert by_label["Oct 2026"] == (3.0, 1)
    assert sum(m.revenue for m in months) == 15.0


def test_account_and_yield_figures(store):
    a = store.create_virtual_account("A", "business")
    store.create_virtual_account("B", "savings", enable_yield=True)
    store.update_virtual_account(a.account_id, status="suspended")
    store.create_yield_earning(a.account_id, "USDC", "100", "1.25", 4.2, "monthly")
    store.create_transaction(
        transaction_type="transfer", amount="9", currency="USDC", status="completed",
        payment_method="wallet", transfer_type="cross_border",
    )
    stats = compute_analytics(store)
    assert stats.total_accounts == 2
    assert stats.active_accounts == 1
    assert stats.accounts_by_type == {"business": 1, "personal": 0, "savings": 1, "yield": 0}
    assert stats.total_yield_earned == 1.25
    assert stats.yield_by_currency["USDC"] == 1.25
    assert stats.cross_border_transactions == 1


def test_transactions_listed_newest_first(store, clock):
    old = _tx(store)
    clock.advance(hours=1)
    new = _tx(store)
    assert [t.id for t in store.get_all_transactions()] == [new.id, old.id]
