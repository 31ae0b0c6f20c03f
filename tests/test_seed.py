from squadgrid.ledger import LedgerStore, compute_analytics, seed_sample_data


def test_seed_counts_and_reconciled_links(clock):
    store = LedgerStore(clock=clock)
    seed_sample_data(store)
    assert len(store.payment_links) == 2
    assert len(store.virtual_accounts) == 3
    assert len(store.yield_earnings) == 3
    assert len(store.transactions) == 10
    assert len(store.widgets) == 1

    counts = sorted((l.transaction_count, l.completed_count) for l in store.get_all_payment_links())
    assert counts == [(1, 1), (2, 2)]


def test_seed_preserves_account_balances_and_totals(clock):
    store = LedgerStore(clock=clock)
    seed_sample_data(store)
    totals = {a.account_name: a.total_balance for a in store.get_all_virtual_accounts()}
    assert totals == {
        "Business Operating Account": "40630.50",
        "Personal Savings": "17500.00",
        "Yield Account": "85000.00",
    }


def test_seed_widget_embeds_public_link_id(clock):
    store = LedgerStore(clock=clock)
    seed_sample_data(store)
    widget = store.get_all_widgets()[0]
    link = store.get_payment_link_by_link_id(widget.payment_link_id)
    assert link is not None
    assert f'data-link-id="{link.link_id}"' in widget.embed_code


def test_seed_analytics(clock):
    store = LedgerStore(clock=clock)
    seed_sample_data(store)
    stats = compute_analytics(store)
    assert stats.transaction_count == 10
    assert stats.total_completed_transactions == 9
    assert stats.total_pending_transactions == 1
    assert stats.cross_border_transactions == 1
    assert round(stats.total_revenue, 2) == 14270.83


def test_seed_cross_border_lookup(clock):
    store = LedgerStore(clock=clock)
    seed_sample_data(store)
    cross = store.get_cross_border_transactions()
    assert len(cross) == 1
    assert cross[0].fees == "5.00"
