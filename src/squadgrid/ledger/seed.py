"""Fixed demo records loaded at startup: 2 links, 3 accounts, 3 yield
records, 10 transactions and 1 widget, backdated relative to the store clock.

Link counters are reconciled from the seeded transactions by `LedgerStore.load`.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, List

from .model import (
    PaymentLink,
    Transaction,
    VirtualAccount,
    Widget,
    YieldEarning,
    generate_grid_transfer_id,
    generate_short_id,
    generate_signature,
    generate_wallet_address,
    new_id,
)
from .store import LedgerStore

DAY = timedelta(days=1)


def _tx(created, completed_after=timedelta(0), signed=True, **kw: Any) -> Transaction:
    status = kw.setdefault("status", "completed")
    kw.setdefault("payment_method", "wallet")
    return Transaction(
        id=new_id(),
        created_at=created,
        completed_at=created + completed_after if status == "completed" else None,
        solana_signature=generate_signature() if signed and status == "completed" else None,
        grid_transfer_id=generate_grid_transfer_id() if status == "completed" else None,
        **kw,
    )


def seed_sample_data(store: LedgerStore) -> None:
    now = store.clock()

    link1 = PaymentLink(
        id=new_id(), link_id=generate_short_id(), amount="100.00", currency="USDC",
        description="Premium Subscription", status="active", merchant_wallet=generate_wallet_address(),
        created_at=now - 7 * DAY, success_url="https://example.com/success", cancel_url="https://example.com/cancel",
    )
    link2 = PaymentLink(
        id=new_id(), link_id=generate_short_id(), amount="50.00", currency="USDT",
        description="One-time Payment", status="active", merchant_wallet=generate_wallet_address(),
        created_at=now - 3 * DAY,
    )

    business = VirtualAccount(
        id=new_id(), account_id=generate_short_id(), account_name="Business Operating Account",
        account_type="business", status="active", wallet_address=generate_wallet_address(),
        created_at=now - 30 * DAY, balances={"USDC": "25430.50", "USDT": "15200.00", "PYUSD": "0.00"},
        is_yield_enabled=True, yield_rate=4.2, metadata={"businessName": "Acme Corp", "taxId": "12-3456789"},
    )
    savings = VirtualAccount(
        id=new_id(), account_id=generate_short_id(), account_name="Personal Savings",
        account_type="savings", status="active", wallet_address=generate_wallet_address(),
        created_at=now - 60 * DAY, balances={"USDC": "12500.00", "USDT": "0.00", "PYUSD": "5000.00"},
        is_yield_enabled=True, yield_rate=5.1,
    )
    yield_acct = VirtualAccount(
        id=new_id(), account_id=generate_short_id(), account_name="Yield Account",
        account_type="yield", status="active", wallet_address=generate_wallet_address(),
        created_at=now - 90 * DAY, balances={"USDC": "50000.00", "USDT": "25000.00", "PYUSD": "10000.00"},
        is_yield_enabled=True, yield_rate=6.5,
    )

    earnings: List[YieldEarning] = []
    for acct, principal, earned in ((business, "25000.00", "287.50"), (savings, "12500.00", "159.38"), (yield_acct, "50000.00", "812.50")):
        earnings.append(
            YieldEarning(
                id=new_id(), account_id=acct.account_id, currency="USDC", principal=principal, earned=earned,
                current_rate=float(acct.yield_rate or 0.0), period="monthly",
                last_payment=now - 2 * DAY, next_payment=now + 28 * DAY, created_at=acct.created_at,
            )
        )

    internal: Dict[str, Any] = {"transfer_type": "internal", "fees": "0.00"}
    transactions = [
        _tx(now - 2 * DAY, timedelta(seconds=30), payment_link_id=link1.link_id, transaction_type="payment",
            amount="100.00", currency="USDC", customer_wallet=generate_wallet_address(), fees="0.30"),
        _tx(now - 1 * DAY, timedelta(seconds=45), payment_link_id=link1.link_id, transaction_type="payment",
            amount="100.00", currency="USDC", customer_wallet=generate_wallet_address(), fees="0.30"),
        _tx(now - timedelta(hours=5), timedelta(seconds=20), payment_link_id=link2.link_id, transaction_type="payment",
            amount="50.00", currency="USDT", customer_wallet=generate_wallet_address(), fees="0.15"),
        _tx(now - 3 * DAY, timedelta(seconds=10), account_id=business.account_id, transaction_type="send",
            amount="500.00", currency="USDC", from_account=business.account_id, to_account=savings.account_id,
            recipient_name="John Doe", recipient_wallet=generate_wallet_address(), memo="Monthly allowance", **internal),
        _tx(now - 4 * DAY, timedelta(seconds=5), account_id=savings.account_id, transaction_type="receive",
            amount="250.00", currency="USDC", from_account=business.account_id, to_account=savings.account_id,
            recipient_name="Jane Smith", **internal),
        _tx(now - 6 * DAY, DAY, account_id=business.account_id, transaction_type="transfer",
            amount="1000.00", currency="USDC", from_account=business.account_id, to_account=generate_short_id(),
            recipient_name="Sarah Johnson", recipient_email="sarah@example.com", recipient_wallet=generate_wallet_address(),
            transfer_type="cross_border", exchange_rate=1.0, fees="5.00", memo="International payment - Invoice #1234"),
        _tx(now - 7 * DAY, timedelta(minutes=2), account_id=yield_acct.account_id, transaction_type="deposit",
            amount="10000.00", currency="USDC", payment_method="ramp", to_account=yield_acct.account_id, fees="25.00"),
        _tx(now - 8 * DAY, timedelta(minutes=1), account_id=business.account_id, transaction_type="withdrawal",
            amount="2000.00", currency="USDT", from_account=business.account_id, recipient_wallet=generate_wallet_address(),
            fees="2.00", memo="Withdrawal to external wallet"),
        _tx(now - 2 * DAY, signed=False, account_id=yield_acct.account_id, transaction_type="yield",
            amount="270.83", currency="USDC", to_account=yield_acct.account_id, fees="0.00", memo="Monthly yield payment"),
        _tx(now, status="pending", account_id=savings.account_id, transaction_type="send",
            amount="150.00", currency="USDC", from_account=savings.account_id, to_account=business.account_id,
            recipient_name="Bob Wilson", **internal),
    ]

    widget = Widget(
        id=new_id(), name="Basic Payment Button", type="button", style="default", size="md",
        button_text="Pay Now", embed_code="", payment_link_id=link1.link_id, created_at=now - DAY,
    )
    widget.embed_code = store.render_widget(widget, link1)

    store.load(
        payment_links=[link1, link2],
        virtual_accounts=[business, savings, yield_acct],
        yield_earnings=earnings,
        transactions=transactions,
        widgets=[widget],
    )
