from __future__ import annotations

from dataclasses import asdict, fields, replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional
import json
import os

import pandas as pd

from ..config.loader import YieldRates
from ..logs.store_log import log_store_event
from ..metrics.ledger import (
    get_balance_floor_clamps_total,
    get_links_created_total,
    get_widgets_created_total,
    inc_transaction,
    set_account_balances,
)
from .embed import render_embed_code
from .errors import InvalidTransition, PaymentLinkNotFound, ValidationError
from .model import (
    ACCOUNT_STATUSES,
    ACCOUNT_TYPES,
    CURRENCIES,
    LINK_STATUSES,
    PAYMENT_METHODS,
    TRANSACTION_STATUSES,
    TRANSACTION_TYPES,
    TRANSFER_TYPES,
    WIDGET_SIZES,
    WIDGET_STYLES,
    WIDGET_TYPES,
    YIELD_PERIODS,
    PaymentLink,
    Transaction,
    VirtualAccount,
    Widget,
    YieldEarning,
    check_choice,
    format_amount,
    generate_grid_transfer_id,
    generate_short_id,
    generate_wallet_address,
    new_id,
    normalize_amount,
    to_decimal,
    zero_balances,
)

CREDIT_TYPES = ("deposit", "receive", "yield")
DEBIT_TYPES = ("withdrawal", "send")

# Allowed status moves for transactions that were recorded before settlement.
SETTLEMENT_TRANSITIONS: Dict[str, tuple] = {
    "pending": ("processing", "completed", "failed", "cancelled"),
    "processing": ("completed", "failed", "cancelled"),
}

YIELD_PERIOD_DAYS = {"daily": 1, "weekly": 7, "monthly": 30, "yearly": 365}

_WIDGET_RENDER_FIELDS = (
    "type", "style", "size", "button_text", "description", "image_url",
    "primary_color", "border_radius", "show_amount", "show_currency", "payment_link_id",
)
_WIDGET_MUTABLE = set(_WIDGET_RENDER_FIELDS) | {"name", "is_active"}
_ACCOUNT_MUTABLE = {"account_name", "status", "metadata", "is_yield_enabled", "yield_rate", "balances"}


def _check_widget_options(options: Dict[str, Any]) -> None:
    radius = options.get("border_radius")
    if radius is not None and (isinstance(radius, bool) or not isinstance(radius, int) or radius < 0):
        raise ValidationError(f"border_radius must be a non-negative integer, got {radius!r}")
    for flag in ("show_amount", "show_currency", "is_active"):
        value = options.get(flag)
        if value is not None and not isinstance(value, bool):
            raise ValidationError(f"{flag} must be a boolean, got {value!r}")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LedgerStore:
    """In-memory source of truth for payment links, transactions, accounts,
    yield records and widgets.

    Link counters and account balances are derived from the transaction set
    on every write. One instance is built at process start and handed to the
    request handlers; tests build their own.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        widget_origin: str = "https://squadgrid.xyz",
        yield_rates: Optional[YieldRates] = None,
    ):
        self.clock = clock or utcnow
        self.widget_origin = widget_origin.rstrip("/")
        self.yield_rates = yield_rates or YieldRates()
        self.payment_links: Dict[str, PaymentLink] = {}
        self.transactions: List[Transaction] = []
        self.widgets: List[Widget] = []
        self.virtual_accounts: Dict[str, VirtualAccount] = {}
        self.yield_earnings: List[YieldEarning] = []
        self._links_counter = get_links_created_total()
        self._floor_counter = get_balance_floor_clamps_total()
        self._widgets_counter = get_widgets_created_total()

    # ---- Payment links ----

    def get_all_payment_links(self) -> List[PaymentLink]:
        return list(self.payment_links.values())

    def get_payment_link_by_link_id(self, link_id: str) -> Optional[PaymentLink]:
        return self.payment_links.get(link_id)

    def create_payment_link(
        self,
        amount: str,
        currency: str,
        merchant_wallet: str,
        description: Optional[str] = None,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> PaymentLink:
        amount = normalize_amount(amount, "amount", positive=True)
        check_choice(currency, CURRENCIES, "currency")
        if not merchant_wallet:
            raise ValidationError("merchant_wallet is required")
        link = PaymentLink(
            id=new_id(),
            link_id=generate_short_id(),
            amount=amount,
            currency=currency,  # type: ignore[arg-type]
            description=description or "",
            status="active",
            merchant_wallet=merchant_wallet,
            created_at=self.clock(),
            success_url=success_url,
            cancel_url=cancel_url,
        )
        self.payment_links[link.link_id] = link
        try:
            self._links_counter.labels(currency).inc()
        except Exception:
            pass
        log_store_event("link_created", link_id=link.link_id, amount=amount, currency=currency)
        return link

    def update_payment_link_stats(self, link_id: str, transaction_count: int, completed_count: int) -> None:
        """Push counters recomputed by the caller from the full transaction set."""
        link = self.payment_links.get(link_id)
        if link is None:
            return
        link.transaction_count = int(transaction_count)
        link.completed_count = int(completed_count)
        link.updated_at = self.clock()

    def set_payment_link_status(self, link_id: str, status: str) -> Optional[PaymentLink]:
        check_choice(status, LINK_STATUSES, "status")
        link = self.payment_links.get(link_id)
        if link is None:
            return None
        link.status = status  # type: ignore[assignment]
        link.updated_at = self.clock()
        return link

    def delete_payment_link(self, link_id: str) -> bool:
        return self.payment_links.pop(link_id, None) is not None

    def _recompute_link_stats(self, link_id: str) -> None:
        if link_id not in self.payment_links:
            return
        link_txs = self.get_transactions_by_payment_link_id(link_id)
        completed = sum(1 for tx in link_txs if tx.status == "completed")
        self.update_payment_link_stats(link_id, len(link_txs), completed)

    def reconcile_link_stats(self) -> None:
        """Recompute every link's counters from the transaction set."""
        for link_id in list(self.payment_links.keys()):
            self._recompute_link_stats(link_id)

    # ---- Transactions ----

    def get_all_transactions(self) -> List[Transaction]:
        """All transactions, newest first."""
        return sorted(self.transactions, key=lambda tx: tx.created_at, reverse=True)

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        for tx in self.transactions:
            if tx.id == transaction_id:
                return tx
        return None

    def get_transactions_by_payment_link_id(self, payment_link_id: str) -> List[Transaction]:
        return [tx for tx in self.transactions if tx.payment_link_id == payment_link_id]

    def get_transactions_by_account_id(self, account_id: str) -> List[Transaction]:
        return [
            tx for tx in self.transactions
            if account_id in (tx.account_id, tx.from_account, tx.to_account)
        ]

    def get_cross_border_transactions(self) -> List[Transaction]:
        return [tx for tx in self.transactions if tx.transfer_type == "cross_border"]

    def create_transaction(
        self,
        transaction_type: str,
        amount: str,
        currency: str,
        status: str,
        payment_method: str,
        payment_link_id: Optional[str] = None,
        account_id: Optional[str] = None,
        customer_wallet: Optional[str] = None,
        customer_email: Optional[str] = None,
        from_account: Optional[str] = None,
        to_account: Optional[str] = None,
        recipient_name: Optional[str] = None,
        recipient_email: Optional[str] = None,
        recipient_wallet: Optional[str] = None,
        transfer_type: Optional[str] = None,
        exchange_rate: Optional[float] = None,
        fees: Optional[str] = None,
        memo: Optional[str] = None,
        solana_signature: Optional[str] = None,
        grid_transfer_id: Optional[str] = None,
    ) -> Transaction:
        check_choice(transaction_type, TRANSACTION_TYPES, "transaction_type")
        check_choice(currency, CURRENCIES, "currency")
        check_choice(status, TRANSACTION_STATUSES, "status")
        check_choice(payment_method, PAYMENT_METHODS, "payment_method")
        check_choice(transfer_type, TRANSFER_TYPES, "transfer_type", optional=True)
        amount = normalize_amount(amount, "amount", positive=True)
        if fees is not None:
            fees = normalize_amount(fees, "fees", positive=False)
            if Decimal(fees) < 0:
                raise ValidationError(f"fees must not be negative, got {fees}")
        if exchange_rate is not None:
            rate = to_decimal(exchange_rate, "exchange_rate", positive=True)
            exchange_rate = float(rate)

        now = self.clock()
        tx = Transaction(
            id=new_id(),
            transaction_type=transaction_type,  # type: ignore[arg-type]
            amount=amount,
            currency=currency,  # type: ignore[arg-type]
            status=status,  # type: ignore[arg-type]
            payment_method=payment_method,  # type: ignore[arg-type]
            created_at=now,
            payment_link_id=payment_link_id,
            account_id=account_id,
            customer_wallet=customer_wallet,
            customer_email=customer_email,
            from_account=from_account,
            to_account=to_account,
            recipient_name=recipient_name,
            recipient_email=recipient_email,
            recipient_wallet=recipient_wallet,
            transfer_type=transfer_type,  # type: ignore[arg-type]
            exchange_rate=exchange_rate,
            fees=fees,
            memo=memo,
            solana_signature=solana_signature,
            grid_transfer_id=grid_transfer_id or generate_grid_transfer_id(),
            completed_at=now if status == "completed" else None,
        )
        self.transactions.append(tx)
        inc_transaction(transaction_type, status, currency)
        log_store_event(
            "transaction_created",
            transaction_id=tx.id,
            type=transaction_type,
            status=status,
            amount=amount,
            currency=currency,
            link_id=payment_link_id,
            account_id=account_id,
        )

        if payment_link_id:
            self._recompute_link_stats(payment_link_id)
        if account_id and status == "completed":
            self._apply_balance(tx)
        return tx

    def settle_transaction(self, transaction_id: str, status: str) -> Optional[Transaction]:
        """Move a pending/processing transaction to a later status.

        Completing applies the balance rule exactly once, since only
        non-completed transactions may move.
        """
        check_choice(status, TRANSACTION_STATUSES, "status")
        tx = self.get_transaction(transaction_id)
        if tx is None:
            return None
        if status not in SETTLEMENT_TRANSITIONS.get(tx.status, ()):
            raise InvalidTransition(tx.id, tx.status, status)
        previous = tx.status
        tx.status = status  # type: ignore[assignment]
        if status == "completed":
            tx.completed_at = self.clock()
        inc_transaction(tx.transaction_type, status, tx.currency)
        log_store_event("transaction_settled", transaction_id=tx.id, previous=previous, status=status)
        if tx.payment_link_id:
            self._recompute_link_stats(tx.payment_link_id)
        if tx.account_id and status == "completed":
            self._apply_balance(tx)
        return tx

    def _apply_balance(self, tx: Transaction) -> None:
        account = self.virtual_accounts.get(tx.account_id or "")
        if account is None:
            return
        if tx.transaction_type not in CREDIT_TYPES + DEBIT_TYPES:
            # payment and transfer move funds outside the tracked accounts
            return
        current = to_decimal(account.balances.get(tx.currency, "0"), f"balances[{tx.currency}]")
        amount = Decimal(tx.amount)
        if tx.transaction_type in CREDIT_TYPES:
            updated = current + amount
        else:
            updated = current - amount
            if updated < 0:
                try:
                    self._floor_counter.labels(tx.currency).inc()
                except Exception:
                    pass
                log_store_event(
                    "balance_floored",
                    account_id=account.account_id,
                    transaction_id=tx.id,
                    currency=tx.currency,
                    balance=format_amount(current),
                    requested=tx.amount,
                )
                updated = Decimal("0")
        account.balances[tx.currency] = format_amount(updated)
        account.recompute_total()
        account.updated_at = self.clock()
        set_account_balances({account.account_id: account.total_balance})

    # ---- Widgets ----

    def get_all_widgets(self) -> List[Widget]:
        return sorted(self.widgets, key=lambda w: w.created_at, reverse=True)

    def get_widget_by_id(self, widget_id: str) -> Optional[Widget]:
        for w in self.widgets:
            if w.id == widget_id:
                return w
        return None

    def render_widget(self, widget: Widget, link: PaymentLink) -> str:
        return render_embed_code(
            widget.type,
            link,
            button_text=widget.button_text,
            style=widget.style,
            size=widget.size,
            origin=self.widget_origin,
            primary_color=widget.primary_color,
            border_radius=widget.border_radius,
            show_amount=widget.show_amount,
            show_currency=widget.show_currency,
            description=widget.description,
            image_url=widget.image_url,
        )

    def create_widget(
        self,
        name: str,
        type: str,
        payment_link_id: str,
        button_text: str,
        style: Optional[str] = None,
        size: Optional[str] = None,
        description: Optional[str] = None,
        image_url: Optional[str] = None,
        primary_color: Optional[str] = None,
        border_radius: Optional[int] = None,
        show_amount: Optional[bool] = None,
        show_currency: Optional[bool] = None,
    ) -> Widget:
        link = self.payment_links.get(payment_link_id)
        if link is None:
            raise PaymentLinkNotFound(payment_link_id)
        check_choice(type, WIDGET_TYPES, "type")
        style = check_choice(style or "default", WIDGET_STYLES, "style")
        size = check_choice(size or "md", WIDGET_SIZES, "size")
        _check_widget_options(
            {"border_radius": border_radius, "show_amount": show_amount, "show_currency": show_currency}
        )
        if not name or not button_text:
            raise ValidationError("name and button_text are required")
        widget = Widget(
            id=new_id(),
            name=name,
            type=type,  # type: ignore[arg-type]
            style=style,  # type: ignore[arg-type]
            size=size,  # type: ignore[arg-type]
            button_text=button_text,
            embed_code="",
            payment_link_id=link.link_id,
            created_at=self.clock(),
            description=description,
            image_url=image_url,
            primary_color=primary_color,
            border_radius=border_radius,
            show_amount=show_amount,
            show_currency=show_currency,
        )
        widget.embed_code = self.render_widget(widget, link)
        self.widgets.append(widget)
        try:
            self._widgets_counter.labels(type).inc()
        except Exception:
            pass
        log_store_event("widget_created", widget_id=widget.id, type=type, link_id=link.link_id)
        return widget

    def update_widget(self, widget_id: str, **changes: Any) -> Optional[Widget]:
        widget = self.get_widget_by_id(widget_id)
        if widget is None:
            return None
        unknown = set(changes) - _WIDGET_MUTABLE
        if unknown:
            raise ValidationError(f"cannot update widget fields: {', '.join(sorted(unknown))}")
        if "type" in changes:
            check_choice(changes["type"], WIDGET_TYPES, "type")
        if "style" in changes:
            check_choice(changes["style"], WIDGET_STYLES, "style")
        if "size" in changes:
            check_choice(changes["size"], WIDGET_SIZES, "size")
        link_id = changes.get("payment_link_id", widget.payment_link_id)
        link = self.payment_links.get(link_id)
        if link is None:
            raise PaymentLinkNotFound(link_id)
        _check_widget_options(changes)
        # render on a copy, commit after it succeeds
        updated = replace(widget, **changes)
        if any(k in _WIDGET_RENDER_FIELDS for k in changes):
            updated.embed_code = self.render_widget(updated, link)
        for key in list(changes) + ["embed_code"]:
            setattr(widget, key, getattr(updated, key))
        widget.updated_at = self.clock()
        return widget

    def delete_widget(self, widget_id: str) -> bool:
        for i, w in enumerate(self.widgets):
            if w.id == widget_id:
                del self.widgets[i]
                return True
        return False

    # ---- Virtual accounts ----

    def get_all_virtual_accounts(self) -> List[VirtualAccount]:
        return sorted(self.virtual_accounts.values(), key=lambda a: a.created_at, reverse=True)

    def get_virtual_account_by_account_id(self, account_id: str) -> Optional[VirtualAccount]:
        return self.virtual_accounts.get(account_id)

    def create_virtual_account(self, account_name: str, account_type: str, enable_yield: bool = False) -> VirtualAccount:
        check_choice(account_type, ACCOUNT_TYPES, "account_type")
        if not account_name:
            raise ValidationError("account_name is required")
        account = VirtualAccount(
            id=new_id(),
            account_id=generate_short_id(),
            account_name=account_name,
            account_type=account_type,  # type: ignore[arg-type]
            status="active",
            wallet_address=generate_wallet_address(),
            created_at=self.clock(),
            balances=zero_balances(),
            is_yield_enabled=bool(enable_yield),
            yield_rate=self.yield_rates.for_type(account_type) if enable_yield else None,
        )
        self.virtual_accounts[account.account_id] = account
        set_account_balances({account.account_id: account.total_balance})
        log_store_event("account_created", account_id=account.account_id, type=account_type, yield_rate=account.yield_rate)
        return account

    def update_virtual_account(self, account_id: str, **changes: Any) -> Optional[VirtualAccount]:
        account = self.virtual_accounts.get(account_id)
        if account is None:
            return None
        unknown = set(changes) - _ACCOUNT_MUTABLE
        if unknown:
            raise ValidationError(f"cannot update account fields: {', '.join(sorted(unknown))}")
        if "status" in changes:
            check_choice(changes["status"], ACCOUNT_STATUSES, "status")
        if "balances" in changes:
            balances = dict(account.balances)
            for cur, val in (changes["balances"] or {}).items():
                check_choice(cur, CURRENCIES, "currency")
                balances[cur] = normalize_amount(val, f"balances[{cur}]", positive=False)
                if Decimal(balances[cur]) < 0:
                    raise ValidationError(f"balances[{cur}] must not be negative")
            changes["balances"] = balances
        for key, value in changes.items():
            setattr(account, key, value)
        account.recompute_total()
        account.updated_at = self.clock()
        set_account_balances({account.account_id: account.total_balance})
        return account

    def delete_virtual_account(self, account_id: str) -> bool:
        return self.virtual_accounts.pop(account_id, None) is not None

    # ---- Yield earnings ----

    def get_all_yield_earnings(self) -> List[YieldEarning]:
        return sorted(self.yield_earnings, key=lambda y: y.created_at, reverse=True)

    def get_yield_earnings_by_account_id(self, account_id: str) -> List[YieldEarning]:
        return [y for y in self.yield_earnings if y.account_id == account_id]

    def create_yield_earning(
        self,
        account_id: str,
        currency: str,
        principal: str,
        earned: str,
        current_rate: float,
        period: str,
    ) -> YieldEarning:
        check_choice(currency, CURRENCIES, "currency")
        check_choice(period, YIELD_PERIODS, "period")
        principal = normalize_amount(principal, "principal", positive=False)
        earned = normalize_amount(earned, "earned", positive=False)
        if Decimal(principal) < 0 or Decimal(earned) < 0:
            raise ValidationError("principal and earned must not be negative")
        rate = float(to_decimal(current_rate, "current_rate"))
        now = self.clock()
        earning = YieldEarning(
            id=new_id(),
            account_id=account_id,
            currency=currency,  # type: ignore[arg-type]
            principal=principal,
            earned=earned,
            current_rate=rate,
            period=period,  # type: ignore[arg-type]
            last_payment=now,
            next_payment=now + timedelta(days=YIELD_PERIOD_DAYS[period]),
            created_at=now,
        )
        self.yield_earnings.append(earning)
        return earning

    def total_yield_earned(self) -> Dict[str, str]:
        totals = {c: Decimal("0") for c in CURRENCIES}
        for y in self.yield_earnings:
            totals[y.currency] += Decimal(y.earned)
        return {c: format_amount(v) for c, v in totals.items()}

    # ---- Bulk load / export ----

    def load(
        self,
        payment_links: Iterable[PaymentLink] = (),
        virtual_accounts: Iterable[VirtualAccount] = (),
        yield_earnings: Iterable[YieldEarning] = (),
        transactions: Iterable[Transaction] = (),
        widgets: Iterable[Widget] = (),
    ) -> None:
        """Insert prebuilt records without balance side effects, then reconcile link counters."""
        for link in payment_links:
            self.payment_links[link.link_id] = link
        for account in virtual_accounts:
            account.recompute_total()
            self.virtual_accounts[account.account_id] = account
        self.yield_earnings.extend(yield_earnings)
        self.transactions.extend(transactions)
        self.widgets.extend(widgets)
        self.reconcile_link_stats()
        set_account_balances({a.account_id: a.total_balance for a in self.virtual_accounts.values()})

    def write_parquet(self, base_dir: str = "data") -> None:
        """Export transactions and accounts for offline analysis."""
        os.makedirs(base_dir, exist_ok=True)
        tx_df = pd.DataFrame([asdict(t) for t in self.transactions], columns=[f.name for f in fields(Transaction)])
        rows = []
        for a in self.virtual_accounts.values():
            row = {k: v for k, v in asdict(a).items() if k not in ("balances", "metadata")}
            for cur in CURRENCIES:
                row[f"balance_{cur}"] = a.balances.get(cur, "0.00")
            row["metadata"] = json.dumps(a.metadata, sort_keys=True)
            rows.append(row)
        acct_df = pd.DataFrame(rows)
        tx_df.to_parquet(os.path.join(base_dir, "transactions.parquet"))
        acct_df.to_parquet(os.path.join(base_dir, "accounts.parquet"))
