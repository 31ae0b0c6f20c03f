from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Literal, Optional, Tuple, get_args
import os
import uuid

import base58

from .errors import ValidationError

Currency = Literal["USDC", "USDT", "PYUSD"]
PaymentLinkStatus = Literal["active", "completed", "expired", "paused"]
TransactionStatus = Literal["completed", "pending", "processing", "failed", "cancelled"]
TransactionType = Literal["payment", "send", "receive", "deposit", "withdrawal", "transfer", "yield"]
PaymentMethod = Literal["wallet", "ramp", "card"]
AccountType = Literal["business", "personal", "savings", "yield"]
AccountStatus = Literal["active", "inactive", "suspended", "closed"]
TransferType = Literal["domestic", "cross_border", "internal"]
WidgetType = Literal["button", "card", "inline", "checkout", "donation", "subscription"]
WidgetStyle = Literal["default", "outline", "ghost", "pill", "minimal"]
WidgetSize = Literal["sm", "md", "lg"]
YieldPeriod = Literal["daily", "weekly", "monthly", "yearly"]

CURRENCIES: Tuple[str, ...] = get_args(Currency)
TRANSACTION_STATUSES: Tuple[str, ...] = get_args(TransactionStatus)
TRANSACTION_TYPES: Tuple[str, ...] = get_args(TransactionType)
PAYMENT_METHODS: Tuple[str, ...] = get_args(PaymentMethod)
ACCOUNT_TYPES: Tuple[str, ...] = get_args(AccountType)
ACCOUNT_STATUSES: Tuple[str, ...] = get_args(AccountStatus)
TRANSFER_TYPES: Tuple[str, ...] = get_args(TransferType)
WIDGET_TYPES: Tuple[str, ...] = get_args(WidgetType)
WIDGET_STYLES: Tuple[str, ...] = get_args(WidgetStyle)
WIDGET_SIZES: Tuple[str, ...] = get_args(WidgetSize)
YIELD_PERIODS: Tuple[str, ...] = get_args(YieldPeriod)
LINK_STATUSES: Tuple[str, ...] = get_args(PaymentLinkStatus)

CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("1000000000000000")
ZERO = "0.00"


def new_id() -> str:
    return uuid.uuid4().hex


def generate_short_id() -> str:
    """Public 8-char identifier; collisions are tolerated, not retried."""
    return uuid.uuid4().hex[:8]


def generate_wallet_address() -> str:
    """Mock Solana address: base58 of 32 random bytes."""
    return base58.b58encode(os.urandom(32)).decode("ascii")


def generate_signature() -> str:
    """Mock Solana transaction signature: base58 of 64 random bytes."""
    return base58.b58encode(os.urandom(64)).decode("ascii")


def generate_grid_transfer_id() -> str:
    return f"grid_{uuid.uuid4().hex}"


def to_decimal(value, field_name: str = "amount", positive: bool = False) -> Decimal:
    """Parse a decimal string (or number) and reject NaN/inf and, optionally, non-positive values."""
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field_name} must be a decimal number, got {value!r}")
    if not d.is_finite():
        raise ValidationError(f"{field_name} must be finite, got {value!r}")
    if positive and d <= 0:
        raise ValidationError(f"{field_name} must be positive, got {value!r}")
    return d


def format_amount(value: Decimal) -> str:
    try:
        return str(value.quantize(CENT, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        raise ValidationError(f"amount out of range: {value!r}")


def normalize_amount(value, field_name: str = "amount", positive: bool = True) -> str:
    """Parse, bound and quantize an amount to a 2dp string.

    Positivity is checked after rounding, so "0.001" is not a positive amount.
    """
    d = to_decimal(value, field_name)
    if abs(d) > MAX_AMOUNT:
        raise ValidationError(f"{field_name} exceeds the maximum of {MAX_AMOUNT}, got {value!r}")
    text = format_amount(d)
    if positive and Decimal(text) <= 0:
        raise ValidationError(f"{field_name} must be at least {CENT}, got {value!r}")
    return text


def check_choice(value: Optional[str], choices: Tuple[str, ...], field_name: str, optional: bool = False) -> Optional[str]:
    if value is None and optional:
        return None
    if value not in choices:
        raise ValidationError(f"{field_name} must be one of: {', '.join(choices)} (got {value!r})")
    return value


def zero_balances() -> Dict[str, str]:
    return {c: ZERO for c in CURRENCIES}


@dataclass
class PaymentLink:
    id: str
    link_id: str
    amount: str
    currency: Currency
    description: str
    status: PaymentLinkStatus
    merchant_wallet: str
    created_at: datetime
    transaction_count: int = 0
    completed_count: int = 0
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None
    updated_at: Optional[datetime] = None


@dataclass
class Transaction:
    id: str
    transaction_type: TransactionType
    amount: str
    currency: Currency
    status: TransactionStatus
    payment_method: PaymentMethod
    created_at: datetime
    payment_link_id: Optional[str] = None
    account_id: Optional[str] = None
    customer_wallet: Optional[str] = None
    customer_email: Optional[str] = None
    from_account: Optional[str] = None
    to_account: Optional[str] = None
    recipient_name: Optional[str] = None
    recipient_email: Optional[str] = None
    recipient_wallet: Optional[str] = None
    transfer_type: Optional[TransferType] = None
    exchange_rate: Optional[float] = None
    fees: Optional[str] = None
    memo: Optional[str] = None
    solana_signature: Optional[str] = None
    grid_transfer_id: Optional[str] = None
    completed_at: Optional[datetime] = None


@dataclass
class VirtualAccount:
    id: str
    account_id: str
    account_name: str
    account_type: AccountType
    status: AccountStatus
    wallet_address: str
    created_at: datetime
    balances: Dict[str, str] = field(default_factory=zero_balances)
    total_balance: str = ZERO
    updated_at: Optional[datetime] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    is_yield_enabled: bool = False
    yield_rate: Optional[float] = None

    def recompute_total(self) -> str:
        """Set total_balance to the 2dp sum of the per-currency balances."""
        total = sum((to_decimal(self.balances.get(c, ZERO), f"balances[{c}]") for c in CURRENCIES), Decimal("0"))
        self.total_balance = format_amount(total)
        return self.total_balance


@dataclass
class YieldEarning:
    id: str
    account_id: str
    currency: Currency
    principal: str
    earned: str
    current_rate: float
    period: YieldPeriod
    last_payment: datetime
    next_payment: datetime
    created_at: datetime


@dataclass
class Widget:
    id: str
    name: str
    type: WidgetType
    style: WidgetStyle
    size: WidgetSize
    button_text: str
    embed_code: str
    payment_link_id: str
    created_at: datetime
    is_active: bool = True
    description: Optional[str] = None
    image_url: Optional[str] = None
    primary_color: Optional[str] = None
    border_radius: Optional[int] = None
    show_amount: Optional[bool] = None
    show_currency: Optional[bool] = None
    updated_at: Optional[datetime] = None
