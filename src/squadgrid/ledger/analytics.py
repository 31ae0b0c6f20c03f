"""
Analytics over the ledger store.

Everything is recomputed from the full record set on each call; nothing is
cached or updated incrementally.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
import time

from pydantic import BaseModel, Field

from ..metrics.ledger import get_analytics_compute_seconds
from .model import ACCOUNT_TYPES, CURRENCIES, PAYMENT_METHODS, Transaction
from .store import LedgerStore

PENDING_STATUSES = ("pending", "processing")
FAILED_STATUSES = ("failed", "cancelled")


class MonthRevenue(BaseModel):
    month: str
    revenue: float
    transaction_count: int


class MethodShare(BaseModel):
    method: str
    count: int
    percentage: float


class AnalyticsStats(BaseModel):
    total_revenue: float
    transaction_count: int
    success_rate: float
    avg_transaction_value: float
    total_completed_transactions: int
    total_pending_transactions: int
    total_failed_transactions: int
    revenue_by_currency: Dict[str, float]
    revenue_by_month: List[MonthRevenue]
    payment_method_distribution: List[MethodShare]
    total_accounts: int = 0
    active_accounts: int = 0
    total_yield_earned: float = 0.0
    cross_border_transactions: int = 0
    accounts_by_type: Dict[str, int] = Field(default_factory=dict)
    yield_by_currency: Dict[str, float] = Field(default_factory=dict)


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


def trailing_months(now: datetime, count: int = 12) -> List[Tuple[datetime, datetime]]:
    """Return [start, end) bounds for `count` calendar months ending with now's month, oldest first."""
    tz = now.tzinfo or timezone.utc
    bounds = []
    for back in range(count - 1, -1, -1):
        y, m = _shift_month(now.year, now.month, -back)
        ny, nm = _shift_month(y, m, 1)
        bounds.append((datetime(y, m, 1, tzinfo=tz), datetime(ny, nm, 1, tzinfo=tz)))
    return bounds


def revenue_by_month(completed: List[Transaction], now: datetime) -> List[MonthRevenue]:
    tz = now.tzinfo or timezone.utc
    out: List[MonthRevenue] = []
    for start, end in trailing_months(now):
        in_month = [tx for tx in completed if start <= tx.created_at.astimezone(tz) < end]
        out.append(
            MonthRevenue(
                month=start.strftime("%b %Y"),
                revenue=sum(float(tx.amount) for tx in in_month),
                transaction_count=len(in_month),
            )
        )
    return out


def payment_method_distribution(transactions: List[Transaction]) -> List[MethodShare]:
    total = len(transactions)
    counts = {m: 0 for m in PAYMENT_METHODS}
    for tx in transactions:
        if tx.payment_method in counts:
            counts[tx.payment_method] += 1
    return [
        MethodShare(method=m, count=c, percentage=(c / total) * 100 if total else 0.0)
        for m, c in counts.items()
        if c > 0
    ]


def compute_analytics(store: LedgerStore, now: Optional[datetime] = None) -> AnalyticsStats:
    started = time.perf_counter()
    now = now or store.clock()
    transactions = store.get_all_transactions()

    completed = [tx for tx in transactions if tx.status == "completed"]
    total_revenue = sum(float(tx.amount) for tx in completed)
    transaction_count = len(transactions)
    completed_count = len(completed)

    revenue_by_currency = {c: 0.0 for c in CURRENCIES}
    for tx in completed:
        if tx.currency in revenue_by_currency:
            revenue_by_currency[tx.currency] += float(tx.amount)

    accounts = store.get_all_virtual_accounts()
    accounts_by_type = {t: 0 for t in ACCOUNT_TYPES}
    for a in accounts:
        accounts_by_type[a.account_type] = accounts_by_type.get(a.account_type, 0) + 1

    yield_by_currency = {c: 0.0 for c in CURRENCIES}
    for y in store.yield_earnings:
        yield_by_currency[y.currency] += float(y.earned)

    stats = AnalyticsStats(
        total_revenue=total_revenue,
        transaction_count=transaction_count,
        success_rate=(completed_count / transaction_count) * 100 if transaction_count else 0.0,
        avg_transaction_value=total_revenue / completed_count if completed_count else 0.0,
        total_completed_transactions=completed_count,
        total_pending_transactions=sum(1 for tx in transactions if tx.status in PENDING_STATUSES),
        total_failed_transactions=sum(1 for tx in transactions if tx.status in FAILED_STATUSES),
        revenue_by_currency=revenue_by_currency,
        revenue_by_month=revenue_by_month(completed, now),
        payment_method_distribution=payment_method_distribution(transactions),
        total_accounts=len(accounts),
        active_accounts=sum(1 for a in accounts if a.status == "active"),
        total_yield_earned=sum(yield_by_currency.values()),
        cross_border_transactions=len(store.get_cross_border_transactions()),
        accounts_by_type=accounts_by_type,
        yield_by_currency=yield_by_currency,
    )
    try:
        get_analytics_compute_seconds().observe(time.perf_counter() - started)
    except Exception:
        pass
    return stats
