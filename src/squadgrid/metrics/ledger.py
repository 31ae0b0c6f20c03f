"""Ledger store metrics.

Counters:
- payment_links_created_total{currency}
- ledger_transactions_total{type,status,currency}: one event per status a
  transaction enters (creation, then each settlement step)
- balance_floor_clamps_total{currency}
- widgets_created_total{type}

Gauge:
- account_balance_usd{account}

Histogram:
- analytics_compute_seconds
"""

from __future__ import annotations

from typing import Dict, Optional
import os
from prometheus_client import Counter, Gauge, Histogram, REGISTRY

_links_created: Optional[Counter] = None
_transactions_total: Optional[Counter] = None
_balance_floor_clamps: Optional[Counter] = None
_widgets_created: Optional[Counter] = None
_account_balance_usd: Optional[Gauge] = None
_analytics_seconds: Optional[Histogram] = None


class _NoOp:
    def labels(self, *args, **kwargs):
        return self
    def inc(self, *args, **kwargs):
        return None
    def set(self, *args, **kwargs):
        return None
    def observe(self, *args, **kwargs):
        return None


def _existing(name: str):
    # prometheus_client strips the _total suffix from counter names internally
    try:
        coll = getattr(REGISTRY, "_names_to_collectors", {}).get(name)
        if coll is not None:
            return coll
        for coll in list(getattr(REGISTRY, "_collector_to_names", {}).keys()):  # type: ignore[attr-defined]
            if getattr(coll, "_name", None) in (name, name[: -len("_total")] if name.endswith("_total") else name):
                return coll
    except Exception:
        pass
    return None


def _safe_counter(name: str, doc: str, labelnames):
    if os.getenv("DISABLE_PROMETHEUS", "0") == "1":
        return _NoOp()
    try:
        return Counter(name, doc, labelnames)
    except ValueError:
        return _existing(name) or _NoOp()


def _safe_gauge_labels(name: str, doc: str, labelnames):
    if os.getenv("DISABLE_PROMETHEUS", "0") == "1":
        return _NoOp()
    try:
        return Gauge(name, doc, labelnames)
    except ValueError:
        return _existing(name) or _NoOp()


def _safe_histogram(name: str, doc: str, buckets=None):
    if os.getenv("DISABLE_PROMETHEUS", "0") == "1":
        return _NoOp()
    try:
        if buckets is not None:
            return Histogram(name, doc, buckets=buckets)
        return Histogram(name, doc)
    except ValueError:
        return _existing(name) or _NoOp()


def get_links_created_total():
    global _links_created
    if _links_created is None:
        _links_created = _safe_counter("payment_links_created_total", "Payment links created", ["currency"])
    return _links_created


def get_transactions_total():
    global _transactions_total
    if _transactions_total is None:
        _transactions_total = _safe_counter(
            "ledger_transactions_total", "Transaction status events (creation and each settlement step)", ["type", "status", "currency"]
        )
    return _transactions_total


def get_balance_floor_clamps_total():
    """Counter: debits that would have overdrawn a balance and were floored at zero."""
    global _balance_floor_clamps
    if _balance_floor_clamps is None:
        _balance_floor_clamps = _safe_counter(
            "balance_floor_clamps_total", "Debits floored at a zero balance", ["currency"]
        )
    return _balance_floor_clamps


def get_widgets_created_total():
    global _widgets_created
    if _widgets_created is None:
        _widgets_created = _safe_counter("widgets_created_total", "Widgets created", ["type"])
    return _widgets_created


def get_account_balance_usd():
    global _account_balance_usd
    if _account_balance_usd is None:
        _account_balance_usd = _safe_gauge_labels(
            "account_balance_usd", "Virtual account total balance (stablecoins at par)", ["account"]
        )
    return _account_balance_usd


def get_analytics_compute_seconds():
    global _analytics_seconds
    if _analytics_seconds is None:
        _analytics_seconds = _safe_histogram(
            "analytics_compute_seconds",
            "Time spent aggregating analytics",
            buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1),
        )
    return _analytics_seconds


def inc_transaction(transaction_type: str, status: str, currency: str) -> None:
    try:
        get_transactions_total().labels(transaction_type, status, currency).inc()
    except Exception:
        pass


def set_account_balances(balance_by_account: Dict[str, str]) -> None:
    """Set account_balance_usd for each account id."""
    g = get_account_balance_usd()
    for account_id, total in balance_by_account.items():
        try:
            g.labels(account=str(account_id)).set(float(total))  # type: ignore[attr-defined]
        except Exception:
            # Metrics are optional in constrained environments
            continue
