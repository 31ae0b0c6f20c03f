"""Ledger package.

Public API:
- LedgerStore: payment links, transactions, accounts, yield records and widgets,
  with link counters and balances derived from the transaction set.
- compute_analytics: on-demand aggregates over the store.
- seed_sample_data: fixed demo records.
"""

from .errors import InvalidTransition, LedgerError, PaymentLinkNotFound, ValidationError  # re-export
from .store import LedgerStore  # re-export
from .analytics import AnalyticsStats, compute_analytics  # re-export
from .seed import seed_sample_data  # re-export
