"""Errors raised by the ledger store.

Lookups by id return None for unknown records; only operations that cannot
proceed without the referenced record raise.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for ledger store errors."""


class ValidationError(LedgerError, ValueError):
    """Rejected input (bad amount, unknown enum member) before anything is stored."""


class PaymentLinkNotFound(LedgerError, LookupError):
    def __init__(self, link_id: str):
        super().__init__("Payment link not found")
        self.link_id = link_id


class InvalidTransition(LedgerError):
    def __init__(self, transaction_id: str, current: str, requested: str):
        super().__init__(f"Transaction {transaction_id} cannot move from {current} to {requested}")
        self.transaction_id = transaction_id
        self.current = current
        self.requested = requested
