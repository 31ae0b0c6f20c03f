"""
HTTP API over a LedgerStore.

What it does:
- Exposes payment links, checkout lookup, payment attempts, transactions,
  widgets, virtual accounts, yield earnings and analytics as JSON endpoints.
- Validates request bodies with Pydantic before touching the store; store-level
  validation errors map to 400, unknown links to 404, illegal settlement
  transitions to 409.
- Simulates settlement failures for payment attempts at the configured rate and
  records every failed attempt as a `failed` transaction.

Every response carries `success`; errors use `{"success": false, "error", "message"}`.
"""

from __future__ import annotations

import logging
import random
from dataclasses import asdict
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config.loader import Settings
from ..ledger.analytics import compute_analytics
from ..ledger.errors import InvalidTransition, PaymentLinkNotFound, ValidationError
from ..ledger.model import CURRENCIES, WIDGET_TYPES, generate_grid_transfer_id, generate_signature, generate_wallet_address
from ..ledger.store import LedgerStore

log = logging.getLogger("squadgrid.api")


class CreatePaymentLinkRequest(BaseModel):
    amount: Optional[str] = None
    currency: Optional[str] = None
    description: Optional[str] = None
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None


class PaymentRequest(BaseModel):
    payment_link_id: Optional[str] = None
    payment_method: Optional[str] = None
    customer_wallet: Optional[str] = None
    customer_email: Optional[str] = None
    solana_signature: Optional[str] = None


class CreateWidgetRequest(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    button_text: Optional[str] = None
    payment_link_id: Optional[str] = None
    style: Optional[str] = None
    size: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    primary_color: Optional[str] = None
    border_radius: Optional[int] = None
    show_amount: Optional[bool] = None
    show_currency: Optional[bool] = None


class CreateVirtualAccountRequest(BaseModel):
    account_name: Optional[str] = None
    account_type: Optional[str] = None
    enable_yield: bool = False


class SettleTransactionRequest(BaseModel):
    status: str


def _ok(payload: Dict[str, Any], status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder({"success": True, **payload}))


def _error(status_code: int, error: str, message: str, **extra: Any) -> JSONResponse:
    body = {"success": False, "error": error, "message": message}
    body.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def create_app(store: LedgerStore, settings: Optional[Settings] = None, rng: Optional[random.Random] = None) -> FastAPI:
    settings = settings or Settings()
    rng = rng or random.Random()
    app = FastAPI(title="SquadGrid Ledger API")
    app.state.store = store
    app.state.settings = settings

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError):
        return _error(400, "Invalid request", str(exc))

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid')}" for err in exc.errors()
        )
        return _error(400, "Invalid request", problems or "Malformed request body")

    @app.exception_handler(PaymentLinkNotFound)
    async def _link_not_found(request: Request, exc: PaymentLinkNotFound):
        return _error(404, "Payment link not found", "The specified payment link does not exist")

    @app.exception_handler(InvalidTransition)
    async def _invalid_transition(request: Request, exc: InvalidTransition):
        return _error(409, "Invalid status transition", str(exc))

    # ---- Payment links ----

    @app.get("/api/payment-links")
    def list_payment_links():
        return _ok({"payment_links": [asdict(l) for l in store.get_all_payment_links()]})

    @app.post("/api/payment-links")
    def create_payment_link(body: CreatePaymentLinkRequest):
        if not body.amount or not body.currency:
            return _error(400, "Missing required fields", "Amount and currency are required")
        if body.currency not in CURRENCIES:
            return _error(400, "Invalid currency", f"Currency must be one of: {', '.join(CURRENCIES)}")
        try:
            link = store.create_payment_link(
                amount=body.amount,
                currency=body.currency,
                # In production this comes from the authenticated merchant
                merchant_wallet=generate_wallet_address(),
                description=body.description,
                success_url=body.success_url,
                cancel_url=body.cancel_url,
            )
        except ValidationError as e:
            return _error(400, "Invalid amount", str(e))
        return _ok({"payment_link": asdict(link)}, status_code=201)

    @app.get("/api/checkout/{link_id}")
    def checkout(link_id: str):
        link = store.get_payment_link_by_link_id(link_id)
        if link is None:
            return _error(404, "Payment link not found", "The payment link you are looking for does not exist or has been deleted")
        if link.status in ("expired", "paused"):
            return _error(410, "Payment link unavailable", f"This payment link is {link.status}")
        return _ok({"payment_link": asdict(link)})

    # ---- Payments & transactions ----

    @app.post("/api/payments")
    def create_payment(body: PaymentRequest):
        if not body.payment_link_id or not body.payment_method:
            return _error(400, "Missing required fields", "Payment link ID and payment method are required")
        link = store.get_payment_link_by_link_id(body.payment_link_id)
        if link is None:
            return _error(404, "Payment link not found", "The specified payment link does not exist")
        if link.status != "active":
            return _error(410, "Payment link not available", f"This payment link is {link.status}")
        if body.payment_method == "wallet" and not body.customer_wallet and not body.solana_signature:
            return _error(400, "Invalid payment data", "Customer wallet and transaction signature are required for wallet payments")

        signature = body.solana_signature or generate_signature()
        grid_transfer_id = generate_grid_transfer_id()
        failed = rng.random() < settings.payment_failure_rate
        tx = store.create_transaction(
            transaction_type="payment",
            amount=link.amount,
            currency=link.currency,
            status="failed" if failed else "completed",
            payment_method=body.payment_method,
            payment_link_id=link.link_id,
            customer_wallet=body.customer_wallet,
            customer_email=body.customer_email,
            solana_signature=signature,
            grid_transfer_id=grid_transfer_id,
        )
        if failed:
            log.warning("payment attempt failed link_id=%s transaction_id=%s", link.link_id, tx.id)
            return _error(
                402,
                "Payment failed",
                "Transaction could not be processed. Please try again.",
                transaction_id=tx.id,
            )
        return _ok({"transaction": asdict(tx), "signature": signature, "grid_transfer_id": grid_transfer_id})

    @app.get("/api/transactions")
    def list_transactions():
        return _ok({"transactions": [asdict(t) for t in store.get_all_transactions()]})

    @app.post("/api/transactions/{transaction_id}/settle")
    def settle_transaction(transaction_id: str, body: SettleTransactionRequest):
        tx = store.settle_transaction(transaction_id, body.status)
        if tx is None:
            return _error(404, "Transaction not found", f"No transaction with id {transaction_id}")
        return _ok({"transaction": asdict(tx)})

    # ---- Widgets ----

    @app.get("/api/widgets")
    def list_widgets():
        return _ok({"widgets": [asdict(w) for w in store.get_all_widgets()]})

    @app.post("/api/widgets")
    def create_widget(body: CreateWidgetRequest):
        if not body.name or not body.button_text or not body.payment_link_id or not body.type:
            return _error(400, "Missing required fields", "Name, type, button text, and payment link ID are required")
        if body.type not in WIDGET_TYPES:
            return _error(400, "Invalid widget type", f"Widget type must be one of: {', '.join(WIDGET_TYPES)}")
        widget = store.create_widget(**body.model_dump())
        return _ok({"widget": asdict(widget)}, status_code=201)

    # ---- Accounts & yield ----

    @app.get("/api/accounts")
    def list_accounts():
        return _ok({"accounts": [asdict(a) for a in store.get_all_virtual_accounts()]})

    @app.post("/api/accounts")
    def create_account(body: CreateVirtualAccountRequest):
        if not body.account_name or not body.account_type:
            return _error(400, "Missing required fields", "Account name and account type are required")
        account = store.create_virtual_account(body.account_name, body.account_type, enable_yield=body.enable_yield)
        return _ok({"account": asdict(account)}, status_code=201)

    @app.get("/api/yield-earnings")
    def list_yield_earnings():
        return _ok({
            "earnings": [asdict(y) for y in store.get_all_yield_earnings()],
            "total_earned": store.total_yield_earned(),
        })

    # ---- Analytics ----

    @app.get("/api/analytics")
    def analytics():
        return _ok({"stats": compute_analytics(store).model_dump()})

    return app
