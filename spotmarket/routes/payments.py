"""
payments.py — Payment intent, webhook, and purchase history routes.

Routes:
  POST /api/create-payment-intent  — {mapId, amount, currency} → {clientSecret}  (20/minute)
  POST /api/webhook                — Stripe webhook (raw body + Stripe-Signature)
  GET  /api/v1/purchases           — caller's completed purchases, newest first

The two /api/* routes answer errors as {"error": "..."} to match what the
web client's checkout expects; the rest of the API uses {"detail": "..."}.

A payment intent is only created for the map's listed total (price plus
processor fee) in the default currency; anything else is a 400.

Webhook contract:
  - bad / missing signature, or no signing secret configured → 400, nothing written
  - payment_intent.succeeded → purchase recorded + map purchase_count += 1
  - any other event type → acknowledged, ignored
  - a database failure while recording → 500 so Stripe redelivers the event
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from spotmarket.core.config import settings
from spotmarket.core.database import get_db
from spotmarket.core.rate_limit import PAYMENT_INTENT_LIMIT, limiter
from spotmarket.core.security import WebhookSignatureError, verify_webhook_signature
from spotmarket.models.payment import (
    PaymentIntentRequest,
    PaymentIntentResponse,
    PurchaseOut,
    WebhookAck,
)
from spotmarket.routes.auth import CurrentUser
from spotmarket.services import payments
from spotmarket.services.map_store import MapNotFoundError, MapStore
from spotmarket.services.pricing import total_with_fee

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])


def get_payment_gateway() -> payments.PaymentGateway:
    return payments.payment_gateway


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/api/create-payment-intent", response_model=PaymentIntentResponse)
@limiter.limit(PAYMENT_INTENT_LIMIT)
async def create_payment_intent(
    request: Request,
    payload: PaymentIntentRequest,
    current_user: CurrentUser,
    db=Depends(get_db),
    gateway: payments.PaymentGateway = Depends(get_payment_gateway),
):
    """Start a checkout for a map that is listed for sale."""
    if db is None:
        return _error(503, "Database unavailable")

    try:
        doc = await MapStore(db).get(payload.map_id)
    except MapNotFoundError:
        return _error(404, "Map not found")
    if doc.get("visibility") != "public" or not doc.get("for_sale") or not doc.get("price"):
        return _error(400, "This map is not for sale")
    if doc.get("owner_id") == current_user.id:
        return _error(400, "You cannot purchase your own map")

    currency = (payload.currency or settings.default_currency).lower()
    if currency != settings.default_currency.lower():
        return _error(400, f"Unsupported currency: {currency}")
    expected = total_with_fee(doc["price"])
    if payload.amount != expected:
        return _error(400, f"Amount does not match the listed total ({expected})")

    try:
        secret = await gateway.create_payment_intent(
            payload.map_id, payload.amount, currency, buyer_id=current_user.id
        )
    except payments.PaymentProviderError as exc:
        return _error(500, str(exc))

    return PaymentIntentResponse(client_secret=secret, demo=gateway.demo)


@router.post("/api/webhook", response_model=WebhookAck)
async def stripe_webhook(request: Request, db=Depends(get_db)):
    body = await request.body()
    try:
        verify_webhook_signature(
            body,
            request.headers.get("stripe-signature"),
            settings.stripe_webhook_secret,
            tolerance=settings.stripe_webhook_tolerance_seconds,
        )
    except WebhookSignatureError as exc:
        logger.warning("Webhook signature verification failed: %s", exc)
        return _error(400, "Webhook signature verification failed")

    try:
        event = json.loads(body)
    except ValueError:
        return _error(400, "Invalid JSON payload")
    if not isinstance(event, dict):
        return _error(400, "Invalid event payload")

    if event.get("type") == payments.PAYMENT_SUCCEEDED:
        if db is None:
            return _error(503, "Database unavailable")
        try:
            await payments.PurchaseService(db).handle_event(event)
        except Exception:
            logger.exception("Failed to record purchase for event %s", event.get("id"))
            return _error(500, "Failed to record purchase")

    return WebhookAck(received=True)


@router.get("/api/v1/purchases", response_model=list[PurchaseOut])
async def my_purchases(current_user: CurrentUser, db=Depends(get_db)):
    if db is None:
        raise HTTPException(status_code=503, detail="Database unavailable")

    docs = await payments.PurchaseService(db).list_for_buyer(current_user.id)
    store = MapStore(db)
    items = []
    for doc in docs:
        try:
            title = (await store.get(doc["map_id"])).get("title")
        except MapNotFoundError:
            title = None
        items.append(
            PurchaseOut(
                id=str(doc["_id"]),
                map_id=doc["map_id"],
                map_title=title,
                buyer_id=doc.get("buyer_id"),
                amount=doc.get("amount", 0),
                currency=doc.get("currency", settings.default_currency),
                payment_intent_id=doc["payment_intent_id"],
                status=doc.get("status", "completed"),
                created_at=doc["created_at"],
                completed_at=doc.get("completed_at"),
            )
        )
    return items
