"""
Payment bridge — Stripe PaymentIntents plus purchase bookkeeping.

Two gateways behind one interface, chosen once at startup:

  StripePaymentGateway — POST /v1/payment_intents over httpx (form-encoded,
                         basic auth with the secret key). Used when
                         STRIPE_SECRET_KEY is set.
  DemoPaymentGateway   — returns a "demo_" client secret and never calls
                         out. The client shows its demo checkout.

Completion happens only through the signed webhook
(core/security.verify_webhook_signature). On payment_intent.succeeded,
PurchaseService records a completed purchase and bumps the map's
purchase_count. Redelivered events for a completed intent are ignored; a
redelivery after a failed count finishes the pending purchase.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from spotmarket.core.config import Settings, settings
from spotmarket.services.map_store import MapStore

logger = logging.getLogger(__name__)

STRIPE_API_BASE = "https://api.stripe.com/v1"
PURCHASES = "purchases"
PAYMENT_SUCCEEDED = "payment_intent.succeeded"
STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"


class PaymentProviderError(Exception):
    """The processor rejected the request or could not be reached."""


class PaymentGateway:
    demo = True

    async def create_payment_intent(
        self,
        map_id: str,
        amount: int,
        currency: str,
        buyer_id: Optional[str] = None,
    ) -> str:
        """Return the client secret for a new payment intent."""
        raise NotImplementedError


class DemoPaymentGateway(PaymentGateway):
    demo = True

    async def create_payment_intent(self, map_id, amount, currency, buyer_id=None) -> str:
        intent_id = f"demo_pi_{uuid.uuid4().hex[:24]}"
        logger.info("Demo payment intent %s for map %s (%s %s)", intent_id, map_id, amount, currency)
        return f"{intent_id}_secret_demo"


class StripePaymentGateway(PaymentGateway):
    demo = False

    def __init__(
        self,
        secret_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.secret_key = secret_key
        self.timeout = timeout
        self._transport = transport

    async def create_payment_intent(self, map_id, amount, currency, buyer_id=None) -> str:
        form = {
            "amount": str(amount),
            "currency": currency,
            "automatic_payment_methods[enabled]": "true",
            "metadata[mapId]": map_id,
        }
        if buyer_id:
            form["metadata[buyerId]"] = buyer_id

        async with httpx.AsyncClient(
            base_url=STRIPE_API_BASE,
            auth=(self.secret_key, ""),
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post("/payment_intents", data=form)
                response.raise_for_status()
                return response.json()["client_secret"]
            except httpx.HTTPStatusError as exc:
                message = _stripe_error_message(exc.response)
                logger.error("Stripe error %s: %s", exc.response.status_code, message)
                raise PaymentProviderError(message) from exc
            except httpx.HTTPError as exc:
                logger.error("Stripe request failed: %s", exc)
                raise PaymentProviderError("Payment processor unavailable") from exc
            except (KeyError, ValueError) as exc:
                logger.error("Unexpected Stripe response: %s", exc)
                raise PaymentProviderError("Unexpected response from payment processor") from exc


def _stripe_error_message(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.text[:200] or f"HTTP {response.status_code}"


def build_payment_gateway(config: Settings = settings) -> PaymentGateway:
    if config.payments_live:
        logger.info("Payments: live Stripe gateway")
        return StripePaymentGateway(config.stripe_secret_key)
    logger.warning(
        "STRIPE_SECRET_KEY not set — payments run in demo mode, no charges are created."
    )
    return DemoPaymentGateway()


# Module-level singleton, selected once at import/startup
payment_gateway = build_payment_gateway()


# ── Purchases ─────────────────────────────────────────────────────────────────

class PurchaseService:
    def __init__(self, db) -> None:
        self.db = db
        self.collection = db[PURCHASES]

    async def handle_event(self, event: dict[str, Any]) -> Optional[dict]:
        """Apply a verified webhook event. Returns the new purchase doc, if any."""
        if event.get("type") != PAYMENT_SUCCEEDED:
            logger.debug("Ignoring webhook event type %s", event.get("type"))
            return None
        intent = (event.get("data") or {}).get("object") or {}
        return await self.record_completed(intent)

    async def record_completed(self, intent: dict[str, Any]) -> Optional[dict]:
        """
        Record a succeeded payment intent and count it on the map.

        The row is written as "pending", the map's purchase_count is bumped,
        and only then is the row flipped to "completed". A redelivered event
        for a completed intent is a no-op; one for a pending intent (the
        count failed last time) finishes the count.
        """
        intent_id = intent.get("id")
        metadata = intent.get("metadata") or {}
        map_id = metadata.get("mapId")
        if not intent_id or not map_id:
            logger.warning("payment_intent.succeeded without id/mapId metadata — skipped")
            return None

        doc = await self.collection.find_one({"payment_intent_id": intent_id})
        if doc and doc.get("status") == STATUS_COMPLETED:
            logger.info("Payment intent %s already recorded", intent_id)
            return None

        if doc is None:
            doc = {
                "map_id": map_id,
                "buyer_id": metadata.get("buyerId"),
                "amount": int(intent.get("amount") or 0),
                "currency": intent.get("currency") or settings.default_currency,
                "payment_intent_id": intent_id,
                "status": STATUS_PENDING,
                "created_at": datetime.now(tz=timezone.utc),
                "completed_at": None,
            }
            result = await self.collection.insert_one(doc)
            doc["_id"] = result.inserted_id
        else:
            logger.info("Resuming pending purchase %s for intent %s", doc["_id"], intent_id)

        if not await MapStore(self.db).increment_purchases(doc["map_id"]):
            logger.warning("Purchase %s recorded for missing map %s", doc["_id"], doc["map_id"])

        completed = {"status": STATUS_COMPLETED, "completed_at": datetime.now(tz=timezone.utc)}
        await self.collection.update_one({"_id": doc["_id"]}, {"$set": completed})
        doc.update(completed)
        logger.info("Purchase completed: map %s, intent %s", doc["map_id"], intent_id)
        return doc

    async def list_for_buyer(self, buyer_id: str) -> list[dict]:
        docs = []
        query = {"buyer_id": buyer_id, "status": STATUS_COMPLETED}
        async for doc in self.collection.find(query).sort("created_at", -1):
            docs.append(doc)
        return docs
