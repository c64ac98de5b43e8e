"""
payment.py — Schemas for the payment bridge.

The two public payment routes keep the camelCase wire format the web
client already speaks ({mapId, amount, currency} → {clientSecret}), so
fields carry aliases. Purchases read back through /api/v1/purchases use
the API's usual snake_case.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

PurchaseStatus = Literal["pending", "completed"]


class PaymentIntentRequest(BaseModel):
    """Payload for POST /api/create-payment-intent."""
    model_config = ConfigDict(populate_by_name=True)

    map_id: str = Field(alias="mapId", min_length=1)
    amount: int = Field(gt=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)


class PaymentIntentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_secret: str = Field(alias="clientSecret")
    demo: bool = False


class PurchaseOut(BaseModel):
    id: str
    map_id: str
    map_title: Optional[str] = None
    buyer_id: Optional[str] = None
    amount: int
    currency: str
    payment_intent_id: str
    status: PurchaseStatus
    created_at: datetime
    completed_at: Optional[datetime] = None


class WebhookAck(BaseModel):
    received: bool = True
