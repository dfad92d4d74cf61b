# 📄 File: medplant/modules/payments/domain/models/payment_order.py
# 🧭 Purpose (Layman Explanation):
# Describes a checkout order (who is buying which plan, for how much) and whether it has been paid.
# 🧪 Purpose (Technical Summary):
# Domain model for PaymentOrder with its created -> paid status lifecycle and the webhook
# processing outcome enumeration.
# 🔗 Dependencies:
# pydantic, datetime, enum
# 🔄 Connected Modules / Calls From:
# order_service.py, webhook_service.py, payment_order_repository_impl.py

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class OrderStatus(str, Enum):
    """Payment order status. 'paid' is terminal."""
    CREATED = "created"
    PAID = "paid"


class WebhookOutcome(str, Enum):
    """What a verified webhook delivery did"""
    PROCESSED = "processed"              # order marked paid, entitlement granted
    DUPLICATE = "duplicate"              # order was already paid, nothing applied
    IGNORED_EVENT = "ignored_event"      # event type we do not act on
    ORDER_NOT_FOUND = "order_not_found"  # order id unknown or missing


class PaymentOrder(BaseModel):
    """
    A checkout order created through the payment provider.

    Transitions to PAID exactly once, by the webhook handler.
    """

    order_id: str
    user_id: str
    plan_id: str
    amount: int = Field(..., ge=0, description="Amount in the smallest currency unit (paise)")
    currency: str = "INR"
    status: OrderStatus = OrderStatus.CREATED
    receipt: Optional[str] = None
    payment_id: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @property
    def is_paid(self) -> bool:
        return self.status == OrderStatus.PAID
