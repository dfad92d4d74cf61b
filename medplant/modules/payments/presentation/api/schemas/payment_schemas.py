# 📄 File: medplant/modules/payments/presentation/api/schemas/payment_schemas.py
# 🧭 Purpose (Layman Explanation):
# The shapes of the messages the app sends to start a purchase, and what it gets back.
# 🧪 Purpose (Technical Summary):
# Pydantic request/response schemas for checkout order creation and webhook acknowledgements.
# 🔗 Dependencies:
# pydantic
# 🔄 Connected Modules / Calls From:
# payments.presentation.api.v1.orders, payments.presentation.api.v1.webhooks

from pydantic import BaseModel, Field

from medplant.modules.payments.domain.models.payment_order import WebhookOutcome


class CreateOrderRequest(BaseModel):
    """Checkout request from the mobile app"""
    plan_id: str = Field(..., min_length=1, description="Plan identifier, e.g. pack_10 or pro_basic")
    user_id: str = Field(..., min_length=1, max_length=64, description="Auth backend user id")


class OrderData(BaseModel):
    order_id: str
    amount: int = Field(..., description="Amount in paise")
    currency: str
    key_id: str = Field(..., description="Public key id for the checkout sheet")


class CreateOrderResponse(BaseModel):
    success: bool = True
    data: OrderData


class WebhookAckData(BaseModel):
    outcome: WebhookOutcome


class WebhookAckResponse(BaseModel):
    success: bool = True
    data: WebhookAckData
