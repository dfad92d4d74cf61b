# 📄 File: medplant/modules/payments/presentation/api/v1/orders.py
# 🧭 Purpose (Layman Explanation):
# The address the app calls when the user taps "Buy", to get a Razorpay order to pay.
# 🧪 Purpose (Technical Summary):
# POST /payments/orders: validates the body, prices the plan server-side and creates the order.
# 🔗 Dependencies:
# FastAPI, payments.domain.services.order_service
# 🔄 Connected Modules / Calls From:
# medplant.api.v1.router

from fastapi import APIRouter, Depends, status

from medplant.modules.payments.domain.services.order_service import OrderService
from medplant.modules.payments.presentation.api.schemas.payment_schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
)
from medplant.modules.payments.presentation.dependencies import get_order_service

orders_router = APIRouter(prefix="/payments")


@orders_router.post(
    "/orders",
    response_model=CreateOrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a checkout order",
)
async def create_order(
    body: CreateOrderRequest,
    service: OrderService = Depends(get_order_service),
):
    data = await service.create_order(user_id=body.user_id, plan_id=body.plan_id)
    return {"success": True, "data": data}
