# 📄 File: medplant/modules/payments/domain/services/order_service.py
# 🧭 Purpose (Layman Explanation):
# Starts a purchase: looks up the real price of the chosen plan, asks Razorpay to open an order,
# and remembers the order so we recognise it when the payment confirmation arrives.
# 🧪 Purpose (Technical Summary):
# Checkout order creation against the server-side plan catalogue; persists a 'created'
# PaymentOrder keyed by the provider order id.
# 🔗 Dependencies:
# payments.domain.models.plans, RazorpayClient, PaymentOrderRepositoryImpl, session manager
# 🔄 Connected Modules / Calls From:
# payments.presentation.api.v1.orders

import time
from typing import Any, Callable, Dict, Optional

from medplant.modules.payments.domain.models.payment_order import OrderStatus, PaymentOrder
from medplant.modules.payments.domain.models.plans import get_plan
from medplant.modules.payments.domain.services.webhook_service import SessionScope
from medplant.modules.payments.infrastructure.database.payment_repository_impl import (
    PaymentOrderRepositoryImpl,
)
from medplant.modules.payments.infrastructure.external.razorpay_client import RazorpayClient
from medplant.shared.core.exceptions import (
    InvalidRequestError,
    PaymentProviderError,
    ServerMisconfiguredError,
)
from medplant.shared.infrastructure.database.session import session_manager
from medplant.shared.infrastructure.external_apis.errors import ExternalAPIError
from medplant.shared.utils.logging import get_logger

logger = get_logger(__name__)


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def build_receipt(user_id: str, epoch_ms: int) -> str:
    return f"rcpt_{user_id[:8]}_{epoch_ms}"


class OrderService:
    """Creates checkout orders."""

    def __init__(
        self,
        client: RazorpayClient,
        currency: str = "INR",
        session_scope: Optional[SessionScope] = None,
        clock_ms: Optional[Callable[[], int]] = None
    ):
        self.client = client
        self.currency = currency
        self._session_scope = session_scope or session_manager.get_session
        self._clock_ms = clock_ms or _epoch_ms

    async def create_order(self, user_id: str, plan_id: str) -> Dict[str, Any]:
        """
        Returns:
            ``{"order_id", "amount", "currency", "key_id"}`` for the mobile checkout sheet

        Raises:
            InvalidRequestError: unknown plan or empty user id
            ServerMisconfiguredError: provider credentials missing
            PaymentProviderError: provider rejected the call
        """
        plan = get_plan(plan_id)
        if plan is None:
            raise InvalidRequestError(f"Unknown plan: {plan_id}", field="plan_id")
        if not user_id or not user_id.strip():
            raise InvalidRequestError("user_id is required", field="user_id")

        if not self.client.key_id:
            raise ServerMisconfiguredError("RAZORPAY_KEY_ID")
        if not self.client.key_secret:
            raise ServerMisconfiguredError("RAZORPAY_KEY_SECRET")

        receipt = build_receipt(user_id, self._clock_ms())

        try:
            entity = await self.client.create_order(
                amount=plan.amount,
                currency=self.currency,
                receipt=receipt,
                notes={"user_id": user_id, "plan_id": plan.plan_id},
            )
        except ExternalAPIError as e:
            raise PaymentProviderError("Failed to create payment order", provider_status=e.status) from e

        order_id = entity.get("id") if isinstance(entity, dict) else None
        if not isinstance(order_id, str) or not order_id:
            raise PaymentProviderError("Payment provider returned no order id")

        order = PaymentOrder(
            order_id=order_id,
            user_id=user_id,
            plan_id=plan.plan_id,
            amount=plan.amount,
            currency=self.currency,
            status=OrderStatus.CREATED,
            receipt=receipt,
        )
        async with self._session_scope() as session:
            await PaymentOrderRepositoryImpl(session).create(order)

        logger.info("Checkout order created", order_id=order_id, plan_id=plan.plan_id)
        return {
            "order_id": order_id,
            "amount": plan.amount,
            "currency": self.currency,
            "key_id": self.client.key_id,
        }
