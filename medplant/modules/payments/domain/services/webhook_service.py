# 📄 File: medplant/modules/payments/domain/services/webhook_service.py
# 🧭 Purpose (Layman Explanation):
# When Razorpay tells us "this payment went through", this file checks the message is really from
# Razorpay, marks the order as paid, and hands out what was bought, never twice for the same order.
# 🧪 Purpose (Technical Summary):
# WebhookEventHandler: HMAC-SHA256 verification over the exact raw body (fail closed), event
# filtering, and an at-most-once paid transition implemented as a conditional UPDATE executed in
# the same transaction as the entitlement grant.
# 🔗 Dependencies:
# shared.core.security, shared.infrastructure.database.session, payments repositories
# 🔄 Connected Modules / Calls From:
# payments.presentation.api.v1.webhooks, tests

import json
from typing import Any, AsyncContextManager, Callable, Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from medplant.modules.payments.domain.models.payment_order import WebhookOutcome
from medplant.modules.payments.domain.repositories.payment_repository import (
    EntitlementRepository,
    PaymentOrderRepository,
)
from medplant.modules.payments.domain.services.entitlement_service import EntitlementService
from medplant.modules.payments.infrastructure.database.payment_repository_impl import (
    EntitlementRepositoryImpl,
    PaymentOrderRepositoryImpl,
)
from medplant.shared.core.exceptions import (
    InvalidRequestError,
    WebhookOrderNotFoundError,
    WebhookSignatureInvalidError,
)
from medplant.shared.core.security import verify_signature
from medplant.shared.infrastructure.database.session import session_manager
from medplant.shared.utils.logging import get_logger

logger = get_logger(__name__)

PAYMENT_SUCCESS_EVENTS = frozenset({"payment.captured", "order.paid"})

SessionScope = Callable[[], AsyncContextManager[AsyncSession]]


class WebhookEventHandler:
    """
    Processes inbound payment notifications.

    Signature mismatch raises WebhookSignatureInvalidError before anything is
    read or written. Every other expected case returns a WebhookOutcome.
    """

    def __init__(
        self,
        webhook_secret: Optional[str],
        session_scope: Optional[SessionScope] = None,
        order_repository_factory: Callable[[AsyncSession], PaymentOrderRepository] = PaymentOrderRepositoryImpl,
        entitlement_repository_factory: Callable[[AsyncSession], EntitlementRepository] = EntitlementRepositoryImpl,
        entitlement_service: Optional[EntitlementService] = None
    ):
        self.webhook_secret = webhook_secret
        self._session_scope = session_scope or session_manager.get_session
        self._order_repository_factory = order_repository_factory
        self._entitlement_repository_factory = entitlement_repository_factory
        self.entitlement_service = entitlement_service or EntitlementService()

    async def handle_webhook(self, raw_body: bytes, signature: Optional[str]) -> WebhookOutcome:
        """
        Verify and apply one webhook delivery.

        Args:
            raw_body: Exact request body bytes as received
            signature: Hex HMAC-SHA256 from the provider's signature header

        Raises:
            WebhookSignatureInvalidError: signature missing or wrong
            InvalidRequestError: verified body is not a JSON object
            EntitlementGrantError / DatabaseError: grant failed, order left unpaid
        """
        if not verify_signature(raw_body, signature, self.webhook_secret):
            logger.warning("Webhook rejected: invalid signature")
            raise WebhookSignatureInvalidError()

        payload = parse_event(raw_body)
        event = payload.get("event")
        logger.info("Webhook received", event=event)

        if event not in PAYMENT_SUCCESS_EVENTS:
            return WebhookOutcome.IGNORED_EVENT

        order_id, payment_id = extract_ids(payload)
        try:
            return await self._apply_payment(order_id, payment_id)
        except WebhookOrderNotFoundError as e:
            logger.warning("Webhook for unknown order ignored", order_id=e.details.get("order_id"))
            return WebhookOutcome.ORDER_NOT_FOUND

    async def _apply_payment(self, order_id: Optional[str], payment_id: Optional[str]) -> WebhookOutcome:
        if not order_id:
            raise WebhookOrderNotFoundError(None)

        async with self._session_scope() as session:
            orders = self._order_repository_factory(session)

            order = await orders.get_by_order_id(order_id)
            if order is None:
                raise WebhookOrderNotFoundError(order_id)

            # Only the delivery whose UPDATE matched a row may grant
            claimed = await orders.mark_paid_if_unpaid(order_id, payment_id)
            if not claimed:
                logger.info("Webhook duplicate: order already paid", order_id=order_id)
                return WebhookOutcome.DUPLICATE

            await self.entitlement_service.grant(
                self._entitlement_repository_factory(session), order, payment_id
            )

        logger.info("Payment applied", order_id=order_id, plan_id=order.plan_id)
        return WebhookOutcome.PROCESSED


def parse_event(raw_body: bytes) -> Dict[str, Any]:
    try:
        payload = json.loads(raw_body)
    except ValueError:
        raise InvalidRequestError("Webhook body is not valid JSON")
    if not isinstance(payload, dict):
        raise InvalidRequestError("Webhook body must be a JSON object")
    return payload


def extract_ids(payload: Dict[str, Any]) -> Tuple[Optional[str], Optional[str]]:
    """
    (order_id, payment_id) from a Razorpay event.

    The order entity's id wins; the payment entity's order_id is the fallback.
    """
    inner = payload.get("payload") if isinstance(payload.get("payload"), dict) else {}
    payment = _entity(inner, "payment")
    order = _entity(inner, "order")

    order_id = _string(order.get("id")) or _string(payment.get("order_id"))
    return order_id, _string(payment.get("id"))


def _entity(container: Dict[str, Any], key: str) -> Dict[str, Any]:
    wrapper = container.get(key)
    if not isinstance(wrapper, dict):
        return {}
    entity = wrapper.get("entity")
    return entity if isinstance(entity, dict) else {}


def _string(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
