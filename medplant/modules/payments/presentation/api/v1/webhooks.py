# 📄 File: medplant/modules/payments/presentation/api/v1/webhooks.py
# 🧭 Purpose (Layman Explanation):
# The address Razorpay calls to tell us a payment succeeded.
# 🧪 Purpose (Technical Summary):
# POST /webhooks/{provider}. Passes the exact raw body and the x-{provider}-signature header to
# the WebhookEventHandler. 200 for processed/duplicate/ignored/unknown-order, 400 for a bad
# signature, 500 when processing failed (the provider will redeliver).
# 🔗 Dependencies:
# FastAPI, payments.domain.services.webhook_service
# 🔄 Connected Modules / Calls From:
# medplant.api.v1.router

from fastapi import APIRouter, Depends, Request, status

from medplant.modules.payments.domain.services.webhook_service import WebhookEventHandler
from medplant.modules.payments.presentation.api.schemas.payment_schemas import WebhookAckResponse
from medplant.modules.payments.presentation.dependencies import get_webhook_handler
from medplant.shared.core.exceptions import DatabaseError, InvalidRequestError, MedPlantException
from medplant.shared.utils.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_PROVIDERS = frozenset({"razorpay"})

webhooks_router = APIRouter()


@webhooks_router.post(
    "/webhooks/{provider}",
    response_model=WebhookAckResponse,
    summary="Payment provider webhook",
    responses={
        400: {"description": "Invalid signature or body"},
        404: {"description": "Unknown provider"},
        500: {"description": "Processing failed; provider should retry"},
    },
)
async def payment_webhook(
    provider: str,
    request: Request,
    handler: WebhookEventHandler = Depends(get_webhook_handler),
):
    provider = provider.lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise InvalidRequestError(
            f"Unsupported payment provider: {provider}",
            status_code=status.HTTP_404_NOT_FOUND,
        )

    raw_body = await request.body()
    signature = request.headers.get(f"x-{provider}-signature")

    try:
        outcome = await handler.handle_webhook(raw_body, signature)
    except DatabaseError as e:
        logger.error("Webhook processing failed on the database", details=e.details)
        raise MedPlantException(
            message="Webhook processing failed",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="WEBHOOK_PROCESSING_FAILED",
        ) from e

    return {"success": True, "data": {"outcome": outcome.value}}
