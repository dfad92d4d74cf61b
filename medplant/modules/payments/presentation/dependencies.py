# 📄 File: medplant/modules/payments/presentation/dependencies.py
# 🧭 Purpose (Layman Explanation):
# Builds the payment helpers each payment request needs.
# 🧪 Purpose (Technical Summary):
# FastAPI dependencies for the webhook handler and the order service; the Razorpay client
# borrows the application aiohttp session when available and is closed after the request.
# 🔗 Dependencies:
# FastAPI, shared.config.settings
# 🔄 Connected Modules / Calls From:
# payments.presentation.api.v1.*, tests (dependency_overrides)

from typing import AsyncGenerator

from fastapi import Request

from medplant.modules.payments.domain.services.order_service import OrderService
from medplant.modules.payments.domain.services.webhook_service import WebhookEventHandler
from medplant.modules.payments.infrastructure.external.razorpay_client import RazorpayClient
from medplant.shared.config.settings import get_settings


def get_webhook_handler() -> WebhookEventHandler:
    return WebhookEventHandler(webhook_secret=get_settings().RAZORPAY_WEBHOOK_SECRET)


async def get_order_service(request: Request) -> AsyncGenerator[OrderService, None]:
    settings = get_settings()
    payment_config = settings.get_payment_config()
    client = RazorpayClient(
        key_id=payment_config["key_id"],
        key_secret=payment_config["key_secret"],
        api_url=payment_config["api_url"],
        session=getattr(request.app.state, "http_session", None),
    )
    try:
        yield OrderService(client, currency=payment_config["currency"])
    finally:
        await client.close()
