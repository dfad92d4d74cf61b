# 📄 File: medplant/modules/payments/infrastructure/external/razorpay_client.py
# 🧭 Purpose (Layman Explanation):
# Talks to Razorpay, the payment company, to open a new checkout order the app can pay for.
# 🧪 Purpose (Technical Summary):
# Razorpay Orders API client (POST /orders, HTTP basic auth with key id/secret) built on the
# shared aiohttp APIClient.
# 🔗 Dependencies:
# aiohttp (BasicAuth), shared.infrastructure.external_apis
# 🔄 Connected Modules / Calls From:
# payments.domain.services.order_service, payments.presentation.dependencies

from typing import Any, Dict, Optional

import aiohttp

from medplant.shared.infrastructure.external_apis.api_client import APIClient
from medplant.shared.infrastructure.external_apis.errors import APIConfigurationError

API_NAME = "razorpay"


class RazorpayClient(APIClient):
    """Minimal Razorpay Orders API client."""

    def __init__(
        self,
        key_id: Optional[str],
        key_secret: Optional[str],
        api_url: str = "https://api.razorpay.com/v1",
        session: Optional[Any] = None,
        timeout: float = 15
    ):
        super().__init__(base_url=api_url, api_name=API_NAME, timeout=timeout, session=session)
        self.key_id = key_id
        self.key_secret = key_secret

    @property
    def is_configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    async def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """
        Create an order.

        Returns:
            The provider's order entity (``id``, ``amount``, ``currency``, ``receipt``, ``status``)
        """
        if not self.is_configured:
            raise APIConfigurationError("Razorpay credentials are not configured", api_name=API_NAME)

        return await self.post_json(
            "orders",
            {
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {},
            },
            auth=aiohttp.BasicAuth(self.key_id, self.key_secret),
        )
