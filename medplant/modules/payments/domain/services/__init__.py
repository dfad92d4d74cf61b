from .entitlement_service import EntitlementService
from .order_service import OrderService
from .webhook_service import WebhookEventHandler

__all__ = ["EntitlementService", "OrderService", "WebhookEventHandler"]
