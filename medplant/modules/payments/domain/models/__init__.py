from .payment_order import OrderStatus, PaymentOrder, WebhookOutcome
from .plans import PLANS, PlanDefinition, PlanKind, get_plan

__all__ = [
    "OrderStatus",
    "PaymentOrder",
    "WebhookOutcome",
    "PLANS",
    "PlanDefinition",
    "PlanKind",
    "get_plan",
]
