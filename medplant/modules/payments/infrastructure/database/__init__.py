from .models import PaymentOrderModel, UserSubscriptionModel
from .payment_repository_impl import EntitlementRepositoryImpl, PaymentOrderRepositoryImpl

__all__ = [
    "PaymentOrderModel",
    "UserSubscriptionModel",
    "EntitlementRepositoryImpl",
    "PaymentOrderRepositoryImpl",
]
