from .payment_repository import EntitlementRepository, PaymentOrderRepository

__all__ = ["EntitlementRepository", "PaymentOrderRepository"]
