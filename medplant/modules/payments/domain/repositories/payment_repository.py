# 📄 File: medplant/modules/payments/domain/repositories/payment_repository.py
# 🧭 Purpose (Layman Explanation):
# Lists the database operations the payment logic needs, without saying how the database does them.
# 🧪 Purpose (Technical Summary):
# Abstract repository interfaces for payment orders and user entitlements. Implementations are
# bound to one AsyncSession so that the paid transition and the grant share a transaction.
# 🔗 Dependencies:
# abc, payments.domain.models
# 🔄 Connected Modules / Calls From:
# webhook_service.py, order_service.py, infrastructure.database repository implementations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from medplant.modules.payments.domain.models.payment_order import PaymentOrder


class PaymentOrderRepository(ABC):
    """
    Data access for checkout orders.
    """

    @abstractmethod
    async def create(self, order: PaymentOrder) -> PaymentOrder:
        """Persist a newly created order."""
        pass

    @abstractmethod
    async def get_by_order_id(self, order_id: str) -> Optional[PaymentOrder]:
        """Get an order by the provider's order identifier."""
        pass

    @abstractmethod
    async def mark_paid_if_unpaid(self, order_id: str, payment_id: Optional[str]) -> bool:
        """
        Atomically move an order to 'paid'.

        Returns True only for the caller that performed the transition;
        False when the order was already paid or does not exist.
        """
        pass


class EntitlementRepository(ABC):
    """
    Data access for what a user has bought.
    """

    @abstractmethod
    async def add_credits(self, user_id: str, credits: int) -> int:
        """Add credits to the user's balance and return the new balance."""
        pass

    @abstractmethod
    async def activate_plan(
        self,
        user_id: str,
        plan_id: str,
        daily_credits: int,
        subscription_id: Optional[str],
        start: datetime,
        end: datetime
    ) -> None:
        """Activate a timed pro plan for the user."""
        pass
