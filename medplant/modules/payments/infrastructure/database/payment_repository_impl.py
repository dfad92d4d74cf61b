# 📄 File: medplant/modules/payments/infrastructure/database/payment_repository_impl.py
# 🧭 Purpose (Layman Explanation):
# Does the actual database work for payments: saving new orders, marking an order paid exactly
# once, and adding credits or switching on a pro plan for a user.
# 🧪 Purpose (Technical Summary):
# SQLAlchemy implementations of PaymentOrderRepository and EntitlementRepository bound to one
# AsyncSession. The paid transition is a conditional UPDATE whose rowcount elects the single
# caller allowed to grant; credit increments are done in SQL, not read-modify-write.
# 🔗 Dependencies:
# SQLAlchemy (select, update, func), payments.infrastructure.database.models
# 🔄 Connected Modules / Calls From:
# webhook_service.py, order_service.py

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from medplant.modules.payments.domain.models.payment_order import OrderStatus, PaymentOrder
from medplant.modules.payments.domain.repositories.payment_repository import (
    EntitlementRepository,
    PaymentOrderRepository,
)
from medplant.modules.payments.infrastructure.database.models import (
    PaymentOrderModel,
    UserSubscriptionModel,
)

logger = logging.getLogger(__name__)


class PaymentOrderRepositoryImpl(PaymentOrderRepository):
    """
    SQLAlchemy implementation of the payment order repository.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, order: PaymentOrder) -> PaymentOrder:
        model = PaymentOrderModel(
            order_id=order.order_id,
            user_id=order.user_id,
            plan_id=order.plan_id,
            amount=order.amount,
            currency=order.currency,
            status=order.status.value,
            receipt=order.receipt,
            payment_id=order.payment_id,
        )
        self.session.add(model)
        await self.session.flush()
        logger.info(f"Payment order stored: {order.order_id} ({order.plan_id})")
        return order

    async def get_by_order_id(self, order_id: str) -> Optional[PaymentOrder]:
        result = await self.session.execute(
            select(PaymentOrderModel).where(PaymentOrderModel.order_id == order_id)
        )
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return PaymentOrder.model_validate(model)

    async def mark_paid_if_unpaid(self, order_id: str, payment_id: Optional[str]) -> bool:
        stmt = (
            update(PaymentOrderModel)
            .where(
                PaymentOrderModel.order_id == order_id,
                PaymentOrderModel.status != OrderStatus.PAID.value,
            )
            .values(status=OrderStatus.PAID.value, payment_id=payment_id, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1


class EntitlementRepositoryImpl(EntitlementRepository):
    """
    SQLAlchemy implementation of the entitlement repository.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add_credits(self, user_id: str, credits: int) -> int:
        result = await self.session.execute(
            update(UserSubscriptionModel)
            .where(UserSubscriptionModel.user_id == user_id)
            .values(
                daily_credits=UserSubscriptionModel.daily_credits + credits,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            self.session.add(
                UserSubscriptionModel(user_id=user_id, plan="free", is_pro=False, daily_credits=credits)
            )
            await self.session.flush()
            return credits

        balance = await self.session.scalar(
            select(UserSubscriptionModel.daily_credits).where(UserSubscriptionModel.user_id == user_id)
        )
        return int(balance or 0)

    async def activate_plan(
        self,
        user_id: str,
        plan_id: str,
        daily_credits: int,
        subscription_id: Optional[str],
        start: datetime,
        end: datetime
    ) -> None:
        model = await self.session.get(UserSubscriptionModel, user_id)
        if model is None:
            model = UserSubscriptionModel(user_id=user_id)
            self.session.add(model)

        model.plan = plan_id
        model.is_pro = True
        model.daily_credits = daily_credits
        model.last_reset_date = start.date()
        model.subscription_id = subscription_id
        model.plan_start_date = start
        model.plan_end_date = end

        await self.session.flush()
