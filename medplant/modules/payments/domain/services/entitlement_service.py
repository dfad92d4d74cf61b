# 📄 File: medplant/modules/payments/domain/services/entitlement_service.py
# 🧭 Purpose (Layman Explanation):
# Gives the buyer what they paid for: extra scans for a scan pack, or a pro plan that runs
# for a month or a year.
# 🧪 Purpose (Technical Summary):
# Applies the plan catalogue to a paid order: credit packs increment the balance, subscriptions
# activate with expiry = now + duration. Unknown plans raise so the paid transition rolls back.
# 🔗 Dependencies:
# payments.domain.models.plans, payments.domain.repositories
# 🔄 Connected Modules / Calls From:
# webhook_service.py

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from medplant.modules.payments.domain.models.payment_order import PaymentOrder
from medplant.modules.payments.domain.models.plans import PlanKind, get_plan
from medplant.modules.payments.domain.repositories.payment_repository import EntitlementRepository
from medplant.shared.core.exceptions import EntitlementGrantError

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EntitlementService:
    """Turns a paid order into credits or an active plan."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or _utcnow

    async def grant(
        self,
        repository: EntitlementRepository,
        order: PaymentOrder,
        payment_id: Optional[str]
    ) -> None:
        plan = get_plan(order.plan_id)
        if plan is None:
            logger.error(f"Unknown plan on paid order {order.order_id}: {order.plan_id!r}")
            raise EntitlementGrantError(
                f"Unknown plan: {order.plan_id}",
                plan_id=order.plan_id,
                order_id=order.order_id,
            )

        if plan.kind == PlanKind.CREDIT_PACK:
            balance = await repository.add_credits(order.user_id, plan.credits)
            logger.info(f"Added {plan.credits} credits for user {order.user_id} (balance {balance})")
            return

        start = self._clock()
        end = start + timedelta(days=plan.duration_days)
        await repository.activate_plan(
            user_id=order.user_id,
            plan_id=plan.plan_id,
            daily_credits=plan.daily_credits,
            subscription_id=payment_id,
            start=start,
            end=end,
        )
        logger.info(f"Activated {plan.plan_id} for user {order.user_id} until {end.isoformat()}")
