# 📄 File: medplant/modules/payments/domain/models/plans.py
# 🧭 Purpose (Layman Explanation):
# The price list: what each plan or scan pack costs and what the buyer gets for it.
# 🧪 Purpose (Technical Summary):
# Server-side plan catalogue. Prices are authoritative here (never trusted from the client);
# each plan is either a credit pack or a timed subscription.
# 🔗 Dependencies:
# dataclasses, enum
# 🔄 Connected Modules / Calls From:
# order_service.py (pricing), entitlement_service.py (grants)

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class PlanKind(str, Enum):
    CREDIT_PACK = "credit_pack"
    SUBSCRIPTION = "subscription"


@dataclass(frozen=True)
class PlanDefinition:
    plan_id: str
    amount: int  # paise
    kind: PlanKind
    credits: int = 0
    duration_days: int = 0
    daily_credits: int = 0


PLANS: Dict[str, PlanDefinition] = {
    plan.plan_id: plan
    for plan in (
        PlanDefinition("pro_basic", 9900, PlanKind.SUBSCRIPTION, duration_days=30, daily_credits=10),
        PlanDefinition("pro_unlimited", 79900, PlanKind.SUBSCRIPTION, duration_days=30, daily_credits=100),
        PlanDefinition("pro_unlimited_yearly", 799900, PlanKind.SUBSCRIPTION, duration_days=365, daily_credits=100),
        PlanDefinition("pack_1", 1000, PlanKind.CREDIT_PACK, credits=1),
        PlanDefinition("pack_10", 7900, PlanKind.CREDIT_PACK, credits=10),
        PlanDefinition("pack_20", 14900, PlanKind.CREDIT_PACK, credits=20),
        PlanDefinition("pack_30", 19900, PlanKind.CREDIT_PACK, credits=30),
    )
}


def get_plan(plan_id: Optional[str]) -> Optional[PlanDefinition]:
    if not plan_id:
        return None
    return PLANS.get(plan_id)
