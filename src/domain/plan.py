"""Plan catalog

Fixed lookup table of plan tiers: duration in days and price.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Plan:
    plan_id: str
    duration_days: int
    price: Decimal


FALLBACK_DURATION_DAYS = 30
FALLBACK_PRICE = Decimal("29.99")

PLAN_CATALOG: Dict[str, Plan] = {
    plan.plan_id: plan
    for plan in (
        Plan("mobile-v4-basic", 30, Decimal("1249.99")),
        Plan("mobile-v4-premium", 60, Decimal("1425.49")),
        Plan("mobile-v4-enterprise", 90, Decimal("1999.99")),
        Plan("mobile-v5-basic", 30, Decimal("2395.49")),
        Plan("mobile-v5-premium", 60, Decimal("2629.99")),
        Plan("full-suite-basic", 60, Decimal("2789.99")),
        Plan("full-suite-premium", 90, Decimal("3145.49")),
    )
}


def get_plan(plan_id: str) -> Optional[Plan]:
    return PLAN_CATALOG.get(plan_id)


def is_known_plan(plan_id: str) -> bool:
    return plan_id in PLAN_CATALOG


def list_plans() -> List[Plan]:
    return list(PLAN_CATALOG.values())


def plan_or_fallback(plan_id: str) -> Plan:
    """Catalog plan, or the fallback duration/price for an unrecognized id (logged)"""
    plan = PLAN_CATALOG.get(plan_id)
    if plan is None:
        logger.warning(
            f"Unknown plan '{plan_id}', falling back to {FALLBACK_DURATION_DAYS} days "
            f"at {FALLBACK_PRICE}"
        )
        return Plan(plan_id, FALLBACK_DURATION_DAYS, FALLBACK_PRICE)
    return plan
