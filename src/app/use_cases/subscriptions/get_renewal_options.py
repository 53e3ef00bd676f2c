"""GetRenewalOptions Use Case"""

import math
from datetime import datetime, timedelta
from typing import Callable
from libs.result import Result, Return
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.domain.actor import ActorContext, Capability
from src.domain.base import utcnow
from src.domain.errors import ConflictError, NotFoundError, failure
from src.domain.plan import list_plans
from src.domain.subscription import SubscriptionStatus
from .authorization import authorize_owner_or
from .dtos import RenewalOptionDTO, RenewalOptionsDTO


def _is_recommended(plan_id: str, current_plan: str) -> bool:
    return plan_id == current_plan or ("premium" in plan_id and "enterprise" not in current_plan)


class GetRenewalOptions:
    """
    Use Case: Price and resulting end date for renewing with each catalog plan

    Every option extends from the current end date.
    """

    def __init__(self, subscription_repo: SubscriptionRepository, clock: Callable[[], datetime] = utcnow):
        self.subscription_repo = subscription_repo
        self.clock = clock

    async def execute(self, actor: ActorContext, subscription_id: str) -> Result[RenewalOptionsDTO]:
        try:
            subscription = await self.subscription_repo.get_by_id(subscription_id)
            if subscription is None:
                raise NotFoundError(
                    f"Subscription {subscription_id} not found",
                    code="SUBSCRIPTION_NOT_FOUND",
                )
            authorize_owner_or(actor, subscription, Capability.VIEW_ALL_SUBSCRIPTIONS)
            if subscription.status != SubscriptionStatus.ACTIVE:
                raise ConflictError(
                    "Only active subscriptions can be renewed",
                    code="SUBSCRIPTION_NOT_ACTIVE",
                )

            now = self.clock()
            options = []
            for plan in list_plans():
                new_end = subscription.end_date + timedelta(days=plan.duration_days)
                options.append(RenewalOptionDTO(
                    plan=plan.plan_id,
                    duration_days=plan.duration_days,
                    price=plan.price,
                    new_end_date=new_end,
                    total_days_after_renewal=max(0, math.ceil((new_end - now).total_seconds() / 86400)),
                    is_current_plan=plan.plan_id == subscription.plan,
                    recommended=_is_recommended(plan.plan_id, subscription.plan),
                ))

            return Return.ok(RenewalOptionsDTO(
                subscription_id=subscription.id,
                current_plan=subscription.plan,
                current_price=subscription.price,
                end_date=subscription.end_date,
                remaining_days=subscription.days_remaining(now),
                options=options,
            ))

        except Exception as e:
            return Return.err(failure(e, "GET_RENEWAL_OPTIONS_FAILED", "Failed to get renewal options"))
