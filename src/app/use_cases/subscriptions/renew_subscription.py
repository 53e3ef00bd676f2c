"""RenewSubscription Use Case"""

from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.actor import ActorContext
from src.domain.errors import failure
from .dtos import SubscriptionDTO, to_subscription_dto
from .lifecycle import SubscriptionLifecycle


class RenewSubscription:
    """
    Use Case: Extend an ACTIVE subscription with a (possibly different) plan

    Business Rules:
    1. Only ACTIVE, not yet lapsed subscriptions can be renewed
    2. New end date = current end date + plan duration
    3. The "renewed" ledger entry is written in the same unit because the
       renewal history references its transaction id
    4. Unknown plans are rejected unless plan fallback is enabled
    """

    def __init__(
        self,
        uow: UnitOfWork,
        lifecycle: SubscriptionLifecycle,
        allow_plan_fallback: bool = False,
    ):
        self.uow = uow
        self.lifecycle = lifecycle
        self.allow_plan_fallback = allow_plan_fallback

    async def execute(self, actor: ActorContext, subscription_id: str, new_plan: str) -> Result[SubscriptionDTO]:
        try:
            subscription, _ = await self.lifecycle.renew(
                actor, subscription_id, new_plan, allow_plan_fallback=self.allow_plan_fallback
            )
            await self.uow.commit()
            return Return.ok(to_subscription_dto(subscription, self.lifecycle.clock()))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(failure(e, "RENEW_SUBSCRIPTION_FAILED", "Failed to renew subscription"))
