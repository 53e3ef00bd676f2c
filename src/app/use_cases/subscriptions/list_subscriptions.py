"""ListSubscriptions Use Case"""

from libs.result import Result, Return
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.domain.actor import ActorContext, Capability
from src.domain.base import utcnow
from src.domain.errors import failure
from .authorization import authorize
from .dtos import SubscriptionFilterDTO, SubscriptionListDTO, to_subscription_dto


class ListSubscriptions:
    """
    Use Case: List and filter subscriptions with pagination

    Users only ever see their own subscriptions; the user_id filter is forced
    to the caller unless the caller may view all subscriptions. The admin
    listing (all_users) requires that capability outright.
    """

    def __init__(self, subscription_repo: SubscriptionRepository):
        self.subscription_repo = subscription_repo

    async def execute(
        self, actor: ActorContext, filters: SubscriptionFilterDTO, all_users: bool = False
    ) -> Result[SubscriptionListDTO]:
        try:
            if all_users:
                authorize(actor, Capability.VIEW_ALL_SUBSCRIPTIONS)
            else:
                authorize(actor, Capability.REQUEST_SUBSCRIPTIONS)
            user_id = filters.user_id
            if not actor.has(Capability.VIEW_ALL_SUBSCRIPTIONS):
                user_id = actor.user_id

            items, total = await self.subscription_repo.search(
                statuses=filters.statuses,
                hardware_id=filters.hardware_id,
                user_id=user_id,
                plan=filters.plan,
                limit=filters.limit,
                offset=filters.offset,
            )

            now = utcnow()
            return Return.ok(SubscriptionListDTO(
                items=[to_subscription_dto(s, now) for s in items],
                total=total,
                limit=filters.limit,
                offset=filters.offset,
            ))

        except Exception as e:
            return Return.err(failure(e, "LIST_SUBSCRIPTIONS_FAILED", "Failed to list subscriptions"))
