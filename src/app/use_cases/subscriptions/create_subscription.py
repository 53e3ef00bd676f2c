"""CreateSubscription Use Case

Registers a subscription request: device (if new), PENDING subscription at
the next queue position, ledger "created" entry and the queued notification,
all in one atomic unit.
"""

from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.actor import ActorContext
from src.domain.errors import failure
from .dtos import CreateSubscriptionCommandDTO, SubscriptionDTO, to_subscription_dto
from .lifecycle import SubscriptionLifecycle


class CreateSubscription:
    """
    Use Case: Request a subscription slot for a device

    Business Rules:
    1. Plan must be in the catalog; price comes from the catalog
    2. At least one card reference is required
    3. Device must not already have an ACTIVE subscription
    4. Ledger write is part of the unit: if it fails nothing persists
    """

    def __init__(self, uow: UnitOfWork, lifecycle: SubscriptionLifecycle):
        self.uow = uow
        self.lifecycle = lifecycle

    async def execute(
        self, actor: ActorContext, command: CreateSubscriptionCommandDTO
    ) -> Result[SubscriptionDTO]:
        try:
            subscription, _ = await self.lifecycle.create(actor, command)
            await self.uow.commit()
            return Return.ok(to_subscription_dto(subscription, self.lifecycle.clock()))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(failure(e, "CREATE_SUBSCRIPTION_FAILED", "Failed to create subscription"))
