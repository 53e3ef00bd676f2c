"""GetSubscriptionDetail Use Case"""

from libs.result import Result, Return
from src.app.repositories.device_repository import DeviceRepository
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.domain.actor import ActorContext, Capability
from src.domain.base import utcnow
from src.domain.errors import NotFoundError, failure
from .authorization import authorize_owner_or
from .dtos import SubscriptionDetailDTO, to_ledger_entry_dto, to_subscription_dto

RECENT_LEDGER_ENTRIES = 10


class GetSubscriptionDetail:

    def __init__(
        self,
        subscription_repo: SubscriptionRepository,
        device_repo: DeviceRepository,
        ledger_repo: LedgerEntryRepository,
    ):
        self.subscription_repo = subscription_repo
        self.device_repo = device_repo
        self.ledger_repo = ledger_repo

    async def execute(self, actor: ActorContext, subscription_id: str) -> Result[SubscriptionDetailDTO]:
        try:
            subscription = await self.subscription_repo.get_by_id(subscription_id)
            if subscription is None:
                raise NotFoundError(
                    f"Subscription {subscription_id} not found",
                    code="SUBSCRIPTION_NOT_FOUND",
                )
            authorize_owner_or(actor, subscription, Capability.VIEW_ALL_SUBSCRIPTIONS)

            device = await self.device_repo.get_by_hardware_id(subscription.hardware_id)
            entries = await self.ledger_repo.list_for_subscription(
                subscription.id, limit=RECENT_LEDGER_ENTRIES
            )

            return Return.ok(SubscriptionDetailDTO(
                subscription=to_subscription_dto(subscription, utcnow()),
                device_onboarded=bool(device and device.is_onboarded),
                recent_ledger=[to_ledger_entry_dto(e) for e in entries],
            ))

        except Exception as e:
            return Return.err(failure(e, "GET_SUBSCRIPTION_FAILED", "Failed to get subscription"))
