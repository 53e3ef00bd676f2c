"""GetLedgerChain Use Case

Returns the newest-first audit chain of one subscription.
"""

from libs.result import Result, Return
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.domain.actor import ActorContext, Capability
from src.domain.errors import NotFoundError, failure
from .authorization import authorize_owner_or
from .dtos import LedgerChainDTO, to_ledger_entry_dto
from .ledger import Ledger


class GetLedgerChain:

    def __init__(self, subscription_repo: SubscriptionRepository, ledger: Ledger):
        self.subscription_repo = subscription_repo
        self.ledger = ledger

    async def execute(self, actor: ActorContext, subscription_id: str, limit: int = 100) -> Result[LedgerChainDTO]:
        try:
            subscription = await self.subscription_repo.get_by_id(subscription_id)
            if subscription is None:
                raise NotFoundError(
                    f"Subscription {subscription_id} not found",
                    code="SUBSCRIPTION_NOT_FOUND",
                )
            authorize_owner_or(actor, subscription, Capability.VIEW_ALL_SUBSCRIPTIONS)

            entries = []
            async for entry in self.ledger.chain_for(subscription_id):
                entries.append(to_ledger_entry_dto(entry))
                if len(entries) >= limit:
                    break

            return Return.ok(LedgerChainDTO(subscription_id=subscription_id, entries=entries))

        except Exception as e:
            return Return.err(failure(e, "GET_LEDGER_FAILED", "Failed to load ledger chain"))
