"""CancelSubscription Use Case"""

from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.actor import ActorContext
from src.domain.errors import failure
from src.domain.ledger_entry import LedgerEntryStatus, LedgerEventType
from .dtos import SubscriptionDTO, to_subscription_dto
from .ledger import Ledger
from .lifecycle import SubscriptionLifecycle


class CancelSubscription:
    """
    Use Case: Cancel a subscription from any non-terminal state

    Idempotent: cancelling a CANCELLED subscription returns it unchanged and
    writes nothing. The audit entry is written after commit, best-effort.
    """

    def __init__(self, uow: UnitOfWork, lifecycle: SubscriptionLifecycle, ledger: Ledger):
        self.uow = uow
        self.lifecycle = lifecycle
        self.ledger = ledger

    async def execute(self, actor: ActorContext, subscription_id: str) -> Result[SubscriptionDTO]:
        try:
            subscription, changed = await self.lifecycle.cancel(actor, subscription_id)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            return Return.err(failure(e, "CANCEL_SUBSCRIPTION_FAILED", "Failed to cancel subscription"))

        response = to_subscription_dto(subscription, self.lifecycle.clock())
        if changed:
            await self.ledger.record_after_commit(
                self.uow,
                subscription,
                LedgerEventType.CANCELLED,
                settle_creation=LedgerEntryStatus.CANCELLED,
                amount=0,
                processed_by=actor.user_id,
            )
        return Return.ok(response)
