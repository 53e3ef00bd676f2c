"""ApprovalWorkflow Use Case

Administrator-facing operations over the subscription lifecycle: approve,
reject, their bulk variants, manual queue insertion and manual reposition.
"""

import logging
from typing import List, Optional
from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.actor import ActorContext, Capability
from src.domain.errors import DomainError, ValidationError, failure
from src.domain.ledger_entry import LedgerEntryStatus, LedgerEventType
from src.domain.subscription import SubscriptionStatus
from .authorization import authorize
from .dtos import (
    BulkItemResultDTO,
    BulkResultDTO,
    QueueForUserCommandDTO,
    SubscriptionDTO,
    to_subscription_dto,
)
from .ledger import Ledger
from .lifecycle import SubscriptionLifecycle
from .queue_manager import QueueManager

logger = logging.getLogger(__name__)

MAX_BULK_ITEMS = 100


class ApprovalWorkflow:
    """
    Use Case: Administrative review of subscription requests

    Business Rules:
    1. Every operation requires an active admin with the matching capability
    2. Approval is capped by the admin's approval ceiling
    3. Bulk operations process each item in its own unit and continue past
       failures, returning a per-item outcome
    4. Audit entries for approve/reject/reposition are best-effort after commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        lifecycle: SubscriptionLifecycle,
        queue_manager: QueueManager,
        ledger: Ledger,
    ):
        self.uow = uow
        self.lifecycle = lifecycle
        self.queue_manager = queue_manager
        self.ledger = ledger

    async def approve(
        self,
        actor: ActorContext,
        subscription_id: str,
        activate_immediately: bool = False,
        notes: Optional[str] = None,
    ) -> Result[SubscriptionDTO]:
        try:
            subscription = await self.lifecycle.approve(
                actor, subscription_id, activate_immediately=activate_immediately, notes=notes
            )
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            return Return.err(failure(e, "APPROVE_SUBSCRIPTION_FAILED", "Failed to approve subscription"))

        response = to_subscription_dto(subscription, self.lifecycle.clock())
        activated = subscription.status == SubscriptionStatus.ACTIVE
        await self.ledger.record_after_commit(
            self.uow,
            subscription,
            LedgerEventType.ACTIVATED if activated else LedgerEventType.QUEUED,
            settle_creation=LedgerEntryStatus.COMPLETED,
            processed_by=actor.user_id,
            notes=notes,
            details={"approved": True, "activated_immediately": activated},
        )
        return Return.ok(response)

    async def reject(self, actor: ActorContext, subscription_id: str, reason: str) -> Result[SubscriptionDTO]:
        try:
            subscription = await self.lifecycle.reject(actor, subscription_id, reason)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            return Return.err(failure(e, "REJECT_SUBSCRIPTION_FAILED", "Failed to reject subscription"))

        response = to_subscription_dto(subscription, self.lifecycle.clock())
        await self.ledger.record_after_commit(
            self.uow,
            subscription,
            LedgerEventType.REJECTED,
            settle_creation=LedgerEntryStatus.FAILED,
            amount=0,
            processed_by=actor.user_id,
            notes=reason,
        )
        return Return.ok(response)

    def _validate_bulk(self, actor: ActorContext, subscription_ids: List[str]) -> List[str]:
        authorize(actor, Capability.APPROVE_SUBSCRIPTIONS)
        unique_ids = list(dict.fromkeys(sid for sid in subscription_ids if sid))
        if not unique_ids:
            raise ValidationError("No subscription ids given", code="EMPTY_BULK_REQUEST")
        if len(unique_ids) > MAX_BULK_ITEMS:
            raise ValidationError(
                f"At most {MAX_BULK_ITEMS} subscriptions per bulk request",
                code="BULK_REQUEST_TOO_LARGE",
            )
        return unique_ids

    async def _run_bulk(self, action: str, subscription_ids: List[str], operation) -> BulkResultDTO:
        results = []
        for subscription_id in subscription_ids:
            result = await operation(subscription_id)
            if result.is_ok():
                results.append(BulkItemResultDTO(
                    subscription_id=subscription_id,
                    success=True,
                    status=result.value.status,
                ))
            else:
                results.append(BulkItemResultDTO(
                    subscription_id=subscription_id,
                    success=False,
                    error_code=result.error.code,
                    error_message=result.error.message,
                ))

        succeeded = sum(1 for r in results if r.success)
        logger.info(
            f"Bulk {action}: {succeeded} succeeded, {len(results) - succeeded} failed"
        )
        return BulkResultDTO(
            action=action,
            results=results,
            succeeded=succeeded,
            failed=len(results) - succeeded,
        )

    async def bulk_approve(
        self,
        actor: ActorContext,
        subscription_ids: List[str],
        activate_immediately: bool = False,
        notes: Optional[str] = None,
    ) -> Result[BulkResultDTO]:
        try:
            unique_ids = self._validate_bulk(actor, subscription_ids)
        except DomainError as e:
            return Return.err(e.to_error())

        async def approve_one(subscription_id: str):
            return await self.approve(actor, subscription_id, activate_immediately, notes)

        return Return.ok(await self._run_bulk("approve", unique_ids, approve_one))

    async def bulk_reject(
        self, actor: ActorContext, subscription_ids: List[str], reason: str
    ) -> Result[BulkResultDTO]:
        try:
            unique_ids = self._validate_bulk(actor, subscription_ids)
            if reason is None or not reason.strip():
                raise ValidationError("A rejection reason is required", code="REJECTION_REASON_REQUIRED")
        except DomainError as e:
            return Return.err(e.to_error())

        async def reject_one(subscription_id: str):
            return await self.reject(actor, subscription_id, reason)

        return Return.ok(await self._run_bulk("reject", unique_ids, reject_one))

    async def queue_for_user(
        self, actor: ActorContext, command: QueueForUserCommandDTO
    ) -> Result[SubscriptionDTO]:
        """Manual queue insertion; the "queued" ledger entry is part of the unit"""
        try:
            subscription, _ = await self.lifecycle.queue_for_user(actor, command)
            await self.uow.commit()
            logger.info(
                f"Admin {actor.user_id} queued subscription {subscription.id} for user "
                f"{command.user_id} on device {subscription.hardware_id} at {subscription.queue_position}"
            )
            return Return.ok(to_subscription_dto(subscription, self.lifecycle.clock()))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(failure(e, "QUEUE_SUBSCRIPTION_FAILED", "Failed to add subscription to queue"))

    async def reposition(
        self, actor: ActorContext, subscription_id: str, new_position: int
    ) -> Result[List[SubscriptionDTO]]:
        """Move a subscription within its device queue; returns the reordered queue"""
        try:
            authorize(actor, Capability.MANAGE_QUEUE)
            subscription = await self.lifecycle.get(subscription_id)
            previous_position = subscription.queue_position
            queue = await self.queue_manager.reposition(subscription_id, new_position)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            return Return.err(failure(e, "REPOSITION_FAILED", "Failed to update queue position"))

        now = self.lifecycle.clock()
        response = [to_subscription_dto(s, now) for s in queue]
        await self.ledger.record_after_commit(
            self.uow,
            subscription,
            LedgerEventType.QUEUED,
            status=LedgerEntryStatus.COMPLETED,
            amount=0,
            processed_by=actor.user_id,
            details={
                "repositioned": True,
                "from_position": previous_position,
                "to_position": subscription.queue_position,
            },
        )
        return Return.ok(response)
