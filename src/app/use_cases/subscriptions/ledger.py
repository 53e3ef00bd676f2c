"""Ledger component

Pure data writer for the append-only audit chain. It carries no business
rules of its own: callers decide which event to record and in which atomic
unit.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, AsyncIterator, Callable, Dict, Optional
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.errors import ConflictError, ValidationError
from src.domain.ledger_entry import (
    LedgerEntry,
    LedgerEntryStatus,
    LedgerEventType,
    TERMINAL_ENTRY_STATUSES,
)
from src.domain.subscription import Subscription

logger = logging.getLogger(__name__)


class LedgerChain:
    """
    Lazy, finite, restartable view of one subscription's entries, newest first

    Entries are fetched page by page; every ``async for`` starts over from the
    newest entry.
    """

    def __init__(self, ledger_repo: LedgerEntryRepository, subscription_id: str, page_size: int = 50):
        self.ledger_repo = ledger_repo
        self.subscription_id = subscription_id
        self.page_size = page_size

    async def __aiter__(self) -> AsyncIterator[LedgerEntry]:
        before: Optional[int] = None
        while True:
            page = await self.ledger_repo.list_for_subscription(
                self.subscription_id, before_sequence=before, limit=self.page_size
            )
            for entry in page:
                yield entry
            if len(page) < self.page_size:
                return
            before = page[-1].sequence


class Ledger:
    """
    Append-only transaction records

    Business Rules:
    1. Entries are never rewritten; a PENDING entry may receive one terminal status
    2. Each entry gets the next per-subscription sequence number and points at
       its predecessor
    """

    def __init__(
        self,
        ledger_repo: LedgerEntryRepository,
        currency: str = "USD",
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ledger_repo = ledger_repo
        self.currency = currency
        self.clock = clock

    async def append(
        self,
        subscription: Subscription,
        event_type: LedgerEventType,
        status: LedgerEntryStatus = LedgerEntryStatus.COMPLETED,
        amount: Optional[Decimal] = None,
        processed_by: Optional[str] = None,
        notes: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> LedgerEntry:
        """
        Write one immutable record for a lifecycle event

        Args:
            subscription: Subscription the event belongs to (period snapshot taken from it)
            event_type: Lifecycle event
            status: Entry status, PENDING if a later settle is expected
            amount: Monetary amount; defaults to the subscription price
            processed_by: Acting user id, None for the scheduled sweep

        Returns:
            The persisted entry
        """
        previous = await self.ledger_repo.get_latest_for_subscription(subscription.id)
        now = self.clock()

        duration_days = None
        if subscription.start_date and subscription.end_date:
            duration_days = (subscription.end_date - subscription.start_date).days

        entry = LedgerEntry(
            subscription_id=subscription.id,
            hardware_id=subscription.hardware_id,
            user_id=subscription.user_id,
            sequence=(previous.sequence + 1) if previous else 1,
            previous_entry_id=previous.id if previous else None,
            event_type=event_type,
            status=status,
            amount=subscription.price if amount is None else amount,
            currency=self.currency,
            plan=subscription.plan,
            period_start=subscription.start_date,
            period_end=subscription.end_date,
            period_duration_days=duration_days,
            queue_position=subscription.queue_position,
            processed_by=processed_by,
            notes=notes,
            details=details or {},
            created_at=now,
            completed_at=now if status in TERMINAL_ENTRY_STATUSES else None,
        )
        return await self.ledger_repo.create(entry)

    async def settle(self, entry: LedgerEntry, status: LedgerEntryStatus) -> LedgerEntry:
        """Append a terminal status to a pending entry"""
        if status not in TERMINAL_ENTRY_STATUSES:
            raise ValidationError(
                f"'{status.value}' is not a terminal ledger status",
                code="INVALID_LEDGER_STATUS",
            )
        if not entry.is_pending:
            raise ConflictError(
                f"Ledger entry {entry.transaction_id} is already {entry.status.value}",
                code="LEDGER_ENTRY_SETTLED",
            )
        entry.status = status
        entry.completed_at = self.clock()
        return await self.ledger_repo.update(entry)

    async def settle_creation(self, subscription_id: str, status: LedgerEntryStatus) -> Optional[LedgerEntry]:
        """Settle the pending "created" entry of a subscription, if there still is one"""
        created = await self.ledger_repo.get_first_of_type(subscription_id, LedgerEventType.CREATED)
        if created is None or not created.is_pending:
            return None
        return await self.settle(created, status)

    def chain_for(self, subscription_id: str, page_size: int = 50) -> LedgerChain:
        return LedgerChain(self.ledger_repo, subscription_id, page_size)

    async def record_after_commit(
        self,
        uow: UnitOfWork,
        subscription: Subscription,
        event_type: LedgerEventType,
        settle_creation: Optional[LedgerEntryStatus] = None,
        **fields: Any,
    ) -> Optional[LedgerEntry]:
        """
        Best-effort audit write in its own unit, after the lifecycle change committed

        A failure here is logged and rolled back on its own; the committed
        lifecycle transition is left untouched.
        """
        try:
            entry = await self.append(subscription, event_type, **fields)
            if settle_creation is not None:
                await self.settle_creation(subscription.id, settle_creation)
            await uow.commit()
            return entry
        except Exception as e:
            await uow.rollback()
            logger.error(
                f"Ledger write '{event_type.value}' for subscription {subscription.id} failed "
                f"after commit: {e}"
            )
            return None
