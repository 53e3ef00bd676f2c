"""ReconcileSubscriptions Use Case

The daily sweep: expires due ACTIVE subscriptions, then promotes the next
QUEUED subscription on every device left without an active one.

Single-flight is enforced twice: a module-level flag guards overlapping runs
inside one process, and a persisted lease guards against other processes.
"""

import logging
from datetime import datetime, time, timedelta
from typing import Callable, Optional
from sqlalchemy.exc import IntegrityError
from libs.result import Result, Return
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.sweep_lease_repository import SweepLeaseRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import generate_uuid, utcnow
from src.domain.actor import ActorContext, Capability
from src.domain.errors import DomainError, failure
from src.domain.ledger_entry import LedgerEventType
from src.domain.subscription import SubscriptionStatus
from src.domain.sweep_lease import SweepLease
from .authorization import authorize
from .dtos import ReconciliationSummaryDTO, SweepFailureDTO
from .ledger import Ledger
from .lifecycle import SubscriptionLifecycle

logger = logging.getLogger(__name__)

SWEEP_LEASE_NAME = "daily-subscription-sweep"

_sweep_running = False


def is_sweep_running() -> bool:
    return _sweep_running


def end_of_day(now: datetime) -> datetime:
    return datetime.combine(now.date(), time.max)


class ReconcileSubscriptions:
    """
    Use Case: Daily expiry and promotion sweep

    Flow:
    1. Skip if a run is already in progress (flag) or another process holds the lease
    2. Expire: every ACTIVE subscription with end_date <= end of today, each in
       its own unit with an "expired" ledger entry
    3. Promote: for every device with a QUEUED subscription and no ACTIVE one,
       activate the lowest position, write an "activated" entry and compact the
       queue, each device in its own unit
    4. Per-item failures are logged and recorded in the summary; the sweep continues

    Running twice in a row is a no-op the second time: both selections are
    re-read from persisted state.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        lifecycle: SubscriptionLifecycle,
        ledger: Ledger,
        lease_repo: Optional[SweepLeaseRepository] = None,
        lease_ttl_seconds: int = 3600,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.lifecycle = lifecycle
        self.ledger = ledger
        self.lease_repo = lease_repo
        self.lease_ttl_seconds = lease_ttl_seconds
        self.clock = clock

    async def execute(self, actor: Optional[ActorContext] = None) -> Result[ReconciliationSummaryDTO]:
        """
        Run one sweep

        Args:
            actor: Caller of a manual run; None for the scheduler
        """
        global _sweep_running

        if actor is not None:
            try:
                authorize(actor, Capability.RUN_SWEEP)
            except DomainError as e:
                return Return.err(e.to_error())

        started_at = self.clock()
        if _sweep_running:
            logger.warning("Subscription sweep already running in this process, skipping")
            return Return.ok(ReconciliationSummaryDTO(
                skipped=True,
                skip_reason="already_running",
                started_at=started_at,
                finished_at=started_at,
            ))

        _sweep_running = True
        token = None
        try:
            token = await self._acquire_lease()
            if token is None:
                return Return.ok(ReconciliationSummaryDTO(
                    skipped=True,
                    skip_reason="lease_held",
                    started_at=started_at,
                    finished_at=self.clock(),
                ))

            summary = ReconciliationSummaryDTO(started_at=started_at)
            await self._expire_due(summary)
            await self._promote_queued(summary)
            summary.finished_at = self.clock()

            logger.info(
                f"Subscription sweep finished: {len(summary.expired)} expired, "
                f"{len(summary.activated)} activated, {len(summary.failures)} failures"
            )
            return Return.ok(summary)

        except Exception as e:
            await self.uow.rollback()
            return Return.err(failure(e, "SWEEP_FAILED", "Subscription sweep failed"))

        finally:
            if token is not None:
                await self._release_lease(token)
            _sweep_running = False

    async def _expire_due(self, summary: ReconciliationSummaryDTO) -> None:
        cutoff = end_of_day(self.clock())
        due_ids = [s.id for s in await self.subscription_repo.get_due_for_expiry(cutoff)]
        await self.uow.rollback()

        for subscription_id in due_ids:
            try:
                subscription = await self.lifecycle.get(subscription_id, for_update=True)
                if subscription.status != SubscriptionStatus.ACTIVE:
                    await self.uow.rollback()
                    continue

                await self.lifecycle.expire(subscription)
                await self.ledger.append(
                    subscription,
                    LedgerEventType.EXPIRED,
                    amount=0,
                    details={"end_date": subscription.end_date.isoformat()},
                )
                await self.uow.commit()
                summary.expired.append(subscription_id)

            except Exception as e:
                await self.uow.rollback()
                logger.error(f"Failed to expire subscription {subscription_id}: {e}")
                summary.failures.append(SweepFailureDTO(
                    stage="expire", subscription_id=subscription_id, error=str(e)
                ))

    async def _promote_queued(self, summary: ReconciliationSummaryDTO) -> None:
        hardware_ids = await self.subscription_repo.get_devices_with_queued()
        await self.uow.rollback()

        for hardware_id in hardware_ids:
            candidate_id = None
            try:
                active = await self.subscription_repo.get_active_for_device(hardware_id, for_update=True)
                if active is not None:
                    logger.info(f"Device {hardware_id} already has an active subscription, not promoting")
                    await self.uow.rollback()
                    continue

                candidate = await self.subscription_repo.get_next_queued(hardware_id, for_update=True)
                if candidate is None:
                    await self.uow.rollback()
                    continue
                candidate_id = candidate.id

                await self.lifecycle.activate(candidate, auto_activated=True)
                await self.ledger.append(
                    candidate,
                    LedgerEventType.ACTIVATED,
                    amount=0,
                    details={"auto_activated": True},
                )
                await self.uow.commit()
                summary.activated.append(candidate_id)

            except Exception as e:
                await self.uow.rollback()
                logger.error(f"Failed to promote queued subscription on device {hardware_id}: {e}")
                summary.failures.append(SweepFailureDTO(
                    stage="promote",
                    subscription_id=candidate_id,
                    hardware_id=hardware_id,
                    error=str(e),
                ))

    async def _acquire_lease(self) -> Optional[str]:
        """Owner token on success, None if another live owner holds the lease"""
        token = generate_uuid()
        if self.lease_repo is None:
            return token

        now = self.clock()
        expires_at = now + timedelta(seconds=self.lease_ttl_seconds)
        try:
            lease = await self.lease_repo.get(SWEEP_LEASE_NAME, for_update=True)
            if lease is None:
                await self.lease_repo.create(SweepLease(
                    name=SWEEP_LEASE_NAME,
                    owner_token=token,
                    acquired_at=now,
                    expires_at=expires_at,
                ))
            elif lease.is_held_at(now):
                await self.uow.rollback()
                logger.warning(
                    f"Sweep lease held by another owner until {lease.expires_at.isoformat()}, skipping"
                )
                return None
            else:
                lease.owner_token = token
                lease.acquired_at = now
                lease.expires_at = expires_at
                await self.lease_repo.update(lease)
            await self.uow.commit()
            return token

        except IntegrityError:
            await self.uow.rollback()
            logger.warning("Sweep lease acquired concurrently by another owner, skipping")
            return None

    async def _release_lease(self, token: str) -> None:
        if self.lease_repo is None:
            return
        try:
            lease = await self.lease_repo.get(SWEEP_LEASE_NAME, for_update=True)
            if lease is not None and lease.owner_token == token:
                lease.expires_at = self.clock()
                await self.lease_repo.update(lease)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to release sweep lease: {e}")
