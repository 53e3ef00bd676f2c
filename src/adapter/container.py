"""Session-scoped wiring of repositories, components and collaborators

Every component built here shares one AsyncSession, so everything they write
belongs to the same unit of work.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.repositories import (
    SqlAlchemyDeviceRepository,
    SqlAlchemySubscriptionRepository,
    SqlAlchemyLedgerEntryRepository,
    SqlAlchemyNotificationOutboxRepository,
    SqlAlchemySweepLeaseRepository,
)
from src.adapter.services.otp_verifier import PyOtpVerifier
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.subscriptions.device_registry import DeviceRegistry
from src.app.use_cases.subscriptions.ledger import Ledger
from src.app.use_cases.subscriptions.lifecycle import SubscriptionLifecycle
from src.app.use_cases.subscriptions.queue_manager import QueueManager
from src.domain.base import utcnow


@dataclass
class SubscriptionServices:
    uow: SqlAlchemyUnitOfWork
    device_repo: SqlAlchemyDeviceRepository
    subscription_repo: SqlAlchemySubscriptionRepository
    ledger_repo: SqlAlchemyLedgerEntryRepository
    outbox_repo: SqlAlchemyNotificationOutboxRepository
    lease_repo: SqlAlchemySweepLeaseRepository
    ledger: Ledger
    device_registry: DeviceRegistry
    queue_manager: QueueManager
    lifecycle: SubscriptionLifecycle


def build_services(
    session: AsyncSession,
    config=ApplicationConfig,
    clock: Callable[[], datetime] = utcnow,
) -> SubscriptionServices:
    device_repo = SqlAlchemyDeviceRepository(session)
    subscription_repo = SqlAlchemySubscriptionRepository(session)
    ledger_repo = SqlAlchemyLedgerEntryRepository(session)
    outbox_repo = SqlAlchemyNotificationOutboxRepository(session)

    otp_verifier = PyOtpVerifier(valid_window=config.OTP_VALID_WINDOW, issuer=config.OTP_ISSUER)
    ledger = Ledger(ledger_repo, currency=config.DEFAULT_CURRENCY, clock=clock)
    device_registry = DeviceRegistry(device_repo, otp_verifier, clock=clock)
    queue_manager = QueueManager(subscription_repo, device_repo)
    lifecycle = SubscriptionLifecycle(
        subscription_repo,
        device_registry,
        queue_manager,
        ledger,
        outbox_repo,
        clock=clock,
    )

    return SubscriptionServices(
        uow=SqlAlchemyUnitOfWork(session),
        device_repo=device_repo,
        subscription_repo=subscription_repo,
        ledger_repo=ledger_repo,
        outbox_repo=outbox_repo,
        lease_repo=SqlAlchemySweepLeaseRepository(session),
        ledger=ledger,
        device_registry=device_registry,
        queue_manager=queue_manager,
        lifecycle=lifecycle,
    )
