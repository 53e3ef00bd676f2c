"""Shared fixtures for unit tests

Repositories are MagicMocks whose async methods are backed by small in-memory
stores, so components see consistent state across calls while every call can
still be asserted on.
"""

import pytest
from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.subscriptions.device_registry import DeviceRegistry
from src.app.use_cases.subscriptions.ledger import Ledger
from src.app.use_cases.subscriptions.lifecycle import SubscriptionLifecycle
from src.app.use_cases.subscriptions.queue_manager import QueueManager
from src.domain.actor import ActorContext, Role
from src.domain.device import Device
from src.domain.subscription import Subscription, SubscriptionStatus

NOW = datetime(2026, 3, 10, 12, 0, 0)
SECRET = "JBSWY3DPEHPK3PXP"


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def user_actor():
    return ActorContext(user_id="user_1", role=Role.USER)


@pytest.fixture
def other_user_actor():
    return ActorContext(user_id="user_2", role=Role.USER)


@pytest.fixture
def admin_actor():
    return ActorContext(user_id="admin_1", role=Role.ADMIN)


@pytest.fixture
def super_admin_actor():
    return ActorContext(user_id="root", role=Role.SUPER_ADMIN)


def _identity(value):
    return value


@pytest.fixture
def repos():
    """Mock repositories over shared in-memory stores"""
    devices = {}
    subscriptions = {}
    entries = []
    outbox = []

    async def get_device(hardware_id, for_update=False):
        return devices.get(hardware_id)

    async def create_device(device):
        devices[device.hardware_id] = device
        return device

    device_repo = MagicMock()
    device_repo.get_by_hardware_id = AsyncMock(side_effect=get_device)
    device_repo.create = AsyncMock(side_effect=create_device)
    device_repo.update = AsyncMock(side_effect=_identity)

    def queue_of(hardware_id):
        waiting = [
            s for s in subscriptions.values()
            if s.hardware_id == hardware_id and s.in_queue
        ]
        return sorted(
            waiting,
            key=lambda s: (s.position_number if s.position_number is not None else 10 ** 9, s.created_at),
        )

    async def create_subscription(subscription):
        subscriptions[subscription.id] = subscription
        return subscription

    async def get_subscription(subscription_id, for_update=False):
        return subscriptions.get(subscription_id)

    async def get_active(hardware_id, for_update=False):
        for s in subscriptions.values():
            if s.hardware_id == hardware_id and s.status == SubscriptionStatus.ACTIVE:
                return s
        return None

    async def list_queue(hardware_id, for_update=False):
        return queue_of(hardware_id)

    async def get_next_queued(hardware_id, for_update=False):
        queued = [s for s in queue_of(hardware_id) if s.status == SubscriptionStatus.QUEUED]
        return queued[0] if queued else None

    async def find_queued_for_user(user_id, hardware_id):
        for s in queue_of(hardware_id):
            if s.user_id == user_id:
                return s
        return None

    async def get_due(cutoff):
        return [
            s for s in subscriptions.values()
            if s.status == SubscriptionStatus.ACTIVE and s.end_date <= cutoff
        ]

    async def devices_with_queued():
        return sorted({
            s.hardware_id for s in subscriptions.values()
            if s.status == SubscriptionStatus.QUEUED
        })

    subscription_repo = MagicMock()
    subscription_repo.create = AsyncMock(side_effect=create_subscription)
    subscription_repo.update = AsyncMock(side_effect=_identity)
    subscription_repo.get_by_id = AsyncMock(side_effect=get_subscription)
    subscription_repo.get_active_for_device = AsyncMock(side_effect=get_active)
    subscription_repo.list_queue = AsyncMock(side_effect=list_queue)
    subscription_repo.get_next_queued = AsyncMock(side_effect=get_next_queued)
    subscription_repo.find_queued_for_user = AsyncMock(side_effect=find_queued_for_user)
    subscription_repo.get_due_for_expiry = AsyncMock(side_effect=get_due)
    subscription_repo.get_devices_with_queued = AsyncMock(side_effect=devices_with_queued)
    subscription_repo.list_history_for_device = AsyncMock(return_value=[])
    subscription_repo.search = AsyncMock(return_value=([], 0))

    async def latest_entry(subscription_id):
        own = [e for e in entries if e.subscription_id == subscription_id]
        return max(own, key=lambda e: e.sequence) if own else None

    async def create_entry(entry):
        entries.append(entry)
        return entry

    async def first_of_type(subscription_id, event_type):
        own = sorted(
            (e for e in entries if e.subscription_id == subscription_id and e.event_type == event_type),
            key=lambda e: e.sequence,
        )
        return own[0] if own else None

    async def list_entries(subscription_id, before_sequence=None, limit=50):
        own = [
            e for e in entries
            if e.subscription_id == subscription_id
            and (before_sequence is None or e.sequence < before_sequence)
        ]
        return sorted(own, key=lambda e: e.sequence, reverse=True)[:limit]

    ledger_repo = MagicMock()
    ledger_repo.get_latest_for_subscription = AsyncMock(side_effect=latest_entry)
    ledger_repo.create = AsyncMock(side_effect=create_entry)
    ledger_repo.update = AsyncMock(side_effect=_identity)
    ledger_repo.get_first_of_type = AsyncMock(side_effect=first_of_type)
    ledger_repo.list_for_subscription = AsyncMock(side_effect=list_entries)
    ledger_repo.search = AsyncMock(return_value=([], 0))
    ledger_repo.summarize = AsyncMock(return_value=[])

    async def add_message(message):
        outbox.append(message)
        return message

    outbox_repo = MagicMock()
    outbox_repo.add = AsyncMock(side_effect=add_message)
    outbox_repo.get_due = AsyncMock(return_value=[])
    outbox_repo.update = AsyncMock(side_effect=_identity)

    lease_repo = MagicMock()
    lease_repo.get = AsyncMock(return_value=None)
    lease_repo.create = AsyncMock(side_effect=_identity)
    lease_repo.update = AsyncMock(side_effect=_identity)

    return SimpleNamespace(
        devices=devices,
        subscriptions=subscriptions,
        entries=entries,
        outbox=outbox,
        device_repo=device_repo,
        subscription_repo=subscription_repo,
        ledger_repo=ledger_repo,
        outbox_repo=outbox_repo,
        lease_repo=lease_repo,
    )


@pytest.fixture
def otp_verifier():
    verifier = MagicMock()
    verifier.generate_secret = MagicMock(return_value=SECRET)
    verifier.provisioning_uri = MagicMock(
        side_effect=lambda secret, name: f"otpauth://totp/Test:{name}?secret={secret}&issuer=Test"
    )
    verifier.verify = MagicMock(return_value=True)
    return verifier


@pytest.fixture
def components(repos, otp_verifier, clock):
    """Real components wired over the mock repositories"""
    ledger = Ledger(repos.ledger_repo, clock=clock)
    device_registry = DeviceRegistry(repos.device_repo, otp_verifier, clock=clock)
    queue_manager = QueueManager(repos.subscription_repo, repos.device_repo)
    lifecycle = SubscriptionLifecycle(
        repos.subscription_repo,
        device_registry,
        queue_manager,
        ledger,
        repos.outbox_repo,
        clock=clock,
    )
    return SimpleNamespace(
        ledger=ledger,
        device_registry=device_registry,
        queue_manager=queue_manager,
        lifecycle=lifecycle,
    )


@pytest.fixture
def add_device(repos):
    """Register a device directly in the store"""
    def _add(hardware_id="HW1", onboarded=False, secret=SECRET):
        device = Device(
            hardware_id=hardware_id,
            label="Test phone",
            activation_secret=secret,
            registered_by="user_1",
            is_onboarded=onboarded,
        )
        repos.devices[hardware_id] = device
        return device
    return _add


@pytest.fixture
def add_subscription(repos):
    """Put a subscription directly in the store"""
    counter = {"n": 0}

    def _add(
        status=SubscriptionStatus.PENDING,
        hardware_id="HW1",
        user_id="user_1",
        position=None,
        plan="mobile-v4-basic",
        price=Decimal("1249.99"),
        priority=0,
        start_date=None,
        end_date=None,
        contact_email="user@example.com",
    ):
        counter["n"] += 1
        subscription = Subscription(
            user_id=user_id,
            hardware_id=hardware_id,
            plan=plan,
            price=price,
            cards=["https://files.example.com/card.png"],
            status=status,
            queue_position=position,
            priority=priority,
            start_date=start_date,
            end_date=end_date,
            contact_email=contact_email,
            total_paid=price,
            created_at=datetime(2026, 3, 1, 0, 0, counter["n"]),
            updated_at=datetime(2026, 3, 1, 0, 0, counter["n"]),
        )
        repos.subscriptions[subscription.id] = subscription
        return subscription
    return _add
