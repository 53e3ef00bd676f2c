from .device_repository import DeviceRepository
from .subscription_repository import SubscriptionRepository
from .ledger_entry_repository import LedgerEntryRepository
from .notification_outbox_repository import NotificationOutboxRepository
from .sweep_lease_repository import SweepLeaseRepository

__all__ = [
    "DeviceRepository",
    "SubscriptionRepository",
    "LedgerEntryRepository",
    "NotificationOutboxRepository",
    "SweepLeaseRepository",
]
