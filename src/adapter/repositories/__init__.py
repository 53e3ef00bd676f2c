from .device_repository import SqlAlchemyDeviceRepository
from .subscription_repository import SqlAlchemySubscriptionRepository
from .ledger_entry_repository import SqlAlchemyLedgerEntryRepository
from .notification_outbox_repository import SqlAlchemyNotificationOutboxRepository
from .sweep_lease_repository import SqlAlchemySweepLeaseRepository

__all__ = [
    "SqlAlchemyDeviceRepository",
    "SqlAlchemySubscriptionRepository",
    "SqlAlchemyLedgerEntryRepository",
    "SqlAlchemyNotificationOutboxRepository",
    "SqlAlchemySweepLeaseRepository",
]
