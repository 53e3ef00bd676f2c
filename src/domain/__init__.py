from .base import BaseModel, generate_uuid, utcnow
from .device import Device
from .subscription import (
    Subscription,
    SubscriptionStatus,
    ALLOWED_TRANSITIONS,
    QUEUE_STATUSES,
    TERMINAL_STATUSES,
)
from .ledger_entry import LedgerEntry, LedgerEventType, LedgerEntryStatus
from .notification import NotificationOutbox, NotificationKind, OutboxStatus
from .sweep_lease import SweepLease
from .plan import Plan, PLAN_CATALOG, get_plan, plan_or_fallback
from .actor import ActorContext, Role, Capability, ROLE_CAPABILITIES

__all__ = [
    "BaseModel",
    "generate_uuid",
    "utcnow",
    "Device",
    "Subscription",
    "SubscriptionStatus",
    "ALLOWED_TRANSITIONS",
    "QUEUE_STATUSES",
    "TERMINAL_STATUSES",
    "LedgerEntry",
    "LedgerEventType",
    "LedgerEntryStatus",
    "NotificationOutbox",
    "NotificationKind",
    "OutboxStatus",
    "SweepLease",
    "Plan",
    "PLAN_CATALOG",
    "get_plan",
    "plan_or_fallback",
    "ActorContext",
    "Role",
    "Capability",
    "ROLE_CAPABILITIES",
]
