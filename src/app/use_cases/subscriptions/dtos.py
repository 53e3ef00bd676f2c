"""Data Transfer Objects for Subscription Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from src.domain.base import utcnow
from src.domain.ledger_entry import LedgerEntry, LedgerEntryStatus, LedgerEventType
from src.domain.subscription import Subscription, SubscriptionStatus


class CreateSubscriptionCommandDTO(BaseModel):
    """
    Command DTO for requesting a subscription slot

    Used as input to CreateSubscription use case.
    """

    hardware_id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Hardware id (IMEI) of the device"
    )

    plan: str = Field(
        ...,
        description="Plan identifier from the plan catalog"
    )

    cards: List[str] = Field(
        default_factory=list,
        description="References to previously uploaded encryption card artifacts (at least one)"
    )

    device_label: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Human readable device name"
    )

    contact_email: Optional[str] = Field(
        default=None,
        description="Address for notifications about this request"
    )

    contact_phone: Optional[str] = Field(default=None)

    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Free text submitted with the request"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "hardware_id": "356938035643809",
                "plan": "mobile-v4-basic",
                "cards": ["https://files.example.com/cards/front.png"],
                "device_label": "Pixel 8",
                "contact_email": "user@example.com",
            }
        }


class QueueForUserCommandDTO(BaseModel):
    """
    Command DTO for manual queue insertion by an administrator

    Creates the subscription directly at QUEUED. Cards are optional here.
    """

    user_id: str = Field(..., min_length=1, description="User the slot is queued for")
    hardware_id: str = Field(..., min_length=1, max_length=64)
    plan: str = Field(...)
    cards: List[str] = Field(default_factory=list)
    device_label: Optional[str] = Field(default=None, max_length=100)
    contact_email: Optional[str] = Field(default=None)
    contact_phone: Optional[str] = Field(default=None)
    priority: int = Field(default=0, ge=0, le=100, description="Higher is served first")
    notes: Optional[str] = Field(default=None, max_length=1000)

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_123",
                "hardware_id": "356938035643809",
                "plan": "mobile-v5-premium",
                "priority": 0,
                "notes": "Walk-in customer",
            }
        }


class SubscriptionFilterDTO(BaseModel):
    """Filters and pagination for listing subscriptions"""

    statuses: Optional[List[SubscriptionStatus]] = Field(default=None)
    hardware_id: Optional[str] = Field(default=None)
    user_id: Optional[str] = Field(default=None)
    plan: Optional[str] = Field(default=None)
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class SubscriptionDTO(BaseModel):
    """
    Response DTO for a subscription

    Returned by every subscription use case.
    """

    id: str
    user_id: str
    hardware_id: str
    device_label: str
    plan: str
    price: Decimal
    status: str
    queue_position: Optional[str] = None
    priority: int = 0
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    days_remaining: int = 0
    activated_at: Optional[datetime] = None
    auto_activated: bool = False
    expired_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    queued_by: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    admin_notes: Optional[str] = None
    renewal_count: int = 0
    last_renewal_at: Optional[datetime] = None
    total_paid: Decimal = Decimal("0")
    renewal_history: List[Dict[str, Any]] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


def to_subscription_dto(subscription: Subscription, now: Optional[datetime] = None) -> SubscriptionDTO:
    return SubscriptionDTO(
        id=subscription.id,
        user_id=subscription.user_id,
        hardware_id=subscription.hardware_id,
        device_label=subscription.device_label,
        plan=subscription.plan,
        price=subscription.price,
        status=subscription.status.value,
        queue_position=subscription.queue_position,
        priority=subscription.priority,
        start_date=subscription.start_date,
        end_date=subscription.end_date,
        days_remaining=subscription.days_remaining(now or utcnow()),
        activated_at=subscription.activated_at,
        auto_activated=subscription.auto_activated,
        expired_at=subscription.expired_at,
        cancelled_at=subscription.cancelled_at,
        cancelled_by=subscription.cancelled_by,
        queued_by=subscription.queued_by,
        reviewed_by=subscription.reviewed_by,
        reviewed_at=subscription.reviewed_at,
        admin_notes=subscription.admin_notes,
        renewal_count=subscription.renewal_count,
        last_renewal_at=subscription.last_renewal_at,
        total_paid=subscription.total_paid,
        renewal_history=list(subscription.renewal_history or []),
        created_at=subscription.created_at,
        updated_at=subscription.updated_at,
    )


class SubscriptionListDTO(BaseModel):
    items: List[SubscriptionDTO]
    total: int
    limit: int
    offset: int


class LedgerEntryDTO(BaseModel):
    """One audit record in a subscription's ledger chain"""

    id: str
    transaction_id: str
    subscription_id: str
    user_id: str
    hardware_id: str
    sequence: int
    previous_entry_id: Optional[str] = None
    event_type: str
    status: str
    amount: Decimal
    currency: str
    plan: str
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    period_duration_days: Optional[int] = None
    queue_position: Optional[str] = None
    processed_by: Optional[str] = None
    notes: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    completed_at: Optional[datetime] = None


def to_ledger_entry_dto(entry: LedgerEntry) -> LedgerEntryDTO:
    return LedgerEntryDTO(
        id=entry.id,
        transaction_id=entry.transaction_id,
        subscription_id=entry.subscription_id,
        user_id=entry.user_id,
        hardware_id=entry.hardware_id,
        sequence=entry.sequence,
        previous_entry_id=entry.previous_entry_id,
        event_type=entry.event_type.value,
        status=entry.status.value,
        amount=entry.amount,
        currency=entry.currency,
        plan=entry.plan,
        period_start=entry.period_start,
        period_end=entry.period_end,
        period_duration_days=entry.period_duration_days,
        queue_position=entry.queue_position,
        processed_by=entry.processed_by,
        notes=entry.notes,
        details=dict(entry.details or {}),
        created_at=entry.created_at,
        completed_at=entry.completed_at,
    )


class LedgerChainDTO(BaseModel):
    subscription_id: str
    entries: List[LedgerEntryDTO]


class LedgerEntryFilterDTO(BaseModel):
    """Filters for the ledger listing; both dates are inclusive"""

    user_id: Optional[str] = Field(default=None)
    subscription_id: Optional[str] = Field(default=None)
    event_types: Optional[List[LedgerEventType]] = Field(default=None)
    statuses: Optional[List[LedgerEntryStatus]] = Field(default=None)
    date_from: Optional[datetime] = Field(default=None)
    date_to: Optional[datetime] = Field(default=None)
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class LedgerEntryListDTO(BaseModel):
    items: List[LedgerEntryDTO]
    total: int
    limit: int
    offset: int


class LedgerSummaryRowDTO(BaseModel):
    event_type: str
    status: str
    count: int
    total_amount: Decimal


class LedgerSummaryDTO(BaseModel):
    """
    Ledger totals over a period

    revenue is the amount of COMPLETED created, renewed, upgraded and downgraded
    entries; every other row is reported with its amount but not counted.
    """

    user_id: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    total_entries: int
    revenue: Decimal
    by_event_type: Dict[str, int]
    by_status: Dict[str, int]
    rows: List[LedgerSummaryRowDTO]


class SubscriptionDetailDTO(BaseModel):
    """Subscription with its device onboarding state and most recent ledger entries"""

    subscription: SubscriptionDTO
    device_onboarded: bool
    recent_ledger: List[LedgerEntryDTO] = Field(default_factory=list)


class BulkItemResultDTO(BaseModel):
    subscription_id: str
    success: bool
    status: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None


class BulkResultDTO(BaseModel):
    """Per-item outcome of a bulk approve/reject; processing continues past failures"""

    action: str
    results: List[BulkItemResultDTO]
    succeeded: int
    failed: int


class QueueStatsDTO(BaseModel):
    total_in_queue: int
    has_active: bool
    next_in_queue: Optional[str] = Field(
        default=None,
        description="Subscription id holding position 1"
    )


class DeviceQueueStatusDTO(BaseModel):
    hardware_id: str
    device_label: str
    is_onboarded: bool
    active: Optional[SubscriptionDTO] = None
    queue: List[SubscriptionDTO]
    stats: QueueStatsDTO
    history: Optional[List[SubscriptionDTO]] = None


class RenewalOptionDTO(BaseModel):
    plan: str
    duration_days: int
    price: Decimal
    new_end_date: datetime
    total_days_after_renewal: int
    is_current_plan: bool
    recommended: bool


class RenewalOptionsDTO(BaseModel):
    subscription_id: str
    current_plan: str
    current_price: Decimal
    end_date: datetime
    remaining_days: int
    options: List[RenewalOptionDTO]


class DeviceSetupDTO(BaseModel):
    """Freshly provisioned activation secret for a device"""

    hardware_id: str
    label: str
    secret: str
    provisioning_uri: str
    is_onboarded: bool


class OnboardingStatusDTO(BaseModel):
    hardware_id: str
    device_exists: bool
    is_onboarded: bool


class SweepFailureDTO(BaseModel):
    stage: str = Field(..., description="expire or promote")
    subscription_id: Optional[str] = None
    hardware_id: Optional[str] = None
    error: str


class ReconciliationSummaryDTO(BaseModel):
    """Outcome of one sweep run; informational only"""

    expired: List[str] = Field(default_factory=list)
    activated: List[str] = Field(default_factory=list)
    failures: List[SweepFailureDTO] = Field(default_factory=list)
    skipped: bool = False
    skip_reason: Optional[str] = None
    started_at: datetime
    finished_at: Optional[datetime] = None


class DispatchResultDTO(BaseModel):
    sent: int = 0
    retried: int = 0
    failed: int = 0
