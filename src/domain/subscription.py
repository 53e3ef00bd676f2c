"""Subscription Domain Entity

One slot request for one device. Carries the lifecycle status, the per-device
queue position and the renewal history.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List, Dict, Any
from sqlmodel import Field, Column, Index
from sqlalchemy import JSON, Numeric, String, ForeignKey
from src.domain.base import BaseModel, generate_uuid, utcnow


class SubscriptionStatus(str, Enum):
    """Subscription lifecycle states"""
    PENDING = "PENDING"
    QUEUED = "QUEUED"
    APPROVED = "APPROVED"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


ALLOWED_TRANSITIONS: Dict[SubscriptionStatus, frozenset] = {
    SubscriptionStatus.PENDING: frozenset({
        SubscriptionStatus.QUEUED,
        SubscriptionStatus.APPROVED,
        SubscriptionStatus.ACTIVE,
        SubscriptionStatus.CANCELLED,
    }),
    SubscriptionStatus.QUEUED: frozenset({SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELLED}),
    SubscriptionStatus.APPROVED: frozenset({SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELLED}),
    SubscriptionStatus.ACTIVE: frozenset({SubscriptionStatus.EXPIRED, SubscriptionStatus.CANCELLED}),
    SubscriptionStatus.EXPIRED: frozenset(),
    SubscriptionStatus.CANCELLED: frozenset(),
}

# Statuses that hold a slot in the device queue
QUEUE_STATUSES = (SubscriptionStatus.PENDING, SubscriptionStatus.QUEUED)

TERMINAL_STATUSES = (SubscriptionStatus.EXPIRED, SubscriptionStatus.CANCELLED)


class Subscription(BaseModel, table=True):
    """
    Subscription - Time-bounded grant of service for one device under one plan

    Domain Rules:
    - PENDING is the only initial state (admin queue insertion starts at QUEUED)
    - EXPIRED and CANCELLED are terminal
    - At most one ACTIVE subscription per device
    - queue_position is a string-encoded positive integer, dense 1..N per device
      among PENDING/QUEUED subscriptions
    - start_date/end_date are set only once ACTIVE
    - renewal_history is append-only
    - Never physically deleted
    """

    __tablename__ = "subscriptions"
    __table_args__ = (
        Index('ix_subscriptions_device_status', 'hardware_id', 'status'),
        Index('ix_subscriptions_user_status', 'user_id', 'status'),
        Index('ix_subscriptions_status_end_date', 'status', 'end_date'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique subscription identifier (UUID)"
    )

    user_id: str = Field(
        description="Owning user id"
    )

    hardware_id: str = Field(
        sa_column=Column(String(64), ForeignKey("devices.hardware_id"), nullable=False),
        description="Hardware id of the device this slot is for"
    )

    device_label: str = Field(
        default="Device",
        description="Device name as given on the request"
    )

    contact_email: Optional[str] = Field(
        default=None,
        description="Address notifications about this subscription go to"
    )

    contact_phone: Optional[str] = Field(
        default=None,
        description="Contact phone number given on the request"
    )

    plan: str = Field(
        sa_column=Column(String(100), nullable=False),
        description="Plan identifier"
    )

    price: Decimal = Field(
        sa_column=Column(Numeric(12, 2), nullable=False),
        description="Plan price at the time of the last plan change"
    )

    cards: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
        description="References to previously uploaded encryption card artifacts"
    )

    status: SubscriptionStatus = Field(
        default=SubscriptionStatus.PENDING,
        description="Lifecycle status"
    )

    queue_position: Optional[str] = Field(
        default=None,
        sa_column=Column(String(16), nullable=True),
        description="Position in the device queue while PENDING/QUEUED"
    )

    priority: int = Field(
        default=0,
        description="Queue priority, higher is served first"
    )

    start_date: Optional[datetime] = Field(default=None)
    end_date: Optional[datetime] = Field(default=None)
    activated_at: Optional[datetime] = Field(default=None)
    auto_activated: bool = Field(default=False)
    expired_at: Optional[datetime] = Field(default=None)
    cancelled_at: Optional[datetime] = Field(default=None)
    cancelled_by: Optional[str] = Field(default=None)

    queued_by: Optional[str] = Field(default=None, description="Admin who queued it")
    queued_at: Optional[datetime] = Field(default=None)
    reviewed_by: Optional[str] = Field(default=None, description="Admin who reviewed it")
    reviewed_at: Optional[datetime] = Field(default=None)
    admin_notes: Optional[str] = Field(default=None)
    submission_notes: Optional[str] = Field(default=None)

    renewal_history: List[Dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
        description="Append-only list of renewals"
    )

    renewal_count: int = Field(default=0)
    last_renewal_at: Optional[datetime] = Field(default=None)

    total_paid: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(12, 2), nullable=False, default=0),
        description="Sum of the initial price and every renewal price"
    )

    original_duration_days: Optional[int] = Field(default=None)

    created_at: datetime = Field(
        default_factory=utcnow,
        description="Request timestamp, FIFO tie-break for the queue"
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        description="Last update timestamp"
    )

    @property
    def position_number(self) -> Optional[int]:
        if self.queue_position is None:
            return None
        try:
            return int(self.queue_position)
        except ValueError:
            return None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def in_queue(self) -> bool:
        return self.status in QUEUE_STATUSES

    def can_transition_to(self, target: SubscriptionStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    def days_remaining(self, now: datetime) -> int:
        if self.status != SubscriptionStatus.ACTIVE or self.end_date is None:
            return 0
        remaining = (self.end_date - now).total_seconds()
        if remaining <= 0:
            return 0
        return int(-(-remaining // 86400))
