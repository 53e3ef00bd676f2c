"""Ledger Entry Domain Entity

Immutable append-only audit record of one subscription lifecycle event.
Entries of one subscription form a chain ordered by a per-subscription
sequence number, each pointing back at its predecessor.
"""

import secrets
import time
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Dict, Any
from sqlmodel import Field, Column, Index
from sqlalchemy import JSON, Numeric, String, ForeignKey, UniqueConstraint
from src.domain.base import BaseModel, generate_uuid, utcnow


class LedgerEventType(str, Enum):
    """Lifecycle events recorded in the ledger"""
    CREATED = "created"
    QUEUED = "queued"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVATED = "activated"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    RENEWED = "renewed"
    UPGRADED = "upgraded"
    DOWNGRADED = "downgraded"


class LedgerEntryStatus(str, Enum):
    """Entry status; only PENDING may later receive a terminal status"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


TERMINAL_ENTRY_STATUSES = (
    LedgerEntryStatus.COMPLETED,
    LedgerEntryStatus.FAILED,
    LedgerEntryStatus.CANCELLED,
    LedgerEntryStatus.REFUNDED,
)

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _to_base36(number: int) -> str:
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_transaction_id() -> str:
    """TXN_<millis in base36>_<random>, e.g. TXN_LZ3K9Q2A_4F7XQ2"""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"TXN_{_to_base36(millis)}_{suffix}"


class LedgerEntry(BaseModel, table=True):
    """
    Ledger Entry - Audit record of one lifecycle event

    Domain Rules:
    - Entries are immutable; the only permitted change is appending a terminal
      status to a PENDING entry
    - (subscription_id, sequence) is unique; sequence increases by one per entry
    - previous_entry_id points at the entry with sequence - 1 (None for the first)
    - transaction_id is a globally unique, human readable reference
    """

    __tablename__ = "ledger_entries"
    __table_args__ = (
        UniqueConstraint('subscription_id', 'sequence', name='uq_ledger_subscription_sequence'),
        Index('ix_ledger_entries_created_at', 'created_at'),
        Index('ix_ledger_entries_event_type', 'event_type'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique entry identifier (UUID)"
    )

    transaction_id: str = Field(
        default_factory=generate_transaction_id,
        sa_column=Column(String(40), unique=True, index=True, nullable=False),
        description="Human readable unique reference"
    )

    subscription_id: str = Field(
        sa_column=Column(String(36), ForeignKey("subscriptions.id"), index=True, nullable=False),
        description="Subscription this event belongs to"
    )

    hardware_id: str = Field(
        description="Device the subscription is bound to"
    )

    user_id: str = Field(
        index=True,
        description="Owner of the subscription"
    )

    sequence: int = Field(
        description="Position of this entry in the subscription's chain, starting at 1"
    )

    previous_entry_id: Optional[str] = Field(
        default=None,
        description="Entry this one follows in the chain"
    )

    event_type: LedgerEventType = Field(
        description="Lifecycle event"
    )

    status: LedgerEntryStatus = Field(
        default=LedgerEntryStatus.COMPLETED,
        description="Entry status"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(12, 2), nullable=False, default=0),
        description="Monetary amount tied to the event"
    )

    currency: str = Field(default="USD")

    plan: str = Field(
        description="Plan at the time of the event"
    )

    payment_method: str = Field(
        default="ADMIN_APPROVAL",
        description="Payment is modelled as an opaque admin approval"
    )

    period_start: Optional[datetime] = Field(default=None)
    period_end: Optional[datetime] = Field(default=None)
    period_duration_days: Optional[int] = Field(default=None)

    queue_position: Optional[str] = Field(default=None)

    processed_by: Optional[str] = Field(
        default=None,
        description="Actor that caused the event (None for the scheduled sweep)"
    )

    notes: Optional[str] = Field(default=None)

    details: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
        description="Event specific context"
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        description="Entry timestamp (immutable)"
    )

    completed_at: Optional[datetime] = Field(default=None)

    @property
    def is_pending(self) -> bool:
        return self.status == LedgerEntryStatus.PENDING
