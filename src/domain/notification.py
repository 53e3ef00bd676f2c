"""Notification Outbox Domain Entity

Notification intents are written in the same atomic unit as the state change
they announce and delivered later by the dispatcher, with retry.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any
from sqlmodel import Field, Column, Index
from sqlalchemy import JSON, String, Text
from src.domain.base import BaseModel, generate_uuid, utcnow


class NotificationKind(str, Enum):
    QUEUED = "queued"
    APPROVED = "approved"
    REJECTED = "rejected"
    WELCOME = "welcome"


class OutboxStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class NotificationOutbox(BaseModel, table=True):
    """
    Notification Outbox - Undelivered notification intent

    Domain Rules:
    - Written inside the atomic unit of the state change it announces
    - Delivered at most NOTIFICATION_MAX_ATTEMPTS times, then marked failed
    - Delivery outcome never affects subscription state
    """

    __tablename__ = "notification_outbox"
    __table_args__ = (
        Index('ix_notification_outbox_status_next_attempt', 'status', 'next_attempt_at'),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True)

    kind: NotificationKind = Field(description="Notification template kind")

    recipient_email: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Recipient address"
    )

    template_args: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
        description="Arguments for the notification template"
    )

    subscription_id: Optional[str] = Field(default=None, index=True)

    status: OutboxStatus = Field(default=OutboxStatus.PENDING)

    attempts: int = Field(default=0)

    last_error: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )

    next_attempt_at: datetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)
    sent_at: Optional[datetime] = Field(default=None)
