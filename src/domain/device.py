"""Device Domain Entity

A hardware endpoint identified by a globally unique hardware id, holding the
secret that one-time activation codes are derived from.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import String
from src.domain.base import BaseModel, generate_uuid, utcnow


class Device(BaseModel, table=True):
    """
    Device - Hardware endpoint that subscriptions are bound to

    Domain Rules:
    - hardware_id is globally unique
    - Created on the first subscription request (or setup) for a new hardware id
    - Never deleted
    - is_onboarded flips to True on the first successful activation
    - activation_secret is only read by the activation protocol
    """

    __tablename__ = "devices"

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique device identifier (UUID)"
    )

    hardware_id: str = Field(
        sa_column=Column(String(64), unique=True, index=True, nullable=False),
        description="Hardware id (IMEI) of the device"
    )

    label: str = Field(
        default="Device",
        sa_column=Column(String(100), nullable=False, default="Device"),
        description="Human readable device name"
    )

    activation_secret: str = Field(
        sa_column=Column(String(128), nullable=False),
        description="Base32 secret for time-based activation codes"
    )

    registered_by: str = Field(
        description="User who first registered the device"
    )

    is_onboarded: bool = Field(
        default=False,
        description="True once a subscription has been activated on this device"
    )

    onboarded_at: Optional[datetime] = Field(
        default=None,
        description="Timestamp of the first successful activation"
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        description="Device registration timestamp"
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        description="Last update timestamp"
    )
