"""Sweep Lease Domain Entity

Persisted lease that lets several processes agree on which one runs the daily
reconciliation sweep.
"""

from datetime import datetime
from sqlmodel import Field, Column
from sqlalchemy import String
from src.domain.base import BaseModel, utcnow


class SweepLease(BaseModel, table=True):
    """
    Sweep Lease - Named lock with an expiring owner token

    Domain Rules:
    - One row per lease name
    - A lease is free when expires_at has passed
    - Only the owner token may renew or release a live lease
    """

    __tablename__ = "sweep_leases"

    name: str = Field(
        sa_column=Column(String(64), primary_key=True),
        description="Lease name"
    )

    owner_token: str = Field(description="Token of the current holder")

    acquired_at: datetime = Field(default_factory=utcnow)

    expires_at: datetime = Field(description="Lease is free after this instant")

    def is_held_at(self, now: datetime) -> bool:
        return self.expires_at > now
