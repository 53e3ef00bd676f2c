"""Shared base for SQLModel entities."""

import uuid
from datetime import datetime, timezone
from sqlmodel import SQLModel


class BaseModel(SQLModel):
    """Base class for all persisted entities"""
    pass


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp, the representation stored in every datetime column"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
