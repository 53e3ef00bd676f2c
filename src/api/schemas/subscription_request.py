"""Request schemas for the Subscription API

Pydantic models for validating incoming HTTP requests.
"""

from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel, Field, field_validator

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Success envelope wrapped around every response body"""

    success: bool = True
    data: T


class CreateSubscriptionRequestSchema(BaseModel):
    """
    Request schema for requesting a subscription slot

    Used for POST /subscriptions endpoint.
    """

    hardware_id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Hardware id (IMEI) of the device"
    )

    plan: str = Field(
        ...,
        min_length=1,
        description="Plan identifier, e.g. 'mobile-v4-basic'"
    )

    cards: List[str] = Field(
        ...,
        description="URLs of previously uploaded encryption card images (at least one)"
    )

    device_label: Optional[str] = Field(default=None, max_length=100)
    contact_email: Optional[str] = Field(default=None, max_length=255)
    contact_phone: Optional[str] = Field(default=None, max_length=32)
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator('hardware_id')
    @classmethod
    def strip_hardware_id(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("hardware_id must not be blank")
        return v

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


class ActivateRequestSchema(BaseModel):
    """Used for POST /subscriptions/{id}/activate"""

    hardware_id: str = Field(..., min_length=1, max_length=64)
    code: str = Field(..., min_length=6, max_length=8, description="One-time code shown by the device")


class RenewRequestSchema(BaseModel):
    plan: str = Field(..., min_length=1, description="Plan to renew with")


class DeviceSetupRequestSchema(BaseModel):
    hardware_id: str = Field(..., min_length=1, max_length=64)
    label: Optional[str] = Field(default=None, max_length=100)


class ApproveRequestSchema(BaseModel):
    activate_immediately: bool = Field(
        default=False,
        description="Activate now instead of placing the subscription in the queue"
    )
    notes: Optional[str] = Field(default=None, max_length=1000)


class RejectRequestSchema(BaseModel):
    reason: str = Field(..., description="Reason shown to the user, stored verbatim")


class BulkActionRequestSchema(BaseModel):
    """
    Request schema for bulk approve/reject

    Used for POST /admin/subscriptions/bulk endpoint.
    """

    action: str = Field(..., pattern="^(approve|reject)$")
    subscription_ids: List[str] = Field(..., min_length=1, max_length=100)
    activate_immediately: bool = Field(default=False)
    reason: Optional[str] = Field(default=None, description="Required for reject")
    notes: Optional[str] = Field(default=None, max_length=1000)

    class Config:
        json_schema_extra = {
            "example": {
                "action": "approve",
                "subscription_ids": ["8c1d...", "f2a9..."],
                "activate_immediately": False,
            }
        }


class QueueInsertRequestSchema(BaseModel):
    """Used for POST /admin/queue"""

    user_id: str = Field(..., min_length=1)
    hardware_id: str = Field(..., min_length=1, max_length=64)
    plan: str = Field(..., min_length=1)
    cards: List[str] = Field(default_factory=list)
    device_label: Optional[str] = Field(default=None, max_length=100)
    contact_email: Optional[str] = Field(default=None, max_length=255)
    contact_phone: Optional[str] = Field(default=None, max_length=32)
    priority: int = Field(default=0, ge=0, le=100)
    notes: Optional[str] = Field(default=None, max_length=1000)


class RepositionRequestSchema(BaseModel):
    position: int = Field(..., description="New 1-based queue position")
