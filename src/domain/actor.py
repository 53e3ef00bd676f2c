"""Actor context and role capabilities

The identity of the caller arrives from an external authentication layer as an
opaque context. Authorization is a single capability check per operation.
"""

from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, Optional
from pydantic import BaseModel, Field


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class Capability(str, Enum):
    REQUEST_SUBSCRIPTIONS = "request_subscriptions"
    APPROVE_SUBSCRIPTIONS = "approve_subscriptions"
    MANAGE_QUEUE = "manage_queue"
    VIEW_ALL_SUBSCRIPTIONS = "view_all_subscriptions"
    VIEW_ANALYTICS = "view_analytics"
    CANCEL_ANY_SUBSCRIPTION = "cancel_any_subscription"
    RUN_SWEEP = "run_sweep"


_ADMIN_CAPABILITIES = frozenset({
    Capability.REQUEST_SUBSCRIPTIONS,
    Capability.APPROVE_SUBSCRIPTIONS,
    Capability.MANAGE_QUEUE,
    Capability.VIEW_ALL_SUBSCRIPTIONS,
    Capability.VIEW_ANALYTICS,
    Capability.CANCEL_ANY_SUBSCRIPTION,
})

ROLE_CAPABILITIES: Dict[Role, FrozenSet[Capability]] = {
    Role.USER: frozenset({Capability.REQUEST_SUBSCRIPTIONS}),
    Role.ADMIN: _ADMIN_CAPABILITIES,
    Role.SUPER_ADMIN: _ADMIN_CAPABILITIES | {Capability.RUN_SWEEP},
}


class ActorContext(BaseModel):
    """Identity and role of the caller, as established upstream"""

    user_id: str = Field(..., min_length=1)
    role: Role = Role.USER
    is_active: bool = True
    approval_limit: Optional[Decimal] = Field(
        default=None,
        description="Highest subscription price this admin may approve (None = no ceiling)"
    )

    @property
    def capabilities(self) -> FrozenSet[Capability]:
        return ROLE_CAPABILITIES.get(self.role, frozenset())

    def has(self, capability: Capability) -> bool:
        return self.is_active and capability in self.capabilities
