"""Authorization gate

Every operation performs exactly one capability check through ``authorize``.
"""

from decimal import Decimal
from src.domain.actor import ActorContext, Capability, Role
from src.domain.errors import AuthorizationError
from src.domain.subscription import Subscription


def authorize(actor: ActorContext, capability: Capability) -> None:
    if not actor.is_active:
        raise AuthorizationError("Account is inactive", code="ACCOUNT_INACTIVE")
    if not actor.has(capability):
        raise AuthorizationError(
            f"Role '{actor.role.value}' lacks capability '{capability.value}'",
            code="INSUFFICIENT_PERMISSIONS",
        )


def authorize_owner_or(actor: ActorContext, subscription: Subscription, capability: Capability) -> None:
    """Owner of the subscription, or any actor holding ``capability``"""
    if not actor.is_active:
        raise AuthorizationError("Account is inactive", code="ACCOUNT_INACTIVE")
    if subscription.user_id == actor.user_id:
        return
    if not actor.has(capability):
        raise AuthorizationError(
            "Unauthorized access to subscription",
            code="NOT_SUBSCRIPTION_OWNER",
        )


def check_approval_ceiling(actor: ActorContext, price: Decimal) -> None:
    if actor.role == Role.SUPER_ADMIN or actor.approval_limit is None:
        return
    if price > actor.approval_limit:
        raise AuthorizationError(
            f"Subscription price {price} exceeds approval limit {actor.approval_limit}",
            code="APPROVAL_LIMIT_EXCEEDED",
        )
