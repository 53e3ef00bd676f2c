"""ActivationProtocol Use Case

Verifies a time-based one-time code against the device secret and flips a
QUEUED subscription to ACTIVE.
"""

import logging
from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.actor import ActorContext
from src.domain.errors import AuthorizationError, ConflictError, failure
from src.domain.ledger_entry import LedgerEventType
from src.domain.notification import NotificationKind
from src.domain.subscription import SubscriptionStatus
from .device_registry import DeviceRegistry
from .dtos import SubscriptionDTO, to_subscription_dto
from .ledger import Ledger
from .lifecycle import SubscriptionLifecycle

logger = logging.getLogger(__name__)


class ActivationProtocol:
    """
    Use Case: Activate a queued subscription with a device code

    Preconditions (checked in this order):
    1. Subscription belongs to the requesting user
    2. Subscription is QUEUED
    3. Subscription is bound to the given device
    4. Code matches the device secret within the tolerance window

    A wrong code changes nothing and does not count against any retry budget.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        lifecycle: SubscriptionLifecycle,
        device_registry: DeviceRegistry,
        ledger: Ledger,
    ):
        self.uow = uow
        self.lifecycle = lifecycle
        self.device_registry = device_registry
        self.ledger = ledger

    async def execute(
        self, actor: ActorContext, subscription_id: str, hardware_id: str, code: str
    ) -> Result[SubscriptionDTO]:
        """
        Args:
            actor: Requesting user
            subscription_id: Subscription to activate
            hardware_id: Device the request comes from
            code: One-time code shown by the device

        Returns:
            Result[SubscriptionDTO]: Activated subscription or error
        """
        try:
            if not actor.is_active:
                raise AuthorizationError("Account is inactive", code="ACCOUNT_INACTIVE")

            subscription = await self.lifecycle.get(subscription_id, for_update=True)
            if subscription.user_id != actor.user_id:
                raise AuthorizationError(
                    "Unauthorized access to subscription",
                    code="NOT_SUBSCRIPTION_OWNER",
                )
            if subscription.status != SubscriptionStatus.QUEUED:
                raise ConflictError(
                    f"Only queued subscriptions can be activated (status: {subscription.status.value})",
                    code="SUBSCRIPTION_NOT_QUEUED",
                )
            if subscription.hardware_id != (hardware_id or "").strip():
                raise AuthorizationError(
                    "Subscription is not bound to this device",
                    code="DEVICE_MISMATCH",
                )

            device = await self.device_registry.get(subscription.hardware_id, for_update=True)
            if not self.device_registry.verify_code(device, code):
                logger.warning(
                    f"Invalid activation code for subscription {subscription.id} "
                    f"on device {device.hardware_id}"
                )
                raise AuthorizationError("Invalid activation code", code="INVALID_ACTIVATION_CODE")

            await self.lifecycle.activate(subscription)
            first_onboarding = await self.device_registry.mark_onboarded(device)
            if first_onboarding:
                await self.lifecycle.enqueue_notification(NotificationKind.WELCOME, subscription)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            return Return.err(failure(e, "ACTIVATE_SUBSCRIPTION_FAILED", "Failed to activate subscription"))

        response = to_subscription_dto(subscription, self.lifecycle.clock())
        await self.ledger.record_after_commit(
            self.uow,
            subscription,
            LedgerEventType.ACTIVATED,
            amount=0,
            processed_by=actor.user_id,
            details={"first_onboarding": first_onboarding},
        )
        return Return.ok(response)
