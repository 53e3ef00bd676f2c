"""SubscriptionLifecycle component

State machine for a single subscription:

    PENDING  -> QUEUED | APPROVED | ACTIVE | CANCELLED
    QUEUED   -> ACTIVE | CANCELLED
    APPROVED -> ACTIVE | CANCELLED
    ACTIVE   -> EXPIRED | CANCELLED

Every method runs inside the caller's atomic unit and raises a DomainError to
abort it. Nothing here commits.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple
from src.app.repositories.notification_outbox_repository import NotificationOutboxRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.domain.actor import ActorContext, Capability
from src.domain.base import utcnow
from src.domain.errors import ConflictError, NotFoundError, ValidationError
from src.domain.ledger_entry import LedgerEntry, LedgerEntryStatus, LedgerEventType
from src.domain.notification import NotificationKind, NotificationOutbox
from src.domain.plan import Plan, get_plan, plan_or_fallback
from src.domain.subscription import Subscription, SubscriptionStatus
from .authorization import authorize, authorize_owner_or, check_approval_ceiling
from .device_registry import DeviceRegistry
from .dtos import CreateSubscriptionCommandDTO, QueueForUserCommandDTO
from .ledger import Ledger
from .queue_manager import QueueManager

logger = logging.getLogger(__name__)


def _require_known_plan(plan_id: str) -> Plan:
    plan = get_plan(plan_id)
    if plan is None:
        raise ValidationError(f"Invalid subscription plan '{plan_id}'", code="INVALID_PLAN")
    return plan


class SubscriptionLifecycle:
    """
    Subscription state machine

    Business Rules:
    1. PENDING is the only initial state for user requests
    2. At most one ACTIVE subscription per device; checked under lock inside
       the same unit as any activation write
    3. Leaving the queue (activation, rejection, cancellation) compacts the
       device queue
    4. Renewal extends from the current end date, never from now
    """

    def __init__(
        self,
        subscription_repo: SubscriptionRepository,
        device_registry: DeviceRegistry,
        queue_manager: QueueManager,
        ledger: Ledger,
        outbox_repo: NotificationOutboxRepository,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.subscription_repo = subscription_repo
        self.device_registry = device_registry
        self.queue_manager = queue_manager
        self.ledger = ledger
        self.outbox_repo = outbox_repo
        self.clock = clock

    async def get(self, subscription_id: str, for_update: bool = False) -> Subscription:
        subscription = await self.subscription_repo.get_by_id(subscription_id, for_update=for_update)
        if subscription is None:
            raise NotFoundError(
                f"Subscription {subscription_id} not found",
                code="SUBSCRIPTION_NOT_FOUND",
            )
        return subscription

    def _transition(self, subscription: Subscription, target: SubscriptionStatus) -> None:
        if not subscription.can_transition_to(target):
            raise ConflictError(
                f"Cannot move subscription from {subscription.status.value} to {target.value}",
                code="INVALID_STATUS_TRANSITION",
            )
        subscription.status = target

    async def _ensure_no_active(self, hardware_id: str) -> None:
        active = await self.subscription_repo.get_active_for_device(hardware_id, for_update=True)
        if active is not None:
            raise ConflictError(
                f"Device {hardware_id} already has an active subscription",
                code="DEVICE_HAS_ACTIVE_SUBSCRIPTION",
            )

    async def enqueue_notification(
        self, kind: NotificationKind, subscription: Subscription, **extra
    ) -> None:
        if not subscription.contact_email:
            return
        args = {
            "subscription_id": subscription.id,
            "plan": subscription.plan,
            "hardware_id": subscription.hardware_id,
            "device_label": subscription.device_label,
            "queue_position": subscription.queue_position,
        }
        if subscription.end_date:
            args["end_date"] = subscription.end_date.isoformat()
        args.update(extra)
        await self.outbox_repo.add(
            NotificationOutbox(
                kind=kind,
                recipient_email=subscription.contact_email,
                template_args=args,
                subscription_id=subscription.id,
                next_attempt_at=self.clock(),
            )
        )

    async def create(
        self, actor: ActorContext, command: CreateSubscriptionCommandDTO
    ) -> Tuple[Subscription, LedgerEntry]:
        """
        Register the request: device (if new), PENDING subscription at the next
        queue position, pending "created" ledger entry and queued notification.
        """
        authorize(actor, Capability.REQUEST_SUBSCRIPTIONS)
        plan = _require_known_plan(command.plan)

        cards = [card for card in command.cards if card and card.strip()]
        if not cards:
            raise ValidationError(
                "At least one encryption card is required",
                code="CARDS_REQUIRED",
            )

        device = await self.device_registry.ensure(
            command.hardware_id, actor.user_id, command.device_label
        )
        await self._ensure_no_active(device.hardware_id)

        position = await self.queue_manager.next_position(device.hardware_id)
        subscription = Subscription(
            user_id=actor.user_id,
            hardware_id=device.hardware_id,
            device_label=command.device_label or device.label,
            contact_email=command.contact_email,
            contact_phone=command.contact_phone,
            plan=plan.plan_id,
            price=plan.price,
            cards=cards,
            status=SubscriptionStatus.PENDING,
            queue_position=position,
            submission_notes=command.notes,
            total_paid=plan.price,
            original_duration_days=plan.duration_days,
            created_at=self.clock(),
            updated_at=self.clock(),
        )
        subscription = await self.subscription_repo.create(subscription)
        await self.queue_manager.reorder(device.hardware_id)

        entry = await self.ledger.append(
            subscription,
            LedgerEventType.CREATED,
            status=LedgerEntryStatus.PENDING,
            processed_by=actor.user_id,
            notes=command.notes,
            details={"cards": len(cards)},
        )
        await self.enqueue_notification(NotificationKind.QUEUED, subscription)
        return subscription, entry

    async def queue_for_user(
        self, actor: ActorContext, command: QueueForUserCommandDTO
    ) -> Tuple[Subscription, LedgerEntry]:
        """Admin insertion directly at QUEUED, bypassing the user request path"""
        authorize(actor, Capability.MANAGE_QUEUE)
        plan = _require_known_plan(command.plan)

        device = await self.device_registry.ensure(
            command.hardware_id, command.user_id, command.device_label
        )
        existing = await self.subscription_repo.find_queued_for_user(command.user_id, device.hardware_id)
        if existing is not None:
            raise ConflictError(
                f"User {command.user_id} already has a queued request for device {device.hardware_id}",
                code="DUPLICATE_QUEUE_ENTRY",
            )

        now = self.clock()
        position = await self.queue_manager.next_position(device.hardware_id)
        subscription = Subscription(
            user_id=command.user_id,
            hardware_id=device.hardware_id,
            device_label=command.device_label or device.label,
            contact_email=command.contact_email,
            contact_phone=command.contact_phone,
            plan=plan.plan_id,
            price=plan.price,
            cards=[card for card in command.cards if card],
            status=SubscriptionStatus.QUEUED,
            queue_position=position,
            priority=command.priority,
            queued_by=actor.user_id,
            queued_at=now,
            reviewed_by=actor.user_id,
            reviewed_at=now,
            admin_notes=command.notes,
            total_paid=plan.price,
            original_duration_days=plan.duration_days,
            created_at=now,
            updated_at=now,
        )
        subscription = await self.subscription_repo.create(subscription)
        await self.queue_manager.reorder(device.hardware_id)

        entry = await self.ledger.append(
            subscription,
            LedgerEventType.QUEUED,
            processed_by=actor.user_id,
            notes=command.notes,
            details={"manual_insertion": True, "priority": command.priority},
        )
        await self.enqueue_notification(NotificationKind.QUEUED, subscription)
        return subscription, entry

    async def activate(
        self,
        subscription: Subscription,
        auto_activated: bool = False,
    ) -> Subscription:
        """
        Flip a waiting subscription to ACTIVE for its plan duration

        The caller must already hold the subscription row lock; the
        one-active-per-device check is repeated here under lock.
        """
        await self._ensure_no_active(subscription.hardware_id)
        self._transition(subscription, SubscriptionStatus.ACTIVE)

        plan = plan_or_fallback(subscription.plan)
        now = self.clock()
        subscription.start_date = now
        subscription.end_date = now + timedelta(days=plan.duration_days)
        subscription.activated_at = now
        subscription.auto_activated = auto_activated
        subscription.queue_position = None
        await self.subscription_repo.update(subscription)
        await self.queue_manager.reorder(subscription.hardware_id)

        logger.info(
            f"Subscription {subscription.id} activated on device {subscription.hardware_id} "
            f"until {subscription.end_date.isoformat()}"
        )
        return subscription

    async def approve(
        self,
        actor: ActorContext,
        subscription_id: str,
        activate_immediately: bool = False,
        notes: Optional[str] = None,
    ) -> Subscription:
        authorize(actor, Capability.APPROVE_SUBSCRIPTIONS)
        subscription = await self.get(subscription_id, for_update=True)
        if subscription.status != SubscriptionStatus.PENDING:
            raise ConflictError(
                f"Only pending subscriptions can be approved (status: {subscription.status.value})",
                code="SUBSCRIPTION_NOT_PENDING",
            )
        check_approval_ceiling(actor, subscription.price)

        now = self.clock()
        subscription.reviewed_by = actor.user_id
        subscription.reviewed_at = now
        if notes is not None:
            subscription.admin_notes = notes

        if activate_immediately:
            await self.activate(subscription)
        else:
            self._transition(subscription, SubscriptionStatus.QUEUED)
            subscription.queued_by = actor.user_id
            subscription.queued_at = now
            await self.subscription_repo.update(subscription)
            await self.queue_manager.reorder(subscription.hardware_id)

        await self.enqueue_notification(
            NotificationKind.APPROVED, subscription, activated=activate_immediately
        )
        logger.info(
            f"Subscription {subscription.id} approved by {actor.user_id} "
            f"({subscription.status.value})"
        )
        return subscription

    async def reject(self, actor: ActorContext, subscription_id: str, reason: str) -> Subscription:
        authorize(actor, Capability.APPROVE_SUBSCRIPTIONS)
        if reason is None or not reason.strip():
            raise ValidationError("A rejection reason is required", code="REJECTION_REASON_REQUIRED")

        subscription = await self.get(subscription_id, for_update=True)
        if subscription.status != SubscriptionStatus.PENDING:
            raise ConflictError(
                f"Only pending subscriptions can be rejected (status: {subscription.status.value})",
                code="SUBSCRIPTION_NOT_PENDING",
            )

        now = self.clock()
        self._transition(subscription, SubscriptionStatus.CANCELLED)
        subscription.cancelled_at = now
        subscription.cancelled_by = actor.user_id
        subscription.reviewed_by = actor.user_id
        subscription.reviewed_at = now
        subscription.admin_notes = reason
        subscription.queue_position = None
        await self.subscription_repo.update(subscription)
        await self.queue_manager.reorder(subscription.hardware_id)

        await self.enqueue_notification(NotificationKind.REJECTED, subscription, reason=reason)
        logger.info(f"Subscription {subscription.id} rejected by {actor.user_id}")
        return subscription

    async def cancel(self, actor: ActorContext, subscription_id: str) -> Tuple[Subscription, bool]:
        """
        Cancel from any non-terminal state

        Returns:
            (subscription, changed); changed is False when it was already CANCELLED
        """
        subscription = await self.get(subscription_id, for_update=True)
        authorize_owner_or(actor, subscription, Capability.CANCEL_ANY_SUBSCRIPTION)

        if subscription.status == SubscriptionStatus.CANCELLED:
            return subscription, False

        was_queued = subscription.in_queue
        self._transition(subscription, SubscriptionStatus.CANCELLED)
        subscription.cancelled_at = self.clock()
        subscription.cancelled_by = actor.user_id
        subscription.queue_position = None
        await self.subscription_repo.update(subscription)

        if was_queued:
            await self.queue_manager.reorder(subscription.hardware_id)

        logger.info(f"Subscription {subscription.id} cancelled by {actor.user_id}")
        return subscription, True

    async def renew(
        self,
        actor: ActorContext,
        subscription_id: str,
        new_plan: str,
        allow_plan_fallback: bool = False,
    ) -> Tuple[Subscription, LedgerEntry]:
        """
        Extend an ACTIVE subscription by the new plan's duration, counted from
        its current end date
        """
        subscription = await self.get(subscription_id, for_update=True)
        authorize_owner_or(actor, subscription, Capability.APPROVE_SUBSCRIPTIONS)

        if subscription.status != SubscriptionStatus.ACTIVE:
            raise ConflictError(
                "Only active subscriptions can be renewed",
                code="SUBSCRIPTION_NOT_ACTIVE",
            )

        now = self.clock()
        if subscription.end_date is None or subscription.end_date <= now:
            raise ConflictError(
                "Subscription has already lapsed and cannot be renewed",
                code="SUBSCRIPTION_LAPSED",
            )

        if allow_plan_fallback:
            plan = plan_or_fallback(new_plan)
        else:
            plan = _require_known_plan(new_plan)

        previous_plan = subscription.plan
        previous_end = subscription.end_date
        remaining_days = subscription.days_remaining(now)

        subscription.end_date = previous_end + timedelta(days=plan.duration_days)
        subscription.plan = plan.plan_id
        subscription.price = plan.price

        entry = await self.ledger.append(
            subscription,
            LedgerEventType.RENEWED,
            amount=plan.price,
            processed_by=actor.user_id,
            details={
                "previous_plan": previous_plan,
                "previous_end_date": previous_end.isoformat(),
                "added_duration_days": plan.duration_days,
                "remaining_days_at_renewal": remaining_days,
            },
        )

        subscription.renewal_history = list(subscription.renewal_history or []) + [{
            "renewed_at": now.isoformat(),
            "previous_plan": previous_plan,
            "new_plan": plan.plan_id,
            "added_duration_days": plan.duration_days,
            "remaining_days_at_renewal": remaining_days,
            "transaction_id": entry.transaction_id,
        }]
        subscription.renewal_count = (subscription.renewal_count or 0) + 1
        subscription.last_renewal_at = now
        subscription.total_paid = subscription.total_paid + plan.price
        await self.subscription_repo.update(subscription)

        logger.info(
            f"Subscription {subscription.id} renewed with {plan.plan_id}, "
            f"end date {previous_end.isoformat()} -> {subscription.end_date.isoformat()}"
        )
        return subscription, entry

    async def expire(self, subscription: Subscription) -> Subscription:
        self._transition(subscription, SubscriptionStatus.EXPIRED)
        subscription.expired_at = self.clock()
        await self.subscription_repo.update(subscription)
        logger.info(f"Subscription {subscription.id} expired on device {subscription.hardware_id}")
        return subscription
