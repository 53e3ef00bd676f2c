"""QueueManager component

Assigns and maintains dense integer queue positions for a device's
PENDING/QUEUED subscriptions.
"""

import logging
from typing import List
from src.app.repositories.device_repository import DeviceRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.domain.errors import ConflictError, NotFoundError, ValidationError
from src.domain.subscription import Subscription

logger = logging.getLogger(__name__)

_UNPOSITIONED = 10 ** 9


def _queue_order_key(subscription: Subscription):
    position = subscription.position_number
    return (
        -subscription.priority,
        position if position is not None else _UNPOSITIONED,
        subscription.created_at,
    )


class QueueManager:
    """
    Per-device queue bookkeeping

    Invariant: after every mutation the positions of a device's PENDING/QUEUED
    subscriptions are exactly "1".."N".

    Ordering: priority descending, then the current position, then creation
    time. New requests are appended at N+1, so with equal priorities this is
    FIFO, and a manual reposition is kept by the next reorder.
    """

    def __init__(self, subscription_repo: SubscriptionRepository, device_repo: DeviceRepository):
        self.subscription_repo = subscription_repo
        self.device_repo = device_repo

    async def _require_device(self, hardware_id: str) -> None:
        device = await self.device_repo.get_by_hardware_id(hardware_id)
        if device is None:
            raise ValidationError(
                f"Device {hardware_id} does not exist",
                code="UNKNOWN_DEVICE",
            )

    async def next_position(self, hardware_id: str) -> str:
        """Highest existing position + 1, or "1" for an empty queue"""
        await self._require_device(hardware_id)
        queue = await self.subscription_repo.list_queue(hardware_id, for_update=True)
        positions = [s.position_number for s in queue if s.position_number is not None]
        return str(max(positions) + 1 if positions else 1)

    async def reorder(self, hardware_id: str) -> List[Subscription]:
        """Recompute contiguous positions 1..N; returns the queue in its new order"""
        queue = await self.subscription_repo.list_queue(hardware_id, for_update=True)
        ordered = sorted(queue, key=_queue_order_key)

        for index, subscription in enumerate(ordered, start=1):
            position = str(index)
            if subscription.queue_position != position:
                subscription.queue_position = position
                await self.subscription_repo.update(subscription)

        return ordered

    async def reposition(self, subscription_id: str, new_position: int) -> List[Subscription]:
        """
        Move a queued subscription to ``new_position``

        Raises:
            NotFoundError: Unknown subscription
            ConflictError: Subscription is not PENDING/QUEUED
            ValidationError: new_position outside 1..N+1 (N = queue length without the target)
        """
        subscription = await self.subscription_repo.get_by_id(subscription_id, for_update=True)
        if subscription is None:
            raise NotFoundError(
                f"Subscription {subscription_id} not found",
                code="SUBSCRIPTION_NOT_FOUND",
            )
        if not subscription.in_queue:
            raise ConflictError(
                f"Subscription in status {subscription.status.value} cannot be repositioned",
                code="NOT_REPOSITIONABLE",
            )

        await self._require_device(subscription.hardware_id)
        queue = await self.subscription_repo.list_queue(subscription.hardware_id, for_update=True)
        others = [s for s in queue if s.id != subscription.id]
        upper = len(others) + 1

        if isinstance(new_position, bool) or not isinstance(new_position, int):
            raise ValidationError("Queue position must be an integer", code="INVALID_QUEUE_POSITION")
        if new_position < 1 or new_position > upper:
            raise ValidationError(
                f"Queue position must be between 1 and {upper}",
                code="INVALID_QUEUE_POSITION",
            )

        current = subscription.position_number or upper
        for other in others:
            position = other.position_number
            if position is None:
                continue
            if new_position < current and new_position <= position < current:
                other.queue_position = str(position + 1)
                await self.subscription_repo.update(other)
            elif new_position > current and current < position <= new_position:
                other.queue_position = str(position - 1)
                await self.subscription_repo.update(other)

        subscription.queue_position = str(new_position)
        await self.subscription_repo.update(subscription)

        logger.info(
            f"Repositioned subscription {subscription.id} on device {subscription.hardware_id} "
            f"from {current} to {new_position}"
        )
        return await self.reorder(subscription.hardware_id)
