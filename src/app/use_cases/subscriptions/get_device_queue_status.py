"""GetDeviceQueueStatus Use Case"""

from libs.result import Result, Return
from src.app.repositories.device_repository import DeviceRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.domain.actor import ActorContext, Capability
from src.domain.base import utcnow
from src.domain.errors import AuthorizationError, NotFoundError, failure
from .authorization import authorize
from .dtos import DeviceQueueStatusDTO, QueueStatsDTO, to_subscription_dto

HISTORY_LIMIT = 10


class GetDeviceQueueStatus:
    """
    Use Case: Show a device's active subscription and its queue

    Users may only look at devices they hold a subscription on.
    """

    def __init__(self, subscription_repo: SubscriptionRepository, device_repo: DeviceRepository):
        self.subscription_repo = subscription_repo
        self.device_repo = device_repo

    async def execute(
        self, actor: ActorContext, hardware_id: str, include_history: bool = False
    ) -> Result[DeviceQueueStatusDTO]:
        try:
            authorize(actor, Capability.REQUEST_SUBSCRIPTIONS)
            device = await self.device_repo.get_by_hardware_id(hardware_id)
            if device is None:
                raise NotFoundError(f"Device {hardware_id} not found", code="DEVICE_NOT_FOUND")

            if not actor.has(Capability.VIEW_ALL_SUBSCRIPTIONS):
                _, owned = await self.subscription_repo.search(
                    hardware_id=hardware_id, user_id=actor.user_id, limit=1
                )
                if owned == 0:
                    raise AuthorizationError(
                        "No subscription of yours is bound to this device",
                        code="DEVICE_ACCESS_DENIED",
                    )

            now = utcnow()
            active = await self.subscription_repo.get_active_for_device(hardware_id)
            queue = await self.subscription_repo.list_queue(hardware_id)

            history = None
            if include_history:
                history = [
                    to_subscription_dto(s, now)
                    for s in await self.subscription_repo.list_history_for_device(hardware_id, HISTORY_LIMIT)
                ]

            return Return.ok(DeviceQueueStatusDTO(
                hardware_id=device.hardware_id,
                device_label=device.label,
                is_onboarded=device.is_onboarded,
                active=to_subscription_dto(active, now) if active else None,
                queue=[to_subscription_dto(s, now) for s in queue],
                stats=QueueStatsDTO(
                    total_in_queue=len(queue),
                    has_active=active is not None,
                    next_in_queue=queue[0].id if queue else None,
                ),
                history=history,
            ))

        except Exception as e:
            return Return.err(failure(e, "GET_QUEUE_STATUS_FAILED", "Failed to get device queue status"))
