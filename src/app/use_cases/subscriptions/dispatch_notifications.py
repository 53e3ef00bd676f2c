"""DispatchNotifications Use Case

Delivers due notification outbox rows. Delivery outcome never touches
subscription state.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable
from libs.result import Result, Return
from src.app.repositories.notification_outbox_repository import NotificationOutboxRepository
from src.app.services.notification_service import NotificationService
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.errors import failure
from src.domain.notification import OutboxStatus
from .dtos import DispatchResultDTO

logger = logging.getLogger(__name__)


class DispatchNotifications:
    """
    Use Case: Deliver pending outbox messages with retry

    Business Rules:
    1. A delivered message is marked sent
    2. A failed delivery is retried after attempts * backoff seconds
    3. After max_attempts failures the message is marked failed and dropped
    """

    def __init__(
        self,
        uow: UnitOfWork,
        outbox_repo: NotificationOutboxRepository,
        notification_service: NotificationService,
        max_attempts: int = 5,
        backoff_seconds: int = 60,
        batch_size: int = 50,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.outbox_repo = outbox_repo
        self.notification_service = notification_service
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.batch_size = batch_size
        self.clock = clock

    async def execute(self) -> Result[DispatchResultDTO]:
        result = DispatchResultDTO()
        try:
            messages = await self.outbox_repo.get_due(self.clock(), limit=self.batch_size)

            for message in messages:
                error = None
                try:
                    delivered = await self.notification_service.notify(
                        message.kind, message.recipient_email, dict(message.template_args or {})
                    )
                except Exception as e:
                    delivered = False
                    error = str(e)

                now = self.clock()
                message.attempts += 1
                if delivered:
                    message.status = OutboxStatus.SENT
                    message.sent_at = now
                    message.last_error = None
                    result.sent += 1
                elif message.attempts >= self.max_attempts:
                    message.status = OutboxStatus.FAILED
                    message.last_error = error or "delivery failed"
                    result.failed += 1
                    logger.error(
                        f"Notification {message.id} ({message.kind.value}) to {message.recipient_email} "
                        f"failed after {message.attempts} attempts: {message.last_error}"
                    )
                else:
                    message.last_error = error or "delivery failed"
                    message.next_attempt_at = now + timedelta(
                        seconds=self.backoff_seconds * message.attempts
                    )
                    result.retried += 1

                await self.outbox_repo.update(message)
                await self.uow.commit()

            return Return.ok(result)

        except Exception as e:
            await self.uow.rollback()
            return Return.err(failure(e, "DISPATCH_NOTIFICATIONS_FAILED", "Failed to dispatch notifications"))
