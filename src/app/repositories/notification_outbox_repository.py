"""Notification Outbox Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List
from src.domain.notification import NotificationOutbox


class NotificationOutboxRepository(ABC):

    @abstractmethod
    async def add(self, message: NotificationOutbox) -> NotificationOutbox:
        pass

    @abstractmethod
    async def get_due(self, now: datetime, limit: int = 50) -> List[NotificationOutbox]:
        """Pending messages whose next_attempt_at has passed, oldest first"""
        pass

    @abstractmethod
    async def update(self, message: NotificationOutbox) -> NotificationOutbox:
        pass
