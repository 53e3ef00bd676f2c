"""SQLAlchemy implementation of NotificationOutboxRepository"""

from datetime import datetime
from typing import List
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.notification_outbox_repository import NotificationOutboxRepository
from src.domain.notification import NotificationOutbox, OutboxStatus


class SqlAlchemyNotificationOutboxRepository(NotificationOutboxRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, message: NotificationOutbox) -> NotificationOutbox:
        self.session.add(message)
        await self.session.flush()
        return message

    async def get_due(self, now: datetime, limit: int = 50) -> List[NotificationOutbox]:
        stmt = (
            select(NotificationOutbox)
            .where(NotificationOutbox.status == OutboxStatus.PENDING)
            .where(NotificationOutbox.next_attempt_at <= now)
            .order_by(NotificationOutbox.created_at.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update(self, message: NotificationOutbox) -> NotificationOutbox:
        self.session.add(message)
        await self.session.flush()
        return message
