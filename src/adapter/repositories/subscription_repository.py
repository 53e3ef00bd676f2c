"""SQLAlchemy Subscription Repository Implementation

Implements subscription persistence using SQLAlchemy async session.
Queue positions are stored as strings and cast to integers for ordering.
"""

from datetime import datetime
from typing import Optional, List, Tuple, Sequence
from sqlalchemy import Integer, cast, func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.domain.base import utcnow
from src.domain.subscription import (
    Subscription,
    SubscriptionStatus,
    QUEUE_STATUSES,
    TERMINAL_STATUSES,
)


def _numeric_position():
    return cast(Subscription.queue_position, Integer)


class SqlAlchemySubscriptionRepository(SubscriptionRepository):
    """
    SQLAlchemy implementation of SubscriptionRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE on reads preceding a mutation
    - Numeric ordering of string-encoded queue positions
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, subscription: Subscription) -> Subscription:
        self.session.add(subscription)
        await self.session.flush()
        await self.session.refresh(subscription)
        return subscription

    async def update(self, subscription: Subscription) -> Subscription:
        subscription.updated_at = utcnow()
        self.session.add(subscription)
        await self.session.flush()
        return subscription

    async def get_by_id(self, subscription_id: str, for_update: bool = False) -> Optional[Subscription]:
        stmt = select(Subscription).where(Subscription.id == subscription_id)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active_for_device(self, hardware_id: str, for_update: bool = False) -> Optional[Subscription]:
        stmt = (
            select(Subscription)
            .where(Subscription.hardware_id == hardware_id)
            .where(Subscription.status == SubscriptionStatus.ACTIVE)
            .order_by(Subscription.start_date.desc())
            .limit(1)
        )

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_queue(self, hardware_id: str, for_update: bool = False) -> List[Subscription]:
        stmt = (
            select(Subscription)
            .where(Subscription.hardware_id == hardware_id)
            .where(Subscription.status.in_(QUEUE_STATUSES))
            .order_by(_numeric_position().asc(), Subscription.created_at.asc())
        )

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_next_queued(self, hardware_id: str, for_update: bool = False) -> Optional[Subscription]:
        stmt = (
            select(Subscription)
            .where(Subscription.hardware_id == hardware_id)
            .where(Subscription.status == SubscriptionStatus.QUEUED)
            .order_by(_numeric_position().asc(), Subscription.created_at.asc())
            .limit(1)
        )

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_queued_for_user(self, user_id: str, hardware_id: str) -> Optional[Subscription]:
        stmt = (
            select(Subscription)
            .where(Subscription.user_id == user_id)
            .where(Subscription.hardware_id == hardware_id)
            .where(Subscription.status.in_(QUEUE_STATUSES))
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_due_for_expiry(self, cutoff: datetime) -> List[Subscription]:
        stmt = (
            select(Subscription)
            .where(Subscription.status == SubscriptionStatus.ACTIVE)
            .where(Subscription.end_date <= cutoff)
            .order_by(Subscription.end_date.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_devices_with_queued(self) -> List[str]:
        stmt = (
            select(Subscription.hardware_id)
            .where(Subscription.status == SubscriptionStatus.QUEUED)
            .distinct()
            .order_by(Subscription.hardware_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_history_for_device(self, hardware_id: str, limit: int = 10) -> List[Subscription]:
        stmt = (
            select(Subscription)
            .where(Subscription.hardware_id == hardware_id)
            .where(Subscription.status.in_(TERMINAL_STATUSES))
            .order_by(Subscription.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def search(
        self,
        statuses: Optional[Sequence[SubscriptionStatus]] = None,
        hardware_id: Optional[str] = None,
        user_id: Optional[str] = None,
        plan: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Subscription], int]:
        conditions = []
        if statuses:
            conditions.append(Subscription.status.in_(list(statuses)))
        if hardware_id:
            conditions.append(Subscription.hardware_id == hardware_id)
        if user_id:
            conditions.append(Subscription.user_id == user_id)
        if plan:
            conditions.append(Subscription.plan == plan)

        count_stmt = select(func.count()).select_from(Subscription)
        page_stmt = select(Subscription)
        for condition in conditions:
            count_stmt = count_stmt.where(condition)
            page_stmt = page_stmt.where(condition)

        total = (await self.session.execute(count_stmt)).scalar_one()

        page_stmt = (
            page_stmt.order_by(Subscription.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(page_stmt)
        return list(result.scalars().all()), total
