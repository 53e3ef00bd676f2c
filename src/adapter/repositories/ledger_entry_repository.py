"""SQLAlchemy implementation of LedgerEntryRepository

Append-only persistence for ledger entries. The unique
(subscription_id, sequence) constraint turns a concurrent double append into
an IntegrityError instead of a forked chain.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Sequence, Tuple
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository
from src.domain.ledger_entry import LedgerEntry, LedgerEntryStatus, LedgerEventType


def _report_conditions(user_id, date_from, date_to) -> list:
    conditions = []
    if user_id:
        conditions.append(LedgerEntry.user_id == user_id)
    if date_from is not None:
        conditions.append(LedgerEntry.created_at >= date_from)
    if date_to is not None:
        conditions.append(LedgerEntry.created_at <= date_to)
    return conditions


class SqlAlchemyLedgerEntryRepository(LedgerEntryRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entry: LedgerEntry) -> LedgerEntry:
        self.session.add(entry)
        await self.session.flush()
        await self.session.refresh(entry)
        return entry

    async def update(self, entry: LedgerEntry) -> LedgerEntry:
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def get_latest_for_subscription(self, subscription_id: str) -> Optional[LedgerEntry]:
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.subscription_id == subscription_id)
            .order_by(LedgerEntry.sequence.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_first_of_type(
        self, subscription_id: str, event_type: LedgerEventType
    ) -> Optional[LedgerEntry]:
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.subscription_id == subscription_id)
            .where(LedgerEntry.event_type == event_type)
            .order_by(LedgerEntry.sequence.asc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_subscription(
        self,
        subscription_id: str,
        before_sequence: Optional[int] = None,
        limit: int = 50,
    ) -> List[LedgerEntry]:
        stmt = select(LedgerEntry).where(LedgerEntry.subscription_id == subscription_id)

        if before_sequence is not None:
            stmt = stmt.where(LedgerEntry.sequence < before_sequence)

        stmt = stmt.order_by(LedgerEntry.sequence.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def search(
        self,
        user_id: Optional[str] = None,
        subscription_id: Optional[str] = None,
        event_types: Optional[Sequence[LedgerEventType]] = None,
        statuses: Optional[Sequence[LedgerEntryStatus]] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[LedgerEntry], int]:
        conditions = _report_conditions(user_id, date_from, date_to)
        if subscription_id:
            conditions.append(LedgerEntry.subscription_id == subscription_id)
        if event_types:
            conditions.append(LedgerEntry.event_type.in_(list(event_types)))
        if statuses:
            conditions.append(LedgerEntry.status.in_(list(statuses)))

        count_stmt = select(func.count()).select_from(LedgerEntry)
        page_stmt = select(LedgerEntry)
        for condition in conditions:
            count_stmt = count_stmt.where(condition)
            page_stmt = page_stmt.where(condition)

        total = (await self.session.execute(count_stmt)).scalar_one()

        page_stmt = (
            page_stmt.order_by(LedgerEntry.created_at.desc(), LedgerEntry.sequence.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(page_stmt)
        return list(result.scalars().all()), total

    async def summarize(
        self,
        user_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[Tuple[LedgerEventType, LedgerEntryStatus, int, Decimal]]:
        stmt = select(
            LedgerEntry.event_type,
            LedgerEntry.status,
            func.count(LedgerEntry.id),
            func.sum(LedgerEntry.amount),
        )
        for condition in _report_conditions(user_id, date_from, date_to):
            stmt = stmt.where(condition)
        stmt = stmt.group_by(LedgerEntry.event_type, LedgerEntry.status)

        result = await self.session.execute(stmt)
        return [
            (
                LedgerEventType(event_type),
                LedgerEntryStatus(status),
                count,
                Decimal(str(amount or 0)).quantize(Decimal("0.01")),
            )
            for event_type, status, count, amount in result.all()
        ]
