"""SQLAlchemy implementation of SweepLeaseRepository"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.sweep_lease_repository import SweepLeaseRepository
from src.domain.sweep_lease import SweepLease


class SqlAlchemySweepLeaseRepository(SweepLeaseRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, name: str, for_update: bool = False) -> Optional[SweepLease]:
        stmt = select(SweepLease).where(SweepLease.name == name)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, lease: SweepLease) -> SweepLease:
        self.session.add(lease)
        await self.session.flush()
        return lease

    async def update(self, lease: SweepLease) -> SweepLease:
        self.session.add(lease)
        await self.session.flush()
        return lease
