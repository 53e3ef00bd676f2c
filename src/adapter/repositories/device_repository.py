"""SQLAlchemy implementation of DeviceRepository"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.device_repository import DeviceRepository
from src.domain.base import utcnow
from src.domain.device import Device


class SqlAlchemyDeviceRepository(DeviceRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_hardware_id(self, hardware_id: str, for_update: bool = False) -> Optional[Device]:
        stmt = select(Device).where(Device.hardware_id == hardware_id)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, device: Device) -> Device:
        self.session.add(device)
        await self.session.flush()
        await self.session.refresh(device)
        return device

    async def update(self, device: Device) -> Device:
        device.updated_at = utcnow()
        self.session.add(device)
        await self.session.flush()
        return device
