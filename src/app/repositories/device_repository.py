"""Device Repository Interface

Defines the contract for device persistence operations.
"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.device import Device


class DeviceRepository(ABC):
    """
    Repository interface for Device persistence

    Devices are never deleted.
    """

    @abstractmethod
    async def get_by_hardware_id(self, hardware_id: str, for_update: bool = False) -> Optional[Device]:
        """
        Retrieve device by hardware id

        Args:
            hardware_id: Globally unique hardware id
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Device if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, device: Device) -> Device:
        """
        Create a new device

        Raises:
            IntegrityError: If the hardware id is already registered
        """
        pass

    @abstractmethod
    async def update(self, device: Device) -> Device:
        pass
