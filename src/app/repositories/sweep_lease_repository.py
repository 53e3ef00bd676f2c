"""Sweep Lease Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from src.domain.sweep_lease import SweepLease


class SweepLeaseRepository(ABC):

    @abstractmethod
    async def get(self, name: str, for_update: bool = False) -> Optional[SweepLease]:
        pass

    @abstractmethod
    async def create(self, lease: SweepLease) -> SweepLease:
        """
        Raises:
            IntegrityError: If another process created the lease first
        """
        pass

    @abstractmethod
    async def update(self, lease: SweepLease) -> SweepLease:
        pass
