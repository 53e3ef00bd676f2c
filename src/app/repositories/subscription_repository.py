"""Subscription Repository Interface

Defines the contract for subscription persistence and the device-scoped
queries the queue and lifecycle components rely on.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List, Tuple, Sequence
from src.domain.subscription import Subscription, SubscriptionStatus


class SubscriptionRepository(ABC):
    """
    Repository interface for Subscription persistence

    Ordering by queue position is numeric, never lexical.
    """

    @abstractmethod
    async def create(self, subscription: Subscription) -> Subscription:
        pass

    @abstractmethod
    async def update(self, subscription: Subscription) -> Subscription:
        pass

    @abstractmethod
    async def get_by_id(self, subscription_id: str, for_update: bool = False) -> Optional[Subscription]:
        """
        Retrieve subscription by ID

        Args:
            subscription_id: Subscription ID
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Subscription if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_active_for_device(self, hardware_id: str, for_update: bool = False) -> Optional[Subscription]:
        """Return the ACTIVE subscription of a device, if any"""
        pass

    @abstractmethod
    async def list_queue(self, hardware_id: str, for_update: bool = False) -> List[Subscription]:
        """
        Retrieve the device's PENDING/QUEUED subscriptions

        Returns:
            Subscriptions ordered by numeric queue position, then creation time
        """
        pass

    @abstractmethod
    async def get_next_queued(self, hardware_id: str, for_update: bool = False) -> Optional[Subscription]:
        """QUEUED subscription with the lowest position (earliest creation on ties)"""
        pass

    @abstractmethod
    async def find_queued_for_user(self, user_id: str, hardware_id: str) -> Optional[Subscription]:
        """A PENDING/QUEUED subscription of this user for this device, if any"""
        pass

    @abstractmethod
    async def get_due_for_expiry(self, cutoff: datetime) -> List[Subscription]:
        """ACTIVE subscriptions whose end_date is at or before cutoff"""
        pass

    @abstractmethod
    async def get_devices_with_queued(self) -> List[str]:
        """Distinct hardware ids that have at least one QUEUED subscription"""
        pass

    @abstractmethod
    async def list_history_for_device(self, hardware_id: str, limit: int = 10) -> List[Subscription]:
        """Most recent EXPIRED/CANCELLED subscriptions of a device"""
        pass

    @abstractmethod
    async def search(
        self,
        statuses: Optional[Sequence[SubscriptionStatus]] = None,
        hardware_id: Optional[str] = None,
        user_id: Optional[str] = None,
        plan: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Subscription], int]:
        """
        Filter subscriptions with pagination

        Returns:
            Tuple of (page of subscriptions newest first, total matching count)
        """
        pass
