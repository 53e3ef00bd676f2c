"""Ledger Entry Repository Interface

Defines the contract for the append-only ledger.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Sequence, Tuple
from src.domain.ledger_entry import LedgerEntry, LedgerEntryStatus, LedgerEventType


class LedgerEntryRepository(ABC):
    """
    Repository interface for LedgerEntry persistence

    Entries are immutable and append-only. Uniqueness of
    (subscription_id, sequence) rejects forked chains.
    """

    @abstractmethod
    async def create(self, entry: LedgerEntry) -> LedgerEntry:
        """
        Append a new entry

        Raises:
            IntegrityError: If the sequence or transaction id already exists
        """
        pass

    @abstractmethod
    async def update(self, entry: LedgerEntry) -> LedgerEntry:
        """Persist a terminal status appended to a pending entry"""
        pass

    @abstractmethod
    async def get_latest_for_subscription(self, subscription_id: str) -> Optional[LedgerEntry]:
        """Entry with the highest sequence for the subscription"""
        pass

    @abstractmethod
    async def get_first_of_type(
        self, subscription_id: str, event_type: LedgerEventType
    ) -> Optional[LedgerEntry]:
        """Oldest entry of the given event type for the subscription"""
        pass

    @abstractmethod
    async def list_for_subscription(
        self,
        subscription_id: str,
        before_sequence: Optional[int] = None,
        limit: int = 50,
    ) -> List[LedgerEntry]:
        """
        Page through a subscription's chain, newest first

        Args:
            subscription_id: Subscription ID
            before_sequence: Only entries with a lower sequence (None = from the newest)
            limit: Page size
        """
        pass

    @abstractmethod
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
        """
        Filtered page of entries across subscriptions, newest first

        Returns:
            (entries, total matching entries)
        """
        pass

    @abstractmethod
    async def summarize(
        self,
        user_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[Tuple[LedgerEventType, LedgerEntryStatus, int, Decimal]]:
        """(event_type, status, entry count, amount sum) per group"""
        pass
