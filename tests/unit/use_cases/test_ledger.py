"""Unit tests for the Ledger component

Tests cover:
- Per-subscription sequence numbers and back-references
- Amount and period snapshot
- Settling pending entries exactly once
- Paged, restartable chain iteration
- Best-effort write after commit never raises
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

from src.domain.errors import ConflictError, ValidationError
from src.domain.ledger_entry import LedgerEntryStatus, LedgerEventType
from src.domain.subscription import SubscriptionStatus

NOW = datetime(2026, 3, 10, 12, 0, 0)


@pytest.mark.asyncio
class TestAppend:

    async def test_first_entry_starts_chain(self, components, add_subscription):
        # Arrange
        subscription = add_subscription()

        # Act
        entry = await components.ledger.append(subscription, LedgerEventType.CREATED)

        # Assert
        assert entry.sequence == 1
        assert entry.previous_entry_id is None
        assert entry.amount == Decimal("1249.99")
        assert entry.plan == "mobile-v4-basic"
        assert entry.completed_at == NOW

    async def test_entries_are_chained(self, components, add_subscription):
        # Arrange
        subscription = add_subscription()

        # Act
        first = await components.ledger.append(subscription, LedgerEventType.CREATED)
        second = await components.ledger.append(subscription, LedgerEventType.QUEUED)
        third = await components.ledger.append(subscription, LedgerEventType.ACTIVATED)

        # Assert
        assert [first.sequence, second.sequence, third.sequence] == [1, 2, 3]
        assert second.previous_entry_id == first.id
        assert third.previous_entry_id == second.id

    async def test_chains_are_per_subscription(self, components, add_subscription):
        # Arrange
        one = add_subscription()
        two = add_subscription()
        await components.ledger.append(one, LedgerEventType.CREATED)

        # Act
        entry = await components.ledger.append(two, LedgerEventType.CREATED)

        # Assert
        assert entry.sequence == 1

    async def test_pending_entry_not_completed(self, components, add_subscription):
        subscription = add_subscription()

        entry = await components.ledger.append(
            subscription, LedgerEventType.CREATED, status=LedgerEntryStatus.PENDING
        )

        assert entry.is_pending
        assert entry.completed_at is None

    async def test_period_snapshot(self, components, add_subscription):
        # Arrange
        subscription = add_subscription(
            status=SubscriptionStatus.ACTIVE,
            start_date=NOW,
            end_date=NOW + timedelta(days=30),
        )

        # Act
        entry = await components.ledger.append(subscription, LedgerEventType.ACTIVATED, amount=0)

        # Assert
        assert entry.amount == 0
        assert entry.period_start == NOW
        assert entry.period_duration_days == 30


@pytest.mark.asyncio
class TestSettle:

    async def test_settle_pending(self, components, add_subscription):
        subscription = add_subscription()
        entry = await components.ledger.append(
            subscription, LedgerEventType.CREATED, status=LedgerEntryStatus.PENDING
        )

        settled = await components.ledger.settle(entry, LedgerEntryStatus.COMPLETED)

        assert settled.status == LedgerEntryStatus.COMPLETED
        assert settled.completed_at == NOW

    async def test_settle_twice_conflicts(self, components, add_subscription):
        subscription = add_subscription()
        entry = await components.ledger.append(subscription, LedgerEventType.CREATED)

        with pytest.raises(ConflictError) as exc_info:
            await components.ledger.settle(entry, LedgerEntryStatus.REFUNDED)

        assert exc_info.value.code == "LEDGER_ENTRY_SETTLED"

    async def test_settle_to_pending_rejected(self, components, add_subscription):
        subscription = add_subscription()
        entry = await components.ledger.append(
            subscription, LedgerEventType.CREATED, status=LedgerEntryStatus.PENDING
        )

        with pytest.raises(ValidationError):
            await components.ledger.settle(entry, LedgerEntryStatus.PENDING)

    async def test_settle_creation_skips_settled(self, components, add_subscription):
        subscription = add_subscription()
        await components.ledger.append(subscription, LedgerEventType.CREATED)

        result = await components.ledger.settle_creation(subscription.id, LedgerEntryStatus.CANCELLED)

        assert result is None


@pytest.mark.asyncio
class TestChain:

    async def test_newest_first_across_pages(self, components, add_subscription):
        """
        Given: Five entries and a page size of two
        When: The chain is iterated twice
        Then: Both passes yield all five, newest first
        """
        # Arrange
        subscription = add_subscription()
        for _ in range(5):
            await components.ledger.append(subscription, LedgerEventType.QUEUED)
        chain = components.ledger.chain_for(subscription.id, page_size=2)

        # Act
        first_pass = [entry.sequence async for entry in chain]
        second_pass = [entry.sequence async for entry in chain]

        # Assert
        assert first_pass == [5, 4, 3, 2, 1]
        assert second_pass == first_pass

    async def test_empty_chain(self, components):
        chain = components.ledger.chain_for("nothing")

        assert [entry async for entry in chain] == []


@pytest.mark.asyncio
class TestRecordAfterCommit:

    async def test_commits_entry(self, components, mock_uow, add_subscription):
        subscription = add_subscription()

        entry = await components.ledger.record_after_commit(
            mock_uow, subscription, LedgerEventType.CANCELLED, amount=0
        )

        assert entry.event_type == LedgerEventType.CANCELLED
        mock_uow.commit.assert_called_once()

    async def test_failure_is_swallowed(self, components, repos, mock_uow, add_subscription):
        # Arrange
        subscription = add_subscription()
        repos.ledger_repo.create = AsyncMock(side_effect=Exception("disk full"))

        # Act
        entry = await components.ledger.record_after_commit(
            mock_uow, subscription, LedgerEventType.CANCELLED
        )

        # Assert
        assert entry is None
        mock_uow.rollback.assert_called_once()
        mock_uow.commit.assert_not_called()
