"""Unit tests for ledger reporting

Tests cover:
- ListLedgerEntries scopes users to their own entries
- Admin listing across users and the capability it requires
- Filters and paging passed through to the repository
- Invalid date ranges
- GetLedgerSummary grouping, revenue and the analytics capability
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

from src.app.use_cases.subscriptions.dtos import LedgerEntryFilterDTO
from src.app.use_cases.subscriptions.get_ledger_summary import GetLedgerSummary
from src.app.use_cases.subscriptions.list_ledger_entries import ListLedgerEntries
from src.domain.actor import ActorContext, Role
from src.domain.ledger_entry import LedgerEntryStatus, LedgerEventType


@pytest.mark.asyncio
class TestListLedgerEntries:

    async def test_user_sees_only_own_entries(
        self, repos, components, add_subscription, user_actor
    ):
        """
        Given a user asking for another user's entries
        When listing the ledger
        Then the repository is queried for the caller only
        """
        # Arrange
        subscription = add_subscription()
        entry = await components.ledger.append(subscription, LedgerEventType.CREATED)
        repos.ledger_repo.search = AsyncMock(return_value=([entry], 1))
        use_case = ListLedgerEntries(repos.ledger_repo)

        # Act
        result = await use_case.execute(user_actor, LedgerEntryFilterDTO(user_id="user_2"))

        # Assert
        assert result.is_ok()
        assert result.value.total == 1
        assert result.value.items[0].transaction_id == entry.transaction_id
        assert result.value.items[0].user_id == "user_1"
        assert repos.ledger_repo.search.call_args.kwargs["user_id"] == "user_1"

    async def test_filters_and_paging_reach_repository(self, repos, user_actor):
        date_from = datetime(2026, 1, 1)
        date_to = datetime(2026, 1, 31)
        filters = LedgerEntryFilterDTO(
            event_types=[LedgerEventType.RENEWED],
            statuses=[LedgerEntryStatus.COMPLETED],
            date_from=date_from,
            date_to=date_to,
            limit=5,
            offset=10,
        )

        result = await ListLedgerEntries(repos.ledger_repo).execute(user_actor, filters)

        assert result.is_ok()
        assert result.value.limit == 5
        assert result.value.offset == 10
        kwargs = repos.ledger_repo.search.call_args.kwargs
        assert kwargs["event_types"] == [LedgerEventType.RENEWED]
        assert kwargs["statuses"] == [LedgerEntryStatus.COMPLETED]
        assert kwargs["date_from"] == date_from
        assert kwargs["date_to"] == date_to

    async def test_admin_lists_any_user(self, repos, admin_actor):
        result = await ListLedgerEntries(repos.ledger_repo).execute(
            admin_actor, LedgerEntryFilterDTO(user_id="user_2"), all_users=True
        )

        assert result.is_ok()
        assert repos.ledger_repo.search.call_args.kwargs["user_id"] == "user_2"

    async def test_admin_without_user_filter_lists_everyone(self, repos, admin_actor):
        result = await ListLedgerEntries(repos.ledger_repo).execute(
            admin_actor, LedgerEntryFilterDTO(), all_users=True
        )

        assert result.is_ok()
        assert repos.ledger_repo.search.call_args.kwargs["user_id"] is None

    async def test_user_cannot_list_all(self, repos, user_actor):
        result = await ListLedgerEntries(repos.ledger_repo).execute(
            user_actor, LedgerEntryFilterDTO(), all_users=True
        )

        assert result.is_err()
        assert result.error.code == "INSUFFICIENT_PERMISSIONS"
        repos.ledger_repo.search.assert_not_called()

    async def test_inverted_date_range_rejected(self, repos, user_actor):
        filters = LedgerEntryFilterDTO(
            date_from=datetime(2026, 2, 1), date_to=datetime(2026, 1, 1)
        )

        result = await ListLedgerEntries(repos.ledger_repo).execute(user_actor, filters)

        assert result.is_err()
        assert result.error.code == "INVALID_DATE_RANGE"
        assert result.error.kind == "validation"

    async def test_repository_failure_reported(self, repos, user_actor):
        repos.ledger_repo.search = AsyncMock(side_effect=RuntimeError("db down"))

        result = await ListLedgerEntries(repos.ledger_repo).execute(user_actor, LedgerEntryFilterDTO())

        assert result.is_err()
        assert result.error.code == "LIST_LEDGER_ENTRIES_FAILED"
        assert result.error.reason == "db down"


@pytest.mark.asyncio
class TestGetLedgerSummary:

    async def test_groups_counts_and_revenue(self, repos, admin_actor):
        """
        Given pending, completed and failed groups of charging and non-charging events
        When summarizing
        Then counts roll up per event type and status and revenue counts completed charges only
        """
        # Arrange
        repos.ledger_repo.summarize = AsyncMock(return_value=[
            (LedgerEventType.CREATED, LedgerEntryStatus.COMPLETED, 3, Decimal("300.00")),
            (LedgerEventType.CREATED, LedgerEntryStatus.PENDING, 2, Decimal("200.00")),
            (LedgerEventType.RENEWED, LedgerEntryStatus.COMPLETED, 1, Decimal("100.00")),
            (LedgerEventType.ACTIVATED, LedgerEntryStatus.COMPLETED, 1, Decimal("100.00")),
            (LedgerEventType.REJECTED, LedgerEntryStatus.FAILED, 1, Decimal("0.00")),
        ])
        use_case = GetLedgerSummary(repos.ledger_repo)

        # Act
        result = await use_case.execute(admin_actor)

        # Assert
        assert result.is_ok()
        summary = result.value
        assert summary.total_entries == 8
        assert summary.revenue == Decimal("400.00")
        assert summary.by_event_type == {"created": 5, "renewed": 1, "activated": 1, "rejected": 1}
        assert summary.by_status == {"completed": 5, "pending": 2, "failed": 1}
        assert [(r.event_type, r.status) for r in summary.rows] == [
            ("activated", "completed"),
            ("created", "completed"),
            ("created", "pending"),
            ("rejected", "failed"),
            ("renewed", "completed"),
        ]

    async def test_empty_ledger(self, repos, admin_actor):
        result = await GetLedgerSummary(repos.ledger_repo).execute(admin_actor)

        assert result.is_ok()
        assert result.value.total_entries == 0
        assert result.value.revenue == Decimal("0.00")
        assert result.value.rows == []

    async def test_filters_reach_repository(self, repos, admin_actor):
        date_to = datetime(2026, 3, 1)
        date_from = date_to - timedelta(days=30)

        result = await GetLedgerSummary(repos.ledger_repo).execute(
            admin_actor, date_from=date_from, date_to=date_to, user_id="user_1"
        )

        assert result.is_ok()
        repos.ledger_repo.summarize.assert_awaited_once_with(
            user_id="user_1", date_from=date_from, date_to=date_to
        )
        assert result.value.user_id == "user_1"

    async def test_user_denied(self, repos, user_actor):
        result = await GetLedgerSummary(repos.ledger_repo).execute(user_actor)

        assert result.is_err()
        assert result.error.code == "INSUFFICIENT_PERMISSIONS"
        repos.ledger_repo.summarize.assert_not_called()

    async def test_inactive_admin_denied(self, repos):
        actor = ActorContext(user_id="admin_9", role=Role.ADMIN, is_active=False)

        result = await GetLedgerSummary(repos.ledger_repo).execute(actor)

        assert result.is_err()
        assert result.error.code == "ACCOUNT_INACTIVE"

    async def test_inverted_date_range_rejected(self, repos, admin_actor):
        result = await GetLedgerSummary(repos.ledger_repo).execute(
            admin_actor, date_from=datetime(2026, 2, 1), date_to=datetime(2026, 1, 1)
        )

        assert result.is_err()
        assert result.error.code == "INVALID_DATE_RANGE"
