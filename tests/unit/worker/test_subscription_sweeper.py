"""Unit tests for SubscriptionSweeperWorker

Tests cover:
- Scheduling delay until the next run hour
- Worker initialization with configuration
- run_once skips when the sweep is disabled
- run_once executes the sweep and returns its summary
- run_once raises on a failed sweep
"""

import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

from libs.result import Error, Return
from src.app.use_cases.subscriptions.dtos import ReconciliationSummaryDTO, SweepFailureDTO
from src.worker.subscription_sweeper import SubscriptionSweeperWorker, seconds_until_next_run


def mock_session_factory():
    session = MagicMock()
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=session)


class TestSecondsUntilNextRun:

    def test_later_today(self):
        assert seconds_until_next_run(datetime(2026, 3, 10, 1, 30), 3) == 90 * 60

    def test_tomorrow_when_hour_passed(self):
        assert seconds_until_next_run(datetime(2026, 3, 10, 4, 0), 3) == 23 * 3600

    def test_exact_hour_waits_a_day(self):
        assert seconds_until_next_run(datetime(2026, 3, 10, 3, 0), 3) == 24 * 3600


class TestSubscriptionSweeperWorkerInit:

    @patch("src.worker.subscription_sweeper.ApplicationConfig")
    @patch("src.worker.subscription_sweeper.create_async_engine")
    def test_initializes_with_default_config(self, mock_create_engine, mock_app_config):
        # Arrange
        mock_app_config.DB_URI = "postgresql+asyncpg://default@localhost/db"
        mock_app_config.SWEEP_LEASE_TTL_SECONDS = 1800

        # Act
        worker = SubscriptionSweeperWorker()

        # Assert
        assert worker.db_uri == "postgresql+asyncpg://default@localhost/db"
        assert worker.lease_ttl_seconds == 1800
        mock_create_engine.assert_called_once()


@pytest.mark.asyncio
class TestSubscriptionSweeperWorkerRunOnce:

    @patch("src.worker.subscription_sweeper.ApplicationConfig")
    @patch("src.worker.subscription_sweeper.create_async_engine")
    async def test_skips_when_disabled(self, mock_create_engine, mock_app_config):
        """
        Given: The sweep is disabled
        When: run_once is called
        Then: A skipped summary is returned without touching the database
        """
        # Arrange
        mock_app_config.DB_URI = "sqlite+aiosqlite://"
        mock_app_config.SWEEP_ENABLED = False

        # Act
        worker = SubscriptionSweeperWorker()
        summary = await worker.run_once()

        # Assert
        assert summary.skipped
        assert summary.skip_reason == "disabled"

    @patch("src.worker.subscription_sweeper.ApplicationConfig")
    @patch("src.worker.subscription_sweeper.ReconcileSubscriptions")
    @patch("src.worker.subscription_sweeper.build_services")
    @patch("src.worker.subscription_sweeper.create_async_engine")
    @patch("src.worker.subscription_sweeper.sessionmaker")
    async def test_runs_sweep(
        self,
        mock_sessionmaker,
        mock_create_engine,
        mock_build_services,
        mock_use_case_class,
        mock_app_config,
    ):
        # Arrange
        mock_app_config.DB_URI = "sqlite+aiosqlite://"
        mock_app_config.SWEEP_ENABLED = True
        mock_sessionmaker.return_value = mock_session_factory()

        summary = ReconciliationSummaryDTO(
            expired=["sub_1"],
            activated=["sub_2"],
            failures=[SweepFailureDTO(stage="promote", hardware_id="HW9", error="locked")],
            started_at=datetime(2026, 3, 10, 3, 0),
        )
        mock_use_case = MagicMock()
        mock_use_case.execute = AsyncMock(return_value=Return.ok(summary))
        mock_use_case_class.return_value = mock_use_case

        # Act
        worker = SubscriptionSweeperWorker(lease_ttl_seconds=600)
        result = await worker.run_once()

        # Assert
        assert result.expired == ["sub_1"]
        assert result.activated == ["sub_2"]
        mock_use_case.execute.assert_called_once_with()
        assert mock_use_case_class.call_args.kwargs["lease_ttl_seconds"] == 600
        mock_build_services.assert_called_once()

    @patch("src.worker.subscription_sweeper.ApplicationConfig")
    @patch("src.worker.subscription_sweeper.ReconcileSubscriptions")
    @patch("src.worker.subscription_sweeper.build_services")
    @patch("src.worker.subscription_sweeper.create_async_engine")
    @patch("src.worker.subscription_sweeper.sessionmaker")
    async def test_raises_on_failure(
        self,
        mock_sessionmaker,
        mock_create_engine,
        mock_build_services,
        mock_use_case_class,
        mock_app_config,
    ):
        # Arrange
        mock_app_config.DB_URI = "sqlite+aiosqlite://"
        mock_app_config.SWEEP_ENABLED = True
        mock_sessionmaker.return_value = mock_session_factory()
        mock_use_case = MagicMock()
        mock_use_case.execute = AsyncMock(return_value=Return.err(Error(
            code="SWEEP_FAILED", message="Subscription sweep failed"
        )))
        mock_use_case_class.return_value = mock_use_case

        # Act / Assert
        worker = SubscriptionSweeperWorker()
        with pytest.raises(RuntimeError, match="Subscription sweep failed"):
            await worker.run_once()

    @patch("src.worker.subscription_sweeper.create_async_engine")
    async def test_shutdown_disposes_engine(self, mock_create_engine):
        engine = MagicMock()
        engine.dispose = AsyncMock()
        mock_create_engine.return_value = engine

        worker = SubscriptionSweeperWorker(db_uri="sqlite+aiosqlite://")
        await worker.shutdown()

        engine.dispose.assert_called_once()
