"""Subscription Sweep Background Worker

Runs the daily reconciliation sweep: expires due subscriptions and promotes
the next queued subscription per device. Can be run as a standalone script or
triggered by any external scheduler through ``run_once``.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.container import build_services
from src.app.use_cases.subscriptions import ReconcileSubscriptions, ReconciliationSummaryDTO
from src.domain.base import utcnow

logger = logging.getLogger(__name__)


def seconds_until_next_run(now: datetime, run_hour_utc: int) -> float:
    """Seconds from ``now`` until the next ``run_hour_utc``:00 UTC"""
    next_run = now.replace(hour=run_hour_utc, minute=0, second=0, microsecond=0)
    if next_run <= now:
        next_run += timedelta(days=1)
    return (next_run - now).total_seconds()


class SubscriptionSweeperWorker:
    """
    Background worker for the daily subscription sweep

    Features:
    - Expires ACTIVE subscriptions due by end of today
    - Auto-activates the next QUEUED subscription per free device
    - Single-flight: in-process flag plus a persisted lease
    - Can run once or daily at a fixed UTC hour

    Usage:
        # Run once
        worker = SubscriptionSweeperWorker()
        summary = await worker.run_once()

        # Run every day at SWEEP_RUN_HOUR_UTC
        await worker.run_forever()
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        lease_ttl_seconds: Optional[int] = None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            lease_ttl_seconds: Lifetime of the sweep lease (defaults to config)
        """
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.lease_ttl_seconds = lease_ttl_seconds or ApplicationConfig.SWEEP_LEASE_TTL_SECONDS

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("SubscriptionSweeperWorker initialized")

    async def run_once(self) -> ReconciliationSummaryDTO:
        """
        Run the sweep once

        Returns:
            ReconciliationSummaryDTO with expired/activated ids and failures
        """
        if not ApplicationConfig.SWEEP_ENABLED:
            logger.info("Subscription sweep is disabled, skipping")
            now = utcnow()
            return ReconciliationSummaryDTO(
                skipped=True, skip_reason="disabled", started_at=now, finished_at=now
            )

        async with self.async_session_factory() as session:
            services = build_services(session)
            use_case = ReconcileSubscriptions(
                uow=services.uow,
                subscription_repo=services.subscription_repo,
                lifecycle=services.lifecycle,
                ledger=services.ledger,
                lease_repo=services.lease_repo,
                lease_ttl_seconds=self.lease_ttl_seconds,
            )

            result = await use_case.execute()

            if result.is_err():
                logger.error(f"Subscription sweep failed: {result.error.message}")
                raise RuntimeError(f"Subscription sweep failed: {result.error.message}")

            summary = result.value
            for failure in summary.failures:
                logger.error(
                    f"  - {failure.stage} failed for subscription={failure.subscription_id} "
                    f"device={failure.hardware_id}: {failure.error}"
                )
            return summary

    async def run_forever(self, run_hour_utc: Optional[int] = None):
        """
        Run the sweep every day at a fixed UTC hour

        Args:
            run_hour_utc: Hour of day (0-23); defaults to SWEEP_RUN_HOUR_UTC
        """
        hour = ApplicationConfig.SWEEP_RUN_HOUR_UTC if run_hour_utc is None else run_hour_utc
        logger.info(f"Starting daily subscription sweep at {hour:02d}:00 UTC")

        while True:
            delay = seconds_until_next_run(utcnow(), hour)
            logger.info(f"Next subscription sweep in {int(delay)}s")
            await asyncio.sleep(delay)

            try:
                summary = await self.run_once()
                logger.info(
                    f"Sweep cycle complete. Expired {len(summary.expired)}, "
                    f"activated {len(summary.activated)}, failures {len(summary.failures)}"
                )
            except Exception as e:
                logger.error(f"Sweep cycle failed: {e}")

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("SubscriptionSweeperWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Run once
        python -m src.worker.subscription_sweeper --once

        # Run daily at SWEEP_RUN_HOUR_UTC
        python -m src.worker.subscription_sweeper

        # Run daily at a custom hour
        python -m src.worker.subscription_sweeper --hour 4
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Subscription Sweep Worker")
    parser.add_argument(
        "--once", action="store_true", help="Run once and exit"
    )
    parser.add_argument(
        "--hour", type=int, default=None,
        help="UTC hour to run at (default: SWEEP_RUN_HOUR_UTC)"
    )
    args = parser.parse_args()

    worker = SubscriptionSweeperWorker()

    try:
        if args.once:
            summary = await worker.run_once()
            print("Subscription sweep complete:")
            if summary.skipped:
                print(f"  Skipped: {summary.skip_reason}")
            print(f"  Expired: {len(summary.expired)}")
            print(f"  Activated: {len(summary.activated)}")
            print(f"  Failures: {len(summary.failures)}")
        else:
            await worker.run_forever(run_hour_utc=args.hour)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
