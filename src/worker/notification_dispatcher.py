"""Notification Outbox Dispatcher Worker

Delivers queued/approved/rejected/welcome notifications written to the outbox
by subscription state changes.
"""

import asyncio
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories import SqlAlchemyNotificationOutboxRepository
from src.adapter.services.notification_service import create_notification_service
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.notification_service import NotificationService
from src.app.use_cases.subscriptions import DispatchNotifications, DispatchResultDTO

logger = logging.getLogger(__name__)


class NotificationDispatcherWorker:
    """
    Background worker for the notification outbox

    Usage:
        worker = NotificationDispatcherWorker()
        result = await worker.run_once()

        await worker.run_forever(interval_seconds=30)
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        notification_service: Optional[NotificationService] = None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            notification_service: Sender to use (defaults to logging + optional webhook)
        """
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.notification_service = notification_service or create_notification_service(
            ApplicationConfig.NOTIFICATION_WEBHOOK_URL
        )

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("NotificationDispatcherWorker initialized")

    async def run_once(self) -> DispatchResultDTO:
        async with self.async_session_factory() as session:
            use_case = DispatchNotifications(
                uow=SqlAlchemyUnitOfWork(session),
                outbox_repo=SqlAlchemyNotificationOutboxRepository(session),
                notification_service=self.notification_service,
                max_attempts=ApplicationConfig.NOTIFICATION_MAX_ATTEMPTS,
                backoff_seconds=ApplicationConfig.NOTIFICATION_RETRY_BACKOFF_SECONDS,
                batch_size=ApplicationConfig.NOTIFICATION_BATCH_SIZE,
            )

            result = await use_case.execute()

            if result.is_err():
                logger.error(f"Notification dispatch failed: {result.error.message}")
                raise RuntimeError(f"Notification dispatch failed: {result.error.message}")

            return result.value

    async def run_forever(self, interval_seconds: Optional[int] = None):
        interval = interval_seconds or ApplicationConfig.NOTIFICATION_DISPATCH_INTERVAL_SECONDS
        logger.info(f"Starting notification dispatch with {interval}s interval")

        while True:
            try:
                result = await self.run_once()
                if result.sent or result.retried or result.failed:
                    logger.info(
                        f"Dispatch cycle complete. Sent {result.sent}, "
                        f"retrying {result.retried}, failed {result.failed}"
                    )
            except Exception as e:
                logger.error(f"Dispatch cycle failed: {e}")

            await asyncio.sleep(interval)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("NotificationDispatcherWorker shutdown complete")


async def main():
    """
    Usage:
        python -m src.worker.notification_dispatcher --once
        python -m src.worker.notification_dispatcher --interval 30
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Notification Outbox Dispatcher")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument("--interval", type=int, default=None, help="Seconds between runs")
    args = parser.parse_args()

    worker = NotificationDispatcherWorker()

    try:
        if args.once:
            result = await worker.run_once()
            print(f"Dispatched: sent={result.sent} retried={result.retried} failed={result.failed}")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
