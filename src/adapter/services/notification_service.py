"""Notification Service Implementations

Provides concrete implementations for delivering subscription notifications.
"""

import logging
from typing import Any, Dict, Optional
import httpx
from src.app.services.notification_service import NotificationService
from src.domain.notification import NotificationKind

logger = logging.getLogger(__name__)


class LoggingNotificationService(NotificationService):
    """
    Notification service that logs notifications

    Useful for development and testing, or as a fallback.
    """

    async def notify(
        self, kind: NotificationKind, recipient_email: str, template_args: Dict[str, Any]
    ) -> bool:
        logger.info(
            f"[NOTIFICATION] Kind: {kind.value}, To: {recipient_email}, "
            f"Subscription: {template_args.get('subscription_id')}, "
            f"Plan: {template_args.get('plan')}"
        )
        return True


class WebhookNotificationService(NotificationService):
    """
    Notification service that hands notifications to a mail relay webhook

    Sends a JSON payload to the configured URL.
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        """
        Initialize webhook notification service

        Args:
            webhook_url: URL to POST notifications to
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def notify(
        self, kind: NotificationKind, recipient_email: str, template_args: Dict[str, Any]
    ) -> bool:
        """
        Send one notification via webhook

        Returns:
            True if the webhook accepted it, False otherwise
        """
        payload = {
            "type": "subscription_notification",
            "template": kind.value,
            "to": recipient_email,
            "args": template_args,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.info(
                    f"Webhook notification '{kind.value}' sent to {self.webhook_url} "
                    f"for {recipient_email}"
                )
                return True
        except httpx.HTTPError as e:
            logger.error(
                f"Failed to send webhook notification '{kind.value}' for {recipient_email}: {e}"
            )
            return False


class CompositeNotificationService(NotificationService):
    """
    Notification service that delegates to multiple services

    Useful for sending to multiple channels (e.g., log + webhook).
    """

    def __init__(self, services: list[NotificationService]):
        self.services = services

    async def notify(
        self, kind: NotificationKind, recipient_email: str, template_args: Dict[str, Any]
    ) -> bool:
        """
        Deliver through every configured service

        Returns:
            True only if every service delivered; a False from any channel
            leaves the outbox message pending for retry
        """
        delivered = True
        for service in self.services:
            try:
                if not await service.notify(kind, recipient_email, template_args):
                    delivered = False
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
                delivered = False
        return delivered


def create_notification_service(webhook_url: Optional[str] = None) -> NotificationService:
    """
    Factory function to create appropriate notification service

    Args:
        webhook_url: Optional webhook URL. If provided, creates composite
                     service with logging + webhook. Otherwise, just logging.
    """
    services: list[NotificationService] = [LoggingNotificationService()]

    if webhook_url:
        services.append(WebhookNotificationService(webhook_url))

    if len(services) == 1:
        return services[0]

    return CompositeNotificationService(services)
