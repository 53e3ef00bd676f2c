"""Notification Service Interface

Defines the contract for delivering subscription notifications.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict
from src.domain.notification import NotificationKind


class NotificationService(ABC):
    """
    Abstract notification sender

    Implementations can deliver via:
    - Logging (development)
    - Webhook (HTTP POST to a mail relay)
    - Several channels at once
    """

    @abstractmethod
    async def notify(
        self, kind: NotificationKind, recipient_email: str, template_args: Dict[str, Any]
    ) -> bool:
        """
        Deliver one notification

        Args:
            kind: Template kind (queued, approved, rejected, welcome)
            recipient_email: Recipient address
            template_args: Values for the template

        Returns:
            True if delivered, False otherwise
        """
        pass
