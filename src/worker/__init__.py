"""Background workers for the subscription service"""
from .subscription_sweeper import SubscriptionSweeperWorker
from .notification_dispatcher import NotificationDispatcherWorker

__all__ = ["SubscriptionSweeperWorker", "NotificationDispatcherWorker"]
