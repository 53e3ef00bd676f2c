"""Subscription lifecycle components and use cases"""
from .ledger import Ledger, LedgerChain
from .device_registry import DeviceRegistry
from .queue_manager import QueueManager
from .lifecycle import SubscriptionLifecycle
from .create_subscription import CreateSubscription
from .cancel_subscription import CancelSubscription
from .renew_subscription import RenewSubscription
from .activation_protocol import ActivationProtocol
from .approval_workflow import ApprovalWorkflow
from .reconcile_subscriptions import ReconcileSubscriptions
from .list_subscriptions import ListSubscriptions
from .get_subscription_detail import GetSubscriptionDetail
from .get_ledger_chain import GetLedgerChain
from .list_ledger_entries import ListLedgerEntries
from .get_ledger_summary import GetLedgerSummary
from .get_device_queue_status import GetDeviceQueueStatus
from .get_renewal_options import GetRenewalOptions
from .setup_device import SetupDevice, GetOnboardingStatus
from .dispatch_notifications import DispatchNotifications
from .dtos import (
    CreateSubscriptionCommandDTO,
    QueueForUserCommandDTO,
    SubscriptionFilterDTO,
    SubscriptionDTO,
    SubscriptionListDTO,
    SubscriptionDetailDTO,
    LedgerEntryDTO,
    LedgerChainDTO,
    LedgerEntryFilterDTO,
    LedgerEntryListDTO,
    LedgerSummaryRowDTO,
    LedgerSummaryDTO,
    BulkItemResultDTO,
    BulkResultDTO,
    DeviceQueueStatusDTO,
    QueueStatsDTO,
    RenewalOptionDTO,
    RenewalOptionsDTO,
    DeviceSetupDTO,
    OnboardingStatusDTO,
    ReconciliationSummaryDTO,
    SweepFailureDTO,
    DispatchResultDTO,
)

__all__ = [
    "Ledger",
    "LedgerChain",
    "DeviceRegistry",
    "QueueManager",
    "SubscriptionLifecycle",
    "CreateSubscription",
    "CancelSubscription",
    "RenewSubscription",
    "ActivationProtocol",
    "ApprovalWorkflow",
    "ReconcileSubscriptions",
    "ListSubscriptions",
    "GetSubscriptionDetail",
    "GetLedgerChain",
    "ListLedgerEntries",
    "GetLedgerSummary",
    "GetDeviceQueueStatus",
    "GetRenewalOptions",
    "SetupDevice",
    "GetOnboardingStatus",
    "DispatchNotifications",
    "CreateSubscriptionCommandDTO",
    "QueueForUserCommandDTO",
    "SubscriptionFilterDTO",
    "SubscriptionDTO",
    "SubscriptionListDTO",
    "SubscriptionDetailDTO",
    "LedgerEntryDTO",
    "LedgerChainDTO",
    "LedgerEntryFilterDTO",
    "LedgerEntryListDTO",
    "LedgerSummaryRowDTO",
    "LedgerSummaryDTO",
    "BulkItemResultDTO",
    "BulkResultDTO",
    "DeviceQueueStatusDTO",
    "QueueStatsDTO",
    "RenewalOptionDTO",
    "RenewalOptionsDTO",
    "DeviceSetupDTO",
    "OnboardingStatusDTO",
    "ReconciliationSummaryDTO",
    "SweepFailureDTO",
    "DispatchResultDTO",
]
