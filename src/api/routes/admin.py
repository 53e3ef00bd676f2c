"""Admin API Routes

Administrator-facing routes: review queue, approve/reject (single and bulk),
manual queue insertion, reposition, ledger reporting and a manual sweep
trigger.
"""

from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status

from config import ApplicationConfig
from src.adapter.container import SubscriptionServices
from src.api.auth import get_actor
from src.api.error import ClientError
from src.api.schemas.subscription_request import (
    ApproveRequestSchema,
    BulkActionRequestSchema,
    Envelope,
    QueueInsertRequestSchema,
    RejectRequestSchema,
    RepositionRequestSchema,
)
from src.app.use_cases.subscriptions import (
    ApprovalWorkflow,
    GetLedgerSummary,
    ListLedgerEntries,
    ListSubscriptions,
    ReconcileSubscriptions,
)
from src.app.use_cases.subscriptions.dtos import (
    BulkResultDTO,
    LedgerEntryFilterDTO,
    LedgerEntryListDTO,
    LedgerSummaryDTO,
    QueueForUserCommandDTO,
    ReconciliationSummaryDTO,
    SubscriptionDTO,
    SubscriptionFilterDTO,
    SubscriptionListDTO,
)
from src.depends import get_services
from src.domain.actor import ActorContext
from src.domain.ledger_entry import LedgerEntryStatus, LedgerEventType
from src.domain.subscription import SubscriptionStatus

router = APIRouter(prefix="/admin", tags=["Admin"])


def _workflow(services: SubscriptionServices) -> ApprovalWorkflow:
    return ApprovalWorkflow(
        services.uow, services.lifecycle, services.queue_manager, services.ledger
    )


@router.get("/subscriptions", response_model=Envelope[SubscriptionListDTO])
async def list_all_subscriptions(
    status_filter: Optional[List[SubscriptionStatus]] = Query(default=None, alias="status"),
    hardware_id: Optional[str] = Query(default=None),
    user_id: Optional[str] = Query(default=None),
    plan: Optional[str] = Query(default=None),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    """List subscriptions of every user, filtered by status, device, user or plan."""
    filters = SubscriptionFilterDTO(
        statuses=status_filter,
        hardware_id=hardware_id,
        user_id=user_id,
        plan=plan,
        limit=limit,
        offset=offset,
    )
    result = await ListSubscriptions(services.subscription_repo).execute(actor, filters, all_users=True)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)


@router.post("/subscriptions/{subscription_id}/approve", response_model=Envelope[SubscriptionDTO])
async def approve_subscription(
    subscription_id: str,
    request: ApproveRequestSchema,
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    """
    Approve a pending request.

    With `activate_immediately` the subscription becomes ACTIVE right away,
    provided the device has no active subscription; otherwise it is QUEUED.

    **Returns:**
    - 200: Approved
    - 403: Missing capability or price above the approval limit
    - 409: Not PENDING, or the device already has an active subscription
    """
    result = await _workflow(services).approve(
        actor, subscription_id, activate_immediately=request.activate_immediately, notes=request.notes
    )

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)


@router.post("/subscriptions/{subscription_id}/reject", response_model=Envelope[SubscriptionDTO])
async def reject_subscription(
    subscription_id: str,
    request: RejectRequestSchema,
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    result = await _workflow(services).reject(actor, subscription_id, request.reason)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)


@router.post("/subscriptions/bulk", response_model=Envelope[BulkResultDTO])
async def bulk_action(
    request: BulkActionRequestSchema,
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    """
    Approve or reject several requests.

    Each item is processed on its own; failures are reported per item and do
    not stop the rest.
    """
    workflow = _workflow(services)
    if request.action == "approve":
        result = await workflow.bulk_approve(
            actor,
            request.subscription_ids,
            activate_immediately=request.activate_immediately,
            notes=request.notes,
        )
    else:
        result = await workflow.bulk_reject(actor, request.subscription_ids, request.reason)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)


@router.post("/queue", response_model=Envelope[SubscriptionDTO], status_code=status.HTTP_201_CREATED)
async def add_to_queue(
    request: QueueInsertRequestSchema,
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    """Queue a subscription for a user and device directly, skipping the request step."""
    command = QueueForUserCommandDTO(
        user_id=request.user_id,
        hardware_id=request.hardware_id,
        plan=request.plan,
        cards=request.cards,
        device_label=request.device_label,
        contact_email=request.contact_email,
        contact_phone=request.contact_phone,
        priority=request.priority,
        notes=request.notes,
    )
    result = await _workflow(services).queue_for_user(actor, command)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)


@router.put("/subscriptions/{subscription_id}/queue-position", response_model=Envelope[List[SubscriptionDTO]])
async def update_queue_position(
    subscription_id: str,
    request: RepositionRequestSchema,
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    """Move a subscription within its device queue; returns the reordered queue."""
    result = await _workflow(services).reposition(actor, subscription_id, request.position)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)


@router.post("/sweep", response_model=Envelope[ReconciliationSummaryDTO])
async def run_sweep(
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    """Run the daily expiry/promotion sweep now (super admin only)."""
    use_case = ReconcileSubscriptions(
        services.uow,
        services.subscription_repo,
        services.lifecycle,
        services.ledger,
        lease_repo=services.lease_repo,
        lease_ttl_seconds=ApplicationConfig.SWEEP_LEASE_TTL_SECONDS,
    )
    result = await use_case.execute(actor)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)


@router.get("/ledger", response_model=Envelope[LedgerEntryListDTO])
async def list_all_ledger_entries(
    event_type: Optional[List[LedgerEventType]] = Query(default=None),
    status_filter: Optional[List[LedgerEntryStatus]] = Query(default=None, alias="status"),
    user_id: Optional[str] = Query(default=None),
    subscription_id: Optional[str] = Query(default=None),
    date_from: Optional[datetime] = Query(default=None),
    date_to: Optional[datetime] = Query(default=None),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    """Ledger entries of every user, filtered by event type, status, user and date range."""
    filters = LedgerEntryFilterDTO(
        user_id=user_id,
        subscription_id=subscription_id,
        event_types=event_type,
        statuses=status_filter,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    result = await ListLedgerEntries(services.ledger_repo).execute(actor, filters, all_users=True)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)


@router.get("/ledger/summary", response_model=Envelope[LedgerSummaryDTO])
async def get_ledger_summary(
    user_id: Optional[str] = Query(default=None),
    date_from: Optional[datetime] = Query(default=None),
    date_to: Optional[datetime] = Query(default=None),
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    """
    Entry counts and amounts grouped by event type and status.

    **Returns:**
    - 200: Summary; revenue counts COMPLETED entries only
    - 400: date_from after date_to
    - 403: Missing analytics capability
    """
    result = await GetLedgerSummary(services.ledger_repo).execute(
        actor, date_from=date_from, date_to=date_to, user_id=user_id
    )

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)
