"""Subscription API Routes

User-facing FastAPI routes for requesting, activating, cancelling and
renewing subscriptions.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status

from config import ApplicationConfig
from src.adapter.container import SubscriptionServices
from src.api.auth import get_actor
from src.api.error import ClientError
from src.api.schemas.subscription_request import (
    ActivateRequestSchema,
    CreateSubscriptionRequestSchema,
    Envelope,
    RenewRequestSchema,
)
from src.app.use_cases.subscriptions import (
    ActivationProtocol,
    CancelSubscription,
    CreateSubscription,
    GetLedgerChain,
    GetRenewalOptions,
    GetSubscriptionDetail,
    ListSubscriptions,
    RenewSubscription,
)
from src.app.use_cases.subscriptions.dtos import (
    CreateSubscriptionCommandDTO,
    LedgerChainDTO,
    RenewalOptionsDTO,
    SubscriptionDetailDTO,
    SubscriptionDTO,
    SubscriptionFilterDTO,
    SubscriptionListDTO,
)
from src.depends import get_services
from src.domain.actor import ActorContext
from src.domain.subscription import SubscriptionStatus

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


@router.post(
    "",
    response_model=Envelope[SubscriptionDTO],
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {
            "description": "Device already has an active subscription",
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "error": {
                            "code": "DEVICE_HAS_ACTIVE_SUBSCRIPTION",
                            "message": "Device 356938035643809 already has an active subscription"
                        }
                    }
                }
            }
        },
        400: {"description": "Unknown plan or missing cards"},
    }
)
async def create_subscription(
    request: CreateSubscriptionRequestSchema,
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    """
    Request a subscription slot for a device.

    The device is registered on first use. The request starts PENDING at the
    end of the device queue and waits for an administrator.

    **Returns:**
    - 201: Request created
    - 400: Unknown plan or no card reference
    - 409: Device already has an active subscription
    """
    command = CreateSubscriptionCommandDTO(
        hardware_id=request.hardware_id,
        plan=request.plan,
        cards=request.cards,
        device_label=request.device_label,
        contact_email=request.contact_email,
        contact_phone=request.contact_phone,
        notes=request.notes,
    )

    use_case = CreateSubscription(services.uow, services.lifecycle)
    result = await use_case.execute(actor, command)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)


@router.get("", response_model=Envelope[SubscriptionListDTO])
async def list_subscriptions(
    status_filter: Optional[List[SubscriptionStatus]] = Query(default=None, alias="status"),
    hardware_id: Optional[str] = Query(default=None),
    plan: Optional[str] = Query(default=None),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    """List the caller's subscriptions, newest first."""
    filters = SubscriptionFilterDTO(
        statuses=status_filter,
        hardware_id=hardware_id,
        user_id=actor.user_id,
        plan=plan,
        limit=limit,
        offset=offset,
    )
    result = await ListSubscriptions(services.subscription_repo).execute(actor, filters)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)


@router.get("/{subscription_id}", response_model=Envelope[SubscriptionDetailDTO])
async def get_subscription(
    subscription_id: str,
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    use_case = GetSubscriptionDetail(
        services.subscription_repo, services.device_repo, services.ledger_repo
    )
    result = await use_case.execute(actor, subscription_id)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)


@router.post("/{subscription_id}/activate", response_model=Envelope[SubscriptionDTO])
async def activate_subscription(
    subscription_id: str,
    request: ActivateRequestSchema,
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    """
    Activate a queued subscription with the one-time code shown by the device.

    **Returns:**
    - 200: Subscription is ACTIVE
    - 403: Wrong code, wrong device or not the owner
    - 409: Subscription is not QUEUED, or the device already has an active one
    """
    use_case = ActivationProtocol(
        services.uow, services.lifecycle, services.device_registry, services.ledger
    )
    result = await use_case.execute(actor, subscription_id, request.hardware_id, request.code)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)


@router.post("/{subscription_id}/cancel", response_model=Envelope[SubscriptionDTO])
async def cancel_subscription(
    subscription_id: str,
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    use_case = CancelSubscription(services.uow, services.lifecycle, services.ledger)
    result = await use_case.execute(actor, subscription_id)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)


@router.post("/{subscription_id}/renew", response_model=Envelope[SubscriptionDTO])
async def renew_subscription(
    subscription_id: str,
    request: RenewRequestSchema,
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    """Extend an active subscription from its current end date."""
    use_case = RenewSubscription(
        services.uow,
        services.lifecycle,
        allow_plan_fallback=ApplicationConfig.PLAN_FALLBACK_ON_RENEWAL,
    )
    result = await use_case.execute(actor, subscription_id, request.plan)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)


@router.get("/{subscription_id}/renewal-options", response_model=Envelope[RenewalOptionsDTO])
async def get_renewal_options(
    subscription_id: str,
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    result = await GetRenewalOptions(services.subscription_repo).execute(actor, subscription_id)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)


@router.get("/{subscription_id}/ledger", response_model=Envelope[LedgerChainDTO])
async def get_ledger_chain(
    subscription_id: str,
    limit: int = Query(default=100, ge=1, le=500),
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    """Audit chain of one subscription, newest entry first."""
    use_case = GetLedgerChain(services.subscription_repo, services.ledger)
    result = await use_case.execute(actor, subscription_id, limit=limit)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)
