"""Device API Routes"""

from fastapi import APIRouter, Depends, Query, status

from src.adapter.container import SubscriptionServices
from src.api.auth import get_actor
from src.api.error import ClientError
from src.api.schemas.subscription_request import DeviceSetupRequestSchema, Envelope
from src.app.use_cases.subscriptions import GetDeviceQueueStatus, GetOnboardingStatus, SetupDevice
from src.app.use_cases.subscriptions.dtos import (
    DeviceQueueStatusDTO,
    DeviceSetupDTO,
    OnboardingStatusDTO,
)
from src.depends import get_services
from src.domain.actor import ActorContext

router = APIRouter(prefix="/devices", tags=["Devices"])


@router.post("/setup", response_model=Envelope[DeviceSetupDTO], status_code=status.HTTP_201_CREATED)
async def setup_device(
    request: DeviceSetupRequestSchema,
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    """
    Provision the activation secret of a device.

    The response carries the base32 secret and an otpauth:// URI for the
    authenticator on the device. A device that is already onboarded cannot be
    re-keyed (409).
    """
    use_case = SetupDevice(services.uow, services.device_registry)
    result = await use_case.execute(actor, request.hardware_id, request.label)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)


@router.get("/{hardware_id}/onboarding", response_model=Envelope[OnboardingStatusDTO])
async def get_onboarding_status(
    hardware_id: str,
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    result = await GetOnboardingStatus(services.device_registry).execute(actor, hardware_id)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)


@router.get("/{hardware_id}/queue", response_model=Envelope[DeviceQueueStatusDTO])
async def get_device_queue(
    hardware_id: str,
    include_history: bool = Query(default=False),
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    """Active subscription, ordered queue and queue statistics of a device."""
    use_case = GetDeviceQueueStatus(services.subscription_repo, services.device_repo)
    result = await use_case.execute(actor, hardware_id, include_history=include_history)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)
