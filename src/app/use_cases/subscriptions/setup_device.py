"""Device setup use cases

SetupDevice provisions the activation secret a device's authenticator
enrolls; GetOnboardingStatus reports whether a device has been activated yet.
"""

from typing import Optional
from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.actor import ActorContext, Capability
from src.domain.errors import failure
from .authorization import authorize
from .device_registry import DeviceRegistry, normalize_hardware_id
from .dtos import DeviceSetupDTO, OnboardingStatusDTO


class SetupDevice:
    """
    Use Case: Register a device (or re-key one not yet onboarded)

    The returned secret and otpauth URI are shown to the user once.
    """

    def __init__(self, uow: UnitOfWork, device_registry: DeviceRegistry):
        self.uow = uow
        self.device_registry = device_registry

    async def execute(self, actor: ActorContext, hardware_id: str, label: Optional[str] = None) -> Result[DeviceSetupDTO]:
        try:
            authorize(actor, Capability.REQUEST_SUBSCRIPTIONS)
            device, uri = await self.device_registry.provision(actor, hardware_id, label)
            await self.uow.commit()

            return Return.ok(DeviceSetupDTO(
                hardware_id=device.hardware_id,
                label=device.label,
                secret=device.activation_secret,
                provisioning_uri=uri,
                is_onboarded=device.is_onboarded,
            ))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(failure(e, "DEVICE_SETUP_FAILED", "Failed to set up device"))


class GetOnboardingStatus:

    def __init__(self, device_registry: DeviceRegistry):
        self.device_registry = device_registry

    async def execute(self, actor: ActorContext, hardware_id: str) -> Result[OnboardingStatusDTO]:
        try:
            authorize(actor, Capability.REQUEST_SUBSCRIPTIONS)
            hardware_id = normalize_hardware_id(hardware_id)
            exists, onboarded = await self.device_registry.onboarding_status(hardware_id)
            return Return.ok(OnboardingStatusDTO(
                hardware_id=hardware_id,
                device_exists=exists,
                is_onboarded=onboarded,
            ))

        except Exception as e:
            return Return.err(failure(e, "ONBOARDING_STATUS_FAILED", "Failed to get onboarding status"))
