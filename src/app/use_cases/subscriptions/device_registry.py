"""DeviceRegistry component

Owns device identity: hardware id, onboarding flag and activation secret.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Tuple
from src.app.repositories.device_repository import DeviceRepository
from src.app.services.otp_verifier import OtpVerifier
from src.domain.actor import ActorContext, Capability
from src.domain.base import utcnow
from src.domain.device import Device
from src.domain.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def normalize_hardware_id(hardware_id: str) -> str:
    normalized = (hardware_id or "").strip()
    if not normalized:
        raise ValidationError("Hardware id is required", code="HARDWARE_ID_REQUIRED")
    if len(normalized) > 64:
        raise ValidationError("Hardware id is too long", code="INVALID_HARDWARE_ID")
    return normalized


class DeviceRegistry:

    def __init__(
        self,
        device_repo: DeviceRepository,
        otp_verifier: OtpVerifier,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.device_repo = device_repo
        self.otp_verifier = otp_verifier
        self.clock = clock

    async def get(self, hardware_id: str, for_update: bool = False) -> Device:
        device = await self.device_repo.get_by_hardware_id(hardware_id, for_update=for_update)
        if device is None:
            raise NotFoundError(f"Device {hardware_id} not found", code="DEVICE_NOT_FOUND")
        return device

    async def ensure(self, hardware_id: str, registered_by: str, label: Optional[str] = None) -> Device:
        """Return the device, registering it with a fresh secret on first reference"""
        hardware_id = normalize_hardware_id(hardware_id)
        device = await self.device_repo.get_by_hardware_id(hardware_id, for_update=True)
        if device is not None:
            return device

        device = Device(
            hardware_id=hardware_id,
            label=label or "Device",
            activation_secret=self.otp_verifier.generate_secret(),
            registered_by=registered_by,
        )
        device = await self.device_repo.create(device)
        logger.info(f"Registered device {hardware_id} for user {registered_by}")
        return device

    async def provision(
        self, actor: ActorContext, hardware_id: str, label: Optional[str] = None
    ) -> Tuple[Device, str]:
        """
        Register a device, or re-key one that has not been onboarded yet

        Only the user who registered the device, or a queue manager, may re-key it.

        Returns:
            (device, provisioning_uri)

        Raises:
            AuthorizationError: If the device was registered by another user
            ConflictError: If the device is already onboarded
        """
        hardware_id = normalize_hardware_id(hardware_id)
        device = await self.device_repo.get_by_hardware_id(hardware_id, for_update=True)

        if device is None:
            device = await self.ensure(hardware_id, actor.user_id, label)
        elif device.registered_by != actor.user_id and not actor.has(Capability.MANAGE_QUEUE):
            logger.warning(
                f"User {actor.user_id} tried to re-key device {hardware_id} "
                f"registered by {device.registered_by}"
            )
            raise AuthorizationError(
                "Device is registered to another user",
                code="DEVICE_NOT_OWNED",
            )
        elif device.is_onboarded:
            raise ConflictError(
                f"Device {hardware_id} is already onboarded",
                code="DEVICE_ALREADY_ONBOARDED",
            )
        else:
            device.activation_secret = self.otp_verifier.generate_secret()
            if label:
                device.label = label
            device = await self.device_repo.update(device)
            logger.info(f"Re-keyed activation secret for device {hardware_id}")

        uri = self.otp_verifier.provisioning_uri(device.activation_secret, hardware_id)
        return device, uri

    async def onboarding_status(self, hardware_id: str) -> Tuple[bool, bool]:
        """(device_exists, is_onboarded)"""
        device = await self.device_repo.get_by_hardware_id(hardware_id)
        if device is None:
            return False, False
        return True, device.is_onboarded

    def verify_code(self, device: Device, code: str) -> bool:
        return self.otp_verifier.verify(device.activation_secret, code)

    async def mark_onboarded(self, device: Device) -> bool:
        """Flip the onboarding flag; True if this was the first activation"""
        if device.is_onboarded:
            return False
        device.is_onboarded = True
        device.onboarded_at = self.clock()
        await self.device_repo.update(device)
        logger.info(f"Device {device.hardware_id} onboarded")
        return True
