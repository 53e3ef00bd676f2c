from .unit_of_work import UnitOfWork
from .notification_service import NotificationService
from .otp_verifier import OtpVerifier

__all__ = [
    "UnitOfWork",
    "NotificationService",
    "OtpVerifier",
]
