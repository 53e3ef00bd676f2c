"""pyotp implementation of OtpVerifier"""

import logging
import pyotp
from src.app.services.otp_verifier import OtpVerifier

logger = logging.getLogger(__name__)


class PyOtpVerifier(OtpVerifier):
    """
    TOTP verification with a symmetric tolerance window

    A window of 2 accepts the codes of the two 30 second steps before and
    after the current one.
    """

    def __init__(self, valid_window: int = 2, issuer: str = "Subscription Service"):
        self.valid_window = valid_window
        self.issuer = issuer

    def generate_secret(self) -> str:
        return pyotp.random_base32()

    def provisioning_uri(self, secret: str, account_name: str) -> str:
        return pyotp.TOTP(secret).provisioning_uri(name=account_name, issuer_name=self.issuer)

    def verify(self, secret: str, code: str) -> bool:
        code = (code or "").strip()
        if not code.isdigit():
            return False
        try:
            return pyotp.TOTP(secret).verify(code, valid_window=self.valid_window)
        except (ValueError, TypeError) as e:
            logger.warning(f"Activation code check failed on malformed secret: {e}")
            return False
