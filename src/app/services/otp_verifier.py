"""One-Time Code Verifier Interface"""

from abc import ABC, abstractmethod


class OtpVerifier(ABC):
    """
    Time-based one-time code operations against a device secret

    The tolerance window absorbs clock drift between the device and the server.
    """

    @abstractmethod
    def generate_secret(self) -> str:
        """Return a fresh base32 secret"""
        pass

    @abstractmethod
    def provisioning_uri(self, secret: str, account_name: str) -> str:
        """Return the otpauth:// URI an authenticator app can enroll"""
        pass

    @abstractmethod
    def verify(self, secret: str, code: str) -> bool:
        """True if code matches the secret within the tolerance window"""
        pass
