"""Unit tests for PyOtpVerifier

Tests cover:
- Codes within the +/-2 step window are accepted
- Codes outside the window are rejected
- Malformed input is rejected without raising
"""

import time

import pyotp

from src.adapter.services.otp_verifier import PyOtpVerifier


def test_current_code_accepted():
    verifier = PyOtpVerifier()
    secret = verifier.generate_secret()

    assert verifier.verify(secret, pyotp.TOTP(secret).now())


def test_previous_step_accepted():
    verifier = PyOtpVerifier(valid_window=2)
    secret = verifier.generate_secret()
    code = pyotp.TOTP(secret).at(time.time() - 30)

    assert verifier.verify(secret, code)


def test_code_outside_window_rejected():
    verifier = PyOtpVerifier(valid_window=2)
    secret = verifier.generate_secret()
    code = pyotp.TOTP(secret).at(time.time() + 30 * 10)

    assert not verifier.verify(secret, code)


def test_non_numeric_code_rejected():
    verifier = PyOtpVerifier()
    secret = verifier.generate_secret()

    assert not verifier.verify(secret, "12ab56")
    assert not verifier.verify(secret, "")


def test_provisioning_uri():
    verifier = PyOtpVerifier(issuer="Subscriptions")

    uri = verifier.provisioning_uri("JBSWY3DPEHPK3PXP", "HW1")

    assert uri.startswith("otpauth://totp/")
    assert "secret=JBSWY3DPEHPK3PXP" in uri
    assert "issuer=Subscriptions" in uri
