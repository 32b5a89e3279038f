"""
OTP generation and timing helpers.
"""
import secrets
import time

OTP_MIN = 100000
OTP_MAX = 999999


def generate_otp() -> str:
    """Uniform 6-digit code in [100000, 999999]; never has a leading zero."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def now_ms() -> int:
    """Wall clock in milliseconds since epoch."""
    return int(time.time() * 1000)


def otp_expires_at(expiry_seconds, now=None) -> int:
    """Absolute expiry (ms) for a code issued at `now`."""
    if now is None:
        now = now_ms()
    return now + int(expiry_seconds) * 1000
