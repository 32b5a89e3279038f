"""Tests for OTP issuance."""

import pytest

from tests.conftest import FakeMailer
from utils.errors import EmailDeliveryFailed, InvalidEmail, RateLimited
from utils.otp_helper import generate_otp
from utils.otp_issuer import OtpIssuer
from utils.otp_token import redeem_token
from utils.rate_limit import MemoryRateLimiter

SECRET = "issuer-secret"


@pytest.fixture()
def issuer(clock, mailer):
    limiter = MemoryRateLimiter(window_seconds=3600, max_requests=10, clock=clock)
    return OtpIssuer(limiter, mailer, SECRET, expiry_seconds=300, clock=clock)


def test_issue_returns_token_and_sends_code(issuer, mailer, clock):
    issued = issuer.issue("  Jane.Doe@Example.COM ")

    assert issued.expires_in == 300
    assert len(mailer.sent) == 1
    email, code = mailer.sent[0]
    assert email == "jane.doe@example.com"

    challenge = redeem_token(issued.token, SECRET)
    assert challenge.email == "jane.doe@example.com"
    assert challenge.code == code
    assert challenge.expires_at == clock.now + 300 * 1000


@pytest.mark.parametrize("email", [None, "", "   ", "plainaddress", "a@b", "a b@c.com", "@b.com", 42])
def test_invalid_email_is_rejected_before_anything_else(issuer, mailer, email):
    with pytest.raises(InvalidEmail):
        issuer.issue(email)
    assert mailer.sent == []


def test_eleventh_issue_is_rate_limited(issuer, mailer):
    for _ in range(10):
        issuer.issue("a@b.com")

    with pytest.raises(RateLimited) as exc:
        issuer.issue("A@B.com")
    assert exc.value.status_code == 429
    assert exc.value.retry_after_minutes == 60
    assert len(mailer.sent) == 10


def test_rate_limit_lifts_after_window(issuer, clock):
    for _ in range(10):
        issuer.issue("a@b.com")
    clock.advance(3601)

    assert issuer.issue("a@b.com").token


def test_delivery_failure_returns_no_token(clock):
    limiter = MemoryRateLimiter(clock=clock)
    issuer = OtpIssuer(limiter, FakeMailer(fail=True), SECRET, clock=clock)

    with pytest.raises(EmailDeliveryFailed) as exc:
        issuer.issue("a@b.com")
    assert exc.value.status_code == 500


def test_generated_codes_are_six_digits():
    for _ in range(500):
        code = generate_otp()
        assert len(code) == 6
        assert code.isdigit()
        assert 100000 <= int(code) <= 999999
