"""Tests for OTP verification."""

import pytest

from utils.errors import CodeMismatch, EmailMismatch, Expired, InvalidToken, MalformedCode, TokenAlreadyUsed
from utils.otp_issuer import OtpIssuer
from utils.otp_token import issue_token
from utils.otp_verifier import DatabaseRedemptionLedger, OtpVerifier
from utils.rate_limit import MemoryRateLimiter

SECRET = "verifier-secret"


@pytest.fixture()
def verifier(clock):
    return OtpVerifier(SECRET, clock=clock)


@pytest.fixture()
def issued(clock, mailer):
    issuer = OtpIssuer(MemoryRateLimiter(clock=clock), mailer, SECRET, expiry_seconds=300, clock=clock)
    result = issuer.issue("a@b.com")
    return result.token, mailer.last_code


def _wrong(code):
    return "100000" if code != "100000" else "100001"


def test_issue_then_verify_is_case_insensitive(verifier, issued):
    token, code = issued
    assert verifier.verify("A@B.COM", code, token) is True


def test_wrong_code_is_code_mismatch(verifier, issued):
    token, code = issued
    with pytest.raises(CodeMismatch):
        verifier.verify("a@b.com", _wrong(code), token)


def test_verify_repeats_until_expiry(verifier, issued, clock):
    token, code = issued
    assert verifier.verify("a@b.com", code, token)
    clock.advance(120)
    assert verifier.verify("a@b.com", code, token)


def test_expiry_boundary_is_inclusive(verifier, issued, clock):
    token, code = issued
    clock.advance(300)
    assert verifier.verify("a@b.com", code, token)

    clock.now += 1
    with pytest.raises(Expired):
        verifier.verify("a@b.com", code, token)


def test_email_must_match_token(verifier, issued):
    token, code = issued
    with pytest.raises(EmailMismatch):
        verifier.verify("someone@else.com", code, token)


@pytest.mark.parametrize("code", ["12345", "1234567", "12345a", " 123456", "١٢٣٤٥٦", 123456])
def test_malformed_code_is_rejected_before_token(verifier, code):
    with pytest.raises(MalformedCode):
        verifier.verify("a@b.com", code, "garbage")


@pytest.mark.parametrize("email,code", [("", "123456"), ("a@b.com", ""), (None, None)])
def test_missing_fields_are_rejected(verifier, email, code):
    with pytest.raises(MalformedCode) as exc:
        verifier.verify(email, code, "token")
    assert exc.value.message == "Email and OTP are required"


def test_invalid_token_is_rejected(verifier):
    with pytest.raises(InvalidToken):
        verifier.verify("a@b.com", "123456", "not-a-token")


def test_token_signed_with_other_secret_is_rejected(verifier, clock):
    token = issue_token("a@b.com", "123456", clock.now + 1000, "other")
    with pytest.raises(InvalidToken):
        verifier.verify("a@b.com", "123456", token)


def test_errors_report_valid_false():
    assert CodeMismatch().to_dict() == {"error": "Invalid OTP. Please check and try again.", "valid": False}
    assert MalformedCode().to_dict()["valid"] is False


def test_ledger_makes_tokens_single_use(app, issued, clock):
    token, code = issued
    verifier = OtpVerifier(SECRET, clock=clock, ledger=DatabaseRedemptionLedger())

    assert verifier.verify("a@b.com", code, token)
    with pytest.raises(TokenAlreadyUsed):
        verifier.verify("a@b.com", code, token)


def test_ledger_only_records_successful_verifications(app, issued, clock):
    token, code = issued
    verifier = OtpVerifier(SECRET, clock=clock, ledger=DatabaseRedemptionLedger())

    with pytest.raises(CodeMismatch):
        verifier.verify("a@b.com", _wrong(code), token)
    assert verifier.verify("a@b.com", code, token)
