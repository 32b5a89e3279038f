"""Tests for signed OTP tokens."""

import base64
import json

import pytest

from utils.errors import InvalidToken
from utils.otp_token import issue_token, redeem_token

SECRET = "token-secret"
EXPIRES_AT = 1_700_000_300_000


def test_redeem_returns_issued_challenge():
    token = issue_token("a@b.com", "123456", EXPIRES_AT, SECRET)
    challenge = redeem_token(token, SECRET)

    assert challenge.email == "a@b.com"
    assert challenge.code == "123456"
    assert challenge.expires_at == EXPIRES_AT
    assert len(challenge.signature) == 64


def test_token_is_url_safe_without_padding():
    token = issue_token("a@b.com", "123456", EXPIRES_AT, SECRET)
    assert "=" not in token
    assert "+" not in token and "/" not in token


def test_envelope_carries_data_and_signature():
    token = issue_token("a@b.com", "123456", EXPIRES_AT, SECRET)
    raw = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4))
    envelope = json.loads(raw)

    assert set(envelope) == {"data", "signature"}
    assert json.loads(envelope["data"]) == {"email": "a@b.com", "otp": "123456", "expiresAt": EXPIRES_AT}


def test_issue_is_deterministic():
    assert issue_token("a@b.com", "123456", EXPIRES_AT, SECRET) == issue_token("a@b.com", "123456", EXPIRES_AT, SECRET)


def test_wrong_secret_is_rejected():
    token = issue_token("a@b.com", "123456", EXPIRES_AT, SECRET)
    with pytest.raises(InvalidToken):
        redeem_token(token, "other-secret")


def test_tampering_any_single_character_is_rejected():
    token = issue_token("a@b.com", "123456", EXPIRES_AT, SECRET)
    alphabet = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
    for i, ch in enumerate(token):
        replacement = alphabet[(alphabet.index(ch) + 1) % len(alphabet)]
        tampered = token[:i] + replacement + token[i + 1:]
        with pytest.raises(InvalidToken):
            redeem_token(tampered, SECRET)


def test_forged_data_with_recomputed_envelope_is_rejected():
    token = issue_token("a@b.com", "123456", EXPIRES_AT, SECRET)
    raw = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4))
    envelope = json.loads(raw)
    envelope["data"] = envelope["data"].replace("123456", "000000")
    forged = base64.urlsafe_b64encode(json.dumps(envelope).encode()).decode().rstrip("=")

    with pytest.raises(InvalidToken):
        redeem_token(forged, SECRET)


@pytest.mark.parametrize("token", [
    None,
    "",
    123,
    "not base64 !!",
    base64.urlsafe_b64encode(b"not json").decode().rstrip("="),
    base64.urlsafe_b64encode(b'{"data": "x"}').decode().rstrip("="),
    base64.urlsafe_b64encode(b'["data", "signature"]').decode().rstrip("="),
    base64.urlsafe_b64encode('{"data":"x","signature":"é"}'.encode()).decode().rstrip("="),
])
def test_malformed_tokens_are_rejected(token):
    with pytest.raises(InvalidToken):
        redeem_token(token, SECRET)


def test_padded_token_is_rejected():
    token = issue_token("a@b.com", "123456", EXPIRES_AT, SECRET)
    if len(token) % 4 == 0:
        token = issue_token("ab@b.com", "123456", EXPIRES_AT, SECRET)
    with pytest.raises(InvalidToken):
        redeem_token(token + "=" * (-len(token) % 4), SECRET)
