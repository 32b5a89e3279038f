"""
Self-contained signed OTP tokens.
The token carries {email, otp, expiresAt} plus an HMAC-SHA256 signature, so no
server-side row is needed for a pending code. Rotating the secret invalidates
every outstanding token.
"""
import base64
import binascii
import hmac
import json
from dataclasses import dataclass

from utils.errors import InvalidToken


@dataclass(frozen=True)
class OtpChallenge:
    email: str
    code: str
    expires_at: int  # ms since epoch
    signature: str = ""


def _serialize(email, code, expires_at):
    return json.dumps(
        {"email": email, "otp": code, "expiresAt": int(expires_at)},
        separators=(",", ":"),
        sort_keys=True,
    )


def _sign(secret, data):
    key = secret.encode("utf-8")
    return hmac.new(key, data.encode("utf-8"), "sha256").hexdigest()


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def issue_token(email, code, expires_at, secret) -> str:
    """Sign the challenge and wrap it in a URL-safe base64 envelope."""
    data = _serialize(email, code, expires_at)
    envelope = json.dumps({"data": data, "signature": _sign(secret, data)}, separators=(",", ":"))
    return _b64encode(envelope.encode("utf-8"))


def redeem_token(token, secret) -> OtpChallenge:
    """
    Decode a token and check its signature.
    Raises InvalidToken for anything malformed or tampered with.
    """
    if not token or not isinstance(token, str):
        raise InvalidToken()
    try:
        raw = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4))
        # Reject alternate encodings of the same bytes (e.g. unused trailing bits)
        if _b64encode(raw) != token:
            raise InvalidToken()
        envelope = json.loads(raw.decode("utf-8"))
        data = envelope["data"]
        sig = envelope["signature"]
        if not isinstance(data, str) or not isinstance(sig, str):
            raise InvalidToken()
    except (binascii.Error, ValueError, UnicodeDecodeError, KeyError, TypeError):
        raise InvalidToken()

    expected = _sign(secret, data)
    if not hmac.compare_digest(sig.encode("utf-8"), expected.encode("utf-8")):
        raise InvalidToken()

    try:
        fields = json.loads(data)
        email = fields["email"]
        code = fields["otp"]
        expires_at = fields["expiresAt"]
    except (ValueError, KeyError, TypeError):
        raise InvalidToken()
    if not isinstance(email, str) or not isinstance(code, str):
        raise InvalidToken()
    if isinstance(expires_at, bool) or not isinstance(expires_at, int):
        raise InvalidToken()
    return OtpChallenge(email=email, code=code, expires_at=expires_at, signature=sig)
