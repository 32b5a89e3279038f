"""
Issues email verification codes.
Nothing is stored: the code, the email it belongs to and its expiry travel
back to the client inside a signed token.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from utils.errors import InvalidEmail, RateLimited
from utils.otp_helper import generate_otp, now_ms, otp_expires_at
from utils.otp_token import issue_token
from utils.validators import normalize_email, validate_email

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_SECONDS = 5 * 60


@dataclass(frozen=True)
class IssuedOtp:
    token: str
    expires_in: int  # seconds


class OtpIssuer:
    """
    Validate the address, consume one rate-limit slot, mint a code and token,
    then deliver the code. The token is only returned if delivery succeeded.
    """

    def __init__(self, rate_limiter, mailer, secret, expiry_seconds=DEFAULT_EXPIRY_SECONDS,
                 clock=now_ms, code_generator=generate_otp):
        self.rate_limiter = rate_limiter
        self.mailer = mailer
        self.secret = secret
        self.expiry_seconds = int(expiry_seconds)
        self.clock = clock
        self.code_generator = code_generator

    def issue(self, raw_email) -> IssuedOtp:
        # 1) Shape check, then normalize; every later step keys on the normalized form
        if not raw_email or not isinstance(raw_email, str) or not validate_email(raw_email):
            raise InvalidEmail()
        email = normalize_email(raw_email)

        # 2) Rate limit
        decision = self.rate_limiter.check_and_consume(email)
        if not decision.allowed:
            logger.info(f"OTP rate limit hit for {email} (retry in {decision.retry_after_minutes} min)")
            raise RateLimited(decision.retry_after_minutes)

        # 3) Code, expiry, token
        code = self.code_generator()
        expires_at = otp_expires_at(self.expiry_seconds, now=self.clock())
        token = issue_token(email, code, expires_at, self.secret)

        # 4) Deliver; EmailDeliveryFailed propagates and no token leaves this method
        self.mailer.send(email, code)

        expires_iso = datetime.fromtimestamp(expires_at / 1000, tz=timezone.utc).isoformat()
        logger.info(f"OTP sent to {email} (expires at {expires_iso})")
        return IssuedOtp(token=token, expires_in=self.expiry_seconds)
