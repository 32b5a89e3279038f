"""
Checks a submitted code against the signed token it was issued with.

Without a redemption ledger this is a pure predicate over
(email, code, token, now): the same valid triple keeps passing until the
token expires. Pass a ledger to make each token redeemable once.
"""
import hmac
import logging
from abc import ABC, abstractmethod
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from models import db
from models.otp import RedeemedOTPToken
from utils.errors import CodeMismatch, EmailMismatch, Expired, MalformedCode, TokenAlreadyUsed
from utils.otp_helper import now_ms
from utils.otp_token import redeem_token
from utils.validators import normalize_email, validate_otp_format

logger = logging.getLogger(__name__)


class RedemptionLedger(ABC):
    """Remembers which tokens were already verified."""

    @abstractmethod
    def mark_redeemed(self, challenge, now):
        """Record the redemption; raise TokenAlreadyUsed if it was already recorded."""


class DatabaseRedemptionLedger(RedemptionLedger):
    """Redeemed markers in otp_redeemed_token, keyed by token signature."""

    def mark_redeemed(self, challenge, now):
        self._cleanup(now)
        if db.session.get(RedeemedOTPToken, challenge.signature) is not None:
            raise TokenAlreadyUsed()
        db.session.add(RedeemedOTPToken(
            signature=challenge.signature,
            email=challenge.email,
            expires_at=challenge.expires_at,
            redeemed_at=datetime.utcnow(),
        ))
        try:
            db.session.commit()
        except IntegrityError:
            # Concurrent verification of the same token won the insert
            db.session.rollback()
            raise TokenAlreadyUsed()

    def _cleanup(self, now):
        """Markers for expired tokens are useless: the token fails on expiry anyway."""
        try:
            RedeemedOTPToken.query.filter(RedeemedOTPToken.expires_at < now).delete()
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.warning("Redeemed token cleanup skipped (non-fatal): %s", e)


class OtpVerifier:
    def __init__(self, secret, clock=now_ms, ledger=None):
        self.secret = secret
        self.clock = clock
        self.ledger = ledger

    def verify(self, raw_email, raw_code, token):
        """Return True or raise the VerifyError describing the first failed check."""
        if not raw_email or not raw_code:
            raise MalformedCode("Email and OTP are required")
        if not validate_otp_format(raw_code):
            raise MalformedCode()

        challenge = redeem_token(token, self.secret)

        email = normalize_email(raw_email)
        if email != normalize_email(challenge.email):
            raise EmailMismatch()

        now = self.clock()
        # Valid up to and including expires_at
        if now > challenge.expires_at:
            raise Expired()

        if not hmac.compare_digest(raw_code.encode("ascii"), challenge.code.encode("utf-8")):
            raise CodeMismatch()

        if self.ledger is not None:
            self.ledger.mark_redeemed(challenge, now)

        logger.info(f"OTP verified successfully for {email}")
        return True
