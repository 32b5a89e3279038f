"""
OTP bookkeeping tables (PostgreSQL-compatible).
Pending codes are never stored; they travel inside signed tokens.
These tables only back the shared rate limiter and the optional
single-use ledger.
"""
from models import db
from datetime import datetime


class OTPRateLimit(db.Model):
    """
    Issuance counter per normalized email for the current window.
    Shared by every instance pointing at the same database.
    """
    __tablename__ = 'otp_rate_limit'

    email = db.Column(db.String(254), primary_key=True)
    count = db.Column(db.Integer, nullable=False, default=0)
    reset_at = db.Column(db.BigInteger, nullable=False)  # ms since epoch

    def is_expired(self, now_ms):
        return now_ms > self.reset_at

    def __repr__(self):
        return f'<OTPRateLimit {self.email} {self.count}>'


class RedeemedOTPToken(db.Model):
    """
    Marker written when a token is verified with single-use enforcement on.
    Kept only until the token would have expired anyway.
    """
    __tablename__ = 'otp_redeemed_token'

    signature = db.Column(db.String(64), primary_key=True)
    email = db.Column(db.String(254), nullable=False, index=True)
    expires_at = db.Column(db.BigInteger, nullable=False)  # ms since epoch
    redeemed_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<RedeemedOTPToken {self.signature[:8]}...>'
