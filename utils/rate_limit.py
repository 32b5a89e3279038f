"""
Per-email issuance limits.
The memory limiter is exact only within one process; point every instance at
the database limiter when the deployment runs more than one.
"""
import logging
import math
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from models import db
from models.otp import OTPRateLimit
from utils.otp_helper import now_ms

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 60 * 60
DEFAULT_MAX_REQUESTS = 10


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after_minutes: int = 0


def _retry_after_minutes(reset_at, now):
    return max(1, math.ceil((reset_at - now) / 60000))


class RateLimiter(ABC):
    """Bounds how many codes an email may request in a rolling window."""

    def __init__(self, window_seconds=DEFAULT_WINDOW_SECONDS, max_requests=DEFAULT_MAX_REQUESTS, clock=now_ms):
        self.window_ms = int(window_seconds) * 1000
        self.max_requests = int(max_requests)
        self.clock = clock

    @abstractmethod
    def check_and_consume(self, email) -> RateLimitDecision:
        """Count one request for `email` (already normalized) if allowed."""


class MemoryRateLimiter(RateLimiter):
    """Process-local counters; reset on restart."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._records = {}
        self._lock = threading.Lock()

    def check_and_consume(self, email):
        now = self.clock()
        with self._lock:
            self._prune(now)
            record = self._records.get(email)
            if record is None or now > record["reset_at"]:
                self._records[email] = {"count": 1, "reset_at": now + self.window_ms}
                return RateLimitDecision(True)
            if record["count"] >= self.max_requests:
                return RateLimitDecision(False, _retry_after_minutes(record["reset_at"], now))
            record["count"] += 1
            return RateLimitDecision(True)

    def _prune(self, now):
        stale = [key for key, rec in self._records.items() if now > rec["reset_at"]]
        for key in stale:
            del self._records[key]


class DatabaseRateLimiter(RateLimiter):
    """Counters in the otp_rate_limit table; needs an app context."""

    # Elapsed windows are swept at most this often
    CLEANUP_INTERVAL_MS = 60 * 1000

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._last_cleanup = None

    def check_and_consume(self, email):
        now = self.clock()
        if self._last_cleanup is None or now - self._last_cleanup >= self.CLEANUP_INTERVAL_MS:
            self._last_cleanup = now
            self.cleanup_expired()
        try:
            decision = self._consume(email, now)
            db.session.commit()
            return decision
        except IntegrityError:
            # Another instance created the row first; count against it.
            db.session.rollback()
            decision = self._consume(email, now)
            db.session.commit()
            return decision
        except Exception:
            db.session.rollback()
            raise

    def _consume(self, email, now):
        record = db.session.get(OTPRateLimit, email, with_for_update=True)
        if record is None:
            db.session.add(OTPRateLimit(email=email, count=1, reset_at=now + self.window_ms))
            db.session.flush()
            return RateLimitDecision(True)
        if record.is_expired(now):
            record.count = 1
            record.reset_at = now + self.window_ms
            return RateLimitDecision(True)
        if record.count >= self.max_requests:
            return RateLimitDecision(False, _retry_after_minutes(record.reset_at, now))
        record.count += 1
        return RateLimitDecision(True)

    def cleanup_expired(self):
        """Drop windows that have already elapsed."""
        now = self.clock()
        try:
            removed = OTPRateLimit.query.filter(OTPRateLimit.reset_at < now).delete()
            db.session.commit()
            return removed
        except Exception as e:
            db.session.rollback()
            logger.warning("Rate limit cleanup skipped (non-fatal): %s", e)
            return 0


def build_rate_limiter(config):
    """Pick the limiter named by OTP_RATE_LIMIT_BACKEND."""
    backend = (config.get("OTP_RATE_LIMIT_BACKEND") or "memory").lower()
    kwargs = dict(
        window_seconds=config.get("OTP_RATE_LIMIT_WINDOW_SECONDS", DEFAULT_WINDOW_SECONDS),
        max_requests=config.get("OTP_RATE_LIMIT_MAX_REQUESTS", DEFAULT_MAX_REQUESTS),
    )
    if backend == "database":
        return DatabaseRateLimiter(**kwargs)
    if backend != "memory":
        raise RuntimeError(f"Unknown OTP_RATE_LIMIT_BACKEND: {backend}")
    return MemoryRateLimiter(**kwargs)
