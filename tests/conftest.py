"""Shared fixtures: app on TestingConfig with fake collaborators."""

import pytest

from app import create_app
from config import TestingConfig
from models import db
from utils.crm import CrmResult, CrmStatus
from utils.errors import EmailDeliveryFailed
from utils.rate_limit import MemoryRateLimiter


class FakeMailer:
    """Records (email, code) instead of sending."""

    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send(self, email, code):
        if self.fail:
            raise EmailDeliveryFailed()
        self.sent.append((email, code))
        return True

    @property
    def last_code(self):
        return self.sent[-1][1]


class FakeCrm:
    def __init__(self, result=None, exc=None):
        self.result = result or CrmResult(CrmStatus.SUCCESS, method="fake")
        self.exc = exc
        self.calls = []

    def upsert_contact(self, data):
        self.calls.append(data)
        if self.exc:
            raise self.exc
        return self.result


class FakeAuditSink:
    def __init__(self, ok=True, exc=None):
        self.ok = ok
        self.exc = exc
        self.records = []

    def record(self, data, crm_result):
        self.records.append((data, crm_result))
        if self.exc:
            raise self.exc
        return self.ok


class FakeClock:
    """Millisecond clock the test moves by hand."""

    def __init__(self, now=1_700_000_000_000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += int(seconds * 1000)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def mailer():
    return FakeMailer()


@pytest.fixture()
def crm():
    return FakeCrm()


@pytest.fixture()
def audit_sink():
    return FakeAuditSink()


@pytest.fixture()
def app(mailer, crm, audit_sink):
    app = create_app(TestingConfig)
    app.extensions["otp_mailer"] = mailer
    app.extensions["otp_rate_limiter"] = MemoryRateLimiter(window_seconds=3600, max_requests=10)
    app.extensions["lead_crm"] = crm
    app.extensions["lead_audit_sink"] = audit_sink

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()
