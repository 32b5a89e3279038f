"""
Best-effort audit copy of every accepted submission (e.g. a Google Sheets
Apps Script webhook). Failures are logged and reported, never raised.
"""
import logging
from datetime import datetime, timezone

import requests

logger = logging.getLogger(__name__)

AUDIT_SOURCE = "otp-form"


class WebhookAuditSink:
    def __init__(self, webhook_url=None, timeout=10):
        self.webhook_url = webhook_url
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        return cls(
            webhook_url=config.get("FORM_SUBMISSION_WEBHOOK"),
            timeout=config.get("HTTP_TIMEOUT_SECONDS", 10),
        )

    def record(self, data, crm_result):
        """POST the submission plus CRM outcome; returns True when the hook accepted it."""
        if not self.webhook_url:
            logger.info("No webhook configured - skipping webhook submission")
            return None

        body = dict(data)
        body.update({
            "crmStatus": crm_result.status.value,
            "crmDetail": crm_result.detail,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "source": AUDIT_SOURCE,
        })
        try:
            resp = requests.post(self.webhook_url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Webhook error: {str(e)}")
            return False
        if not resp.ok:
            logger.warning(f"Webhook returned {resp.status_code}")
            return False
        return True
