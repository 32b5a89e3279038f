"""
Lead form submission: validate, sanitize, fan out to CRM and audit webhook.
The caller gets an acknowledgement whenever validation passes; downstream
failures are logged only.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from utils.crm import CrmResult, CrmStatus
from utils.errors import ValidationFailed
from utils.validators import (
    MIN_FIRST_NAME_LENGTH,
    normalize_email,
    validate_email,
    validate_linkedin_url,
    validate_phone,
)

logger = logging.getLogger(__name__)

ATTRIBUTION_FIELDS = (
    "parent_url",
    "parent_referrer",
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
)


@dataclass(frozen=True)
class SubmissionAck:
    first_name: str
    last_name: str
    email: str

    def to_dict(self):
        return {"firstName": self.first_name, "lastName": self.last_name, "email": self.email}


def _text(value):
    """Trimmed string, or '' for anything that is not a string."""
    return value.strip() if isinstance(value, str) else ""


def validate_form_data(data):
    """Return every violation, in field order."""
    errors = []

    if len(_text(data.get("firstName"))) < MIN_FIRST_NAME_LENGTH:
        errors.append("First name must be at least 2 characters")

    if not validate_email(_text(data.get("email"))):
        errors.append("Valid email address is required")

    phone_error = validate_phone(data.get("phone"))
    if phone_error:
        errors.append(phone_error)

    linkedin = _text(data.get("linkedinUrl"))
    if linkedin and not validate_linkedin_url(linkedin):
        errors.append("LinkedIn URL must look like https://linkedin.com/in/your-profile")

    return errors


def sanitize_form_data(data, submitted_at=None):
    if submitted_at is None:
        submitted_at = datetime.now(timezone.utc)
    interests = data.get("productInterest") or []
    if isinstance(interests, str):
        interests = [interests]
    sanitized = {
        "firstName": _text(data.get("firstName")),
        "lastName": _text(data.get("lastName")),
        "companyName": _text(data.get("companyName")),
        "email": normalize_email(data.get("email")),
        "phone": _text(data.get("phone")),
        "linkedinUrl": _text(data.get("linkedinUrl")),
        "telegram": _text(data.get("telegram")),
        "productInterest": [_text(v) for v in interests if _text(v)],
        "message": _text(data.get("message")),
        "submittedAt": submitted_at.isoformat(),
    }
    return sanitized


def attribution_fields(data):
    """UTM and parent page fields forwarded by the embed script, when present."""
    return {key: _text(data.get(key)) for key in ATTRIBUTION_FIELDS if _text(data.get(key))}


class FormSubmitter:
    def __init__(self, crm, audit_sink):
        self.crm = crm
        self.audit_sink = audit_sink

    def submit(self, data) -> SubmissionAck:
        if not isinstance(data, dict):
            data = {}
        errors = validate_form_data(data)
        if errors:
            logger.info(f"Validation failed: {errors}")
            raise ValidationFailed(errors)

        sanitized = sanitize_form_data(data)
        logger.info(
            f"Form submission received: {sanitized['email']} "
            f"({sanitized['firstName']} {sanitized['lastName']}, company={sanitized['companyName']!r})"
        )

        # CRM first; its outcome goes into the audit record
        try:
            crm_result = self.crm.upsert_contact(sanitized)
        except Exception as e:
            logger.error(f"CRM upsert raised for {sanitized['email']}: {str(e)}", exc_info=True)
            crm_result = CrmResult(CrmStatus.ERROR, str(e))
        if crm_result.status == CrmStatus.ERROR:
            logger.warning("HubSpot submission failed, but form accepted")

        audit_payload = dict(sanitized)
        audit_payload.update(attribution_fields(data))
        try:
            audited = self.audit_sink.record(audit_payload, crm_result)
        except Exception as e:
            logger.error(f"Audit sink raised for {sanitized['email']}: {str(e)}", exc_info=True)
            audited = False
        if audited is False:
            logger.warning("Webhook submission failed, but form accepted")

        return SubmissionAck(
            first_name=sanitized["firstName"],
            last_name=sanitized["lastName"],
            email=sanitized["email"],
        )
