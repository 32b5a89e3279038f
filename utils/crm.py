"""
HubSpot integration for verified form submissions.

Two methods, picked from configuration:
1. Forms API (portal id + form guid, no token needed)
2. Contacts API (private app access token)
Neither raises: every outcome comes back as a CrmResult so a CRM outage never
blocks the submission.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)

HUBSPOT_FORMS_URL = "https://api.eu1.hsforms.com/submissions/v3/integration/submit/{portal_id}/{form_guid}"
HUBSPOT_CONTACTS_URL = "https://api.eu1.hubapi.com/crm/v3/objects/contacts"


class CrmStatus(str, enum.Enum):
    SUCCESS = "success"
    DUPLICATE = "duplicate"
    ERROR = "error"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class CrmResult:
    status: CrmStatus
    detail: str = ""
    method: Optional[str] = None
    contact_id: Optional[str] = None

    def to_dict(self):
        return {
            "status": self.status.value,
            "detail": self.detail,
            "method": self.method,
            "contactId": self.contact_id,
        }


def _optional_fields(data):
    """LinkedIn, Telegram and product interest, only when filled in."""
    fields = {}
    if data.get("linkedinUrl"):
        fields["linkedin_url"] = data["linkedinUrl"]
    if data.get("telegram"):
        fields["telegram"] = data["telegram"]
    if data.get("productInterest"):
        fields["product_interest"] = ", ".join(data["productInterest"])
    return fields


def _json_body(resp):
    try:
        body = resp.json()
    except ValueError:
        return {"message": resp.text}
    return body if isinstance(body, dict) else {"message": str(body)}


class HubSpotClient:
    def __init__(self, portal_id=None, form_guid=None, access_token=None,
                 page_uri=None, page_name=None, timeout=10):
        self.portal_id = portal_id
        self.form_guid = form_guid
        self.access_token = access_token
        self.page_uri = page_uri
        self.page_name = page_name
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        return cls(
            portal_id=config.get("HUBSPOT_PORTAL_ID"),
            form_guid=config.get("HUBSPOT_FORM_GUID"),
            access_token=config.get("HUBSPOT_ACCESS_TOKEN"),
            page_uri=config.get("HUBSPOT_PAGE_URI"),
            page_name=config.get("HUBSPOT_PAGE_NAME"),
            timeout=config.get("HTTP_TIMEOUT_SECONDS", 10),
        )

    def upsert_contact(self, data) -> CrmResult:
        if self.portal_id and self.form_guid:
            return self._submit_form(data)
        if self.access_token:
            return self._create_contact(data)
        logger.info("No HubSpot configuration found - skipping HubSpot submission")
        return CrmResult(CrmStatus.SKIPPED)

    def _submit_form(self, data):
        url = HUBSPOT_FORMS_URL.format(portal_id=self.portal_id, form_guid=self.form_guid)
        fields = {
            "firstname": data["firstName"],
            "lastname": data.get("lastName") or "",
            "email": data["email"],
            "phone": data["phone"],
            "company": data.get("companyName") or "",
            "message": data.get("message") or "",
        }
        fields.update(_optional_fields(data))
        payload = {
            "fields": [{"name": name, "value": value} for name, value in fields.items()],
            "context": {"pageUri": self.page_uri, "pageName": self.page_name},
        }
        try:
            resp = requests.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"HubSpot Forms API error: {str(e)}")
            return CrmResult(CrmStatus.ERROR, str(e), method="forms-api")

        if not resp.ok:
            detail = f"HubSpot Forms API error: {resp.status_code} - {resp.text}"
            logger.error(detail)
            return CrmResult(CrmStatus.ERROR, detail, method="forms-api")
        logger.info("Data sent to HubSpot Forms API successfully")
        return CrmResult(CrmStatus.SUCCESS, method="forms-api")

    def _create_contact(self, data):
        properties = {
            "firstname": data["firstName"],
            "lastname": data.get("lastName") or data["firstName"],
            "email": data["email"],
            "phone": data["phone"],
            "company": data.get("companyName") or "",
            "message": data.get("message") or "",
            "hs_lead_status": "NEW",
            "lifecyclestage": "lead",
        }
        properties.update(_optional_fields(data))
        try:
            resp = requests.post(
                HUBSPOT_CONTACTS_URL,
                json={"properties": properties},
                headers={"Authorization": f"Bearer {self.access_token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"HubSpot Contacts API error: {str(e)}")
            return CrmResult(CrmStatus.ERROR, str(e), method="contacts-api")

        if resp.status_code == 409 or (not resp.ok and _json_body(resp).get("category") == "CONFLICT"):
            detail = _json_body(resp).get("message") or "Contact already exists"
            logger.info(f"HubSpot contact already exists for {data['email']}")
            return CrmResult(CrmStatus.DUPLICATE, detail, method="contacts-api")
        if not resp.ok:
            body = _json_body(resp)
            detail = f"HubSpot Contacts API error: {body.get('message') or resp.status_code}"
            logger.error(detail)
            return CrmResult(CrmStatus.ERROR, detail, method="contacts-api")

        contact_id = _json_body(resp).get("id")
        logger.info(f"Contact created in HubSpot successfully: {contact_id}")
        return CrmResult(CrmStatus.SUCCESS, method="contacts-api", contact_id=contact_id)
