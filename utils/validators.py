"""
Input shape checks shared by the OTP and form endpoints.
"""
import re

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
OTP_RE = re.compile(r"[0-9]{6}")
LINKEDIN_RE = re.compile(
    r"^https?://([a-z]{2,3}\.)?(www\.)?linkedin\.com/(in|company)/[^\s/?#]+/?(\?\S*)?$",
    re.IGNORECASE,
)

MIN_FIRST_NAME_LENGTH = 2
MIN_PHONE_LENGTH = 10


def normalize_email(email):
    """Trim and lower-case; the only form used for keying and matching."""
    if not isinstance(email, str):
        return ""
    return email.strip().lower()


def validate_email(email):
    """True for a local@domain.tld shaped address."""
    if not email or not isinstance(email, str):
        return False
    return EMAIL_RE.match(email.strip()) is not None


def validate_otp_format(otp):
    """Exactly six ASCII digits."""
    return isinstance(otp, str) and OTP_RE.fullmatch(otp) is not None


def validate_phone(phone):
    """
    Return an error message or None.
    Phone must carry a country code: leading '+', country code not starting with 0.
    """
    phone = phone.strip() if isinstance(phone, str) else ""
    if not phone.startswith("+"):
        return "Phone number must start with + and include country code"
    if len(phone) > 1 and phone[1] == "0":
        return "Country code cannot start with 0"
    if len(phone) < MIN_PHONE_LENGTH:
        return "Valid phone number with country code is required"
    return None


def validate_linkedin_url(url):
    return LINKEDIN_RE.match(url.strip()) is not None
