"""
Error types surfaced by the OTP and form endpoints.
Each carries the HTTP status and the JSON body the route returns.
"""


class LeadGateError(Exception):
    """Base error: message is shown to the caller verbatim."""
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {"error": self.message}


class InputValidation(LeadGateError):
    """Malformed email, code, phone or URL."""


class InvalidEmail(InputValidation):
    def __init__(self, message="Invalid email address"):
        super().__init__(message)


class ValidationFailed(InputValidation):
    """Form validation; lists every violation, not just the first."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("Validation failed: " + ", ".join(self.errors))

    def to_dict(self):
        return {"error": self.message, "errors": self.errors}


class RateLimited(LeadGateError):
    status_code = 429

    def __init__(self, retry_after_minutes):
        self.retry_after_minutes = retry_after_minutes
        unit = "minute" if retry_after_minutes == 1 else "minutes"
        super().__init__(
            f"Too many OTP requests. Please try again in {retry_after_minutes} {unit}."
        )

    def to_dict(self):
        return {"error": self.message, "retryAfterMinutes": self.retry_after_minutes}


class VerifyError(LeadGateError):
    """Verification did not pass; the body always carries valid: false."""

    def to_dict(self):
        return {"error": self.message, "valid": False}


class InvalidToken(VerifyError):
    # Same message for every decode or signature failure.
    def __init__(self, message="Invalid verification request. Please request a new OTP."):
        super().__init__(message)


class MalformedCode(VerifyError, InputValidation):
    """Missing email or code, or a code that is not exactly six digits."""

    def __init__(self, message="Invalid OTP format. OTP must be 6 digits."):
        super().__init__(message)


class EmailMismatch(VerifyError):
    def __init__(self, message="This code was not issued for this email address."):
        super().__init__(message)


class Expired(VerifyError):
    def __init__(self, message="OTP has expired. Please request a new OTP."):
        super().__init__(message)


class CodeMismatch(VerifyError):
    def __init__(self, message="Invalid OTP. Please check and try again."):
        super().__init__(message)


class TokenAlreadyUsed(VerifyError):
    def __init__(self, message="This OTP has already been used. Please request a new OTP."):
        super().__init__(message)


class EmailDeliveryFailed(LeadGateError):
    """Mailer unreachable or misconfigured; issuance is aborted."""
    status_code = 500

    def __init__(self, message="Failed to send email. Please try again."):
        super().__init__(message)
