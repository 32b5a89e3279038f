"""
Email delivery of verification codes.
Two transports: Brevo transactional API (default) and SMTP through Flask-Mail.
Any failure is raised as EmailDeliveryFailed so issuance never hands out a
token the user cannot redeem.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime

import requests
from flask_mail import Mail, Message

from utils.errors import EmailDeliveryFailed

logger = logging.getLogger(__name__)

mail = Mail()

BREVO_SEND_URL = "https://api.brevo.com/v3/smtp/email"


class Mailer(ABC):
    """Sends a verification code to an address."""

    @abstractmethod
    def send(self, email, code):
        """Deliver `code` to `email`; raise EmailDeliveryFailed on any failure."""


def otp_email_subject(code):
    return f"Your verification code is {code}"


def otp_email_text(code, expiry_minutes):
    return (
        f"Your verification code is: {code}. This code will expire in {expiry_minutes} minutes. "
        "Do not share this code with anyone."
    )


def otp_email_html(code, expiry_minutes, sender_name):
    """Clean HTML template for OTP email."""
    year = datetime.utcnow().year
    return f"""
    <!DOCTYPE html>
    <html>
    <head><meta charset="utf-8"><title>Verify Your Email</title></head>
    <body style="font-family: system-ui, sans-serif; max-width: 480px; margin: 0 auto; padding: 24px;">
        <h2 style="color: #1f2937;">Verify Your Email</h2>
        <p>Use the verification code below to complete your form submission:</p>
        <p style="font-size: 36px; font-weight: bold; letter-spacing: 8px; color: #2563eb; font-family: 'Courier New', monospace;">{code}</p>
        <p style="color: #6b7280;">This code will expire in <strong>{expiry_minutes} minutes</strong>. Do not share this code with anyone.</p>
        <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 24px 0;">
        <p style="font-size: 12px; color: #9ca3af;">If you didn't request this code, please ignore this email.</p>
        <p style="font-size: 12px; color: #9ca3af;">&copy; {year} {sender_name}. All rights reserved.</p>
    </body>
    </html>
    """


class BrevoMailer(Mailer):
    """Brevo Transactional Email API."""

    def __init__(self, api_key, sender_email, sender_name, expiry_minutes=5, timeout=10):
        self.api_key = api_key
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.expiry_minutes = expiry_minutes
        self.timeout = timeout

    def send(self, email, code):
        if not self.api_key:
            logger.error("BREVO_API_KEY not configured")
            raise EmailDeliveryFailed()

        payload = {
            "sender": {"name": self.sender_name, "email": self.sender_email},
            "to": [{"email": email}],
            "subject": otp_email_subject(code),
            "htmlContent": otp_email_html(code, self.expiry_minutes, self.sender_name),
            "textContent": otp_email_text(code, self.expiry_minutes),
        }
        try:
            resp = requests.post(
                BREVO_SEND_URL,
                headers={
                    "accept": "application/json",
                    "api-key": self.api_key,
                    "content-type": "application/json",
                },
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Brevo request failed for {email}: {str(e)}", exc_info=True)
            raise EmailDeliveryFailed() from e

        if resp.status_code >= 300:
            logger.error(f"Brevo send failed ({resp.status_code}) for {email}: {resp.text}")
            raise EmailDeliveryFailed()
        return True


class SmtpMailer(Mailer):
    """SMTP through the Flask-Mail extension; needs an app context."""

    def __init__(self, config, expiry_minutes=5):
        self.config = config
        self.expiry_minutes = expiry_minutes

    def send(self, email, code):
        # Check if mail server is configured
        if not self.config.get('MAIL_SERVER') or not self.config.get('MAIL_USERNAME'):
            logger.error("MAIL_SERVER/MAIL_USERNAME not configured")
            raise EmailDeliveryFailed()

        sender_name = self.config.get('BREVO_SENDER') or "Verification"
        msg = Message(
            subject=otp_email_subject(code),
            recipients=[email],
            body=otp_email_text(code, self.expiry_minutes),
            html=otp_email_html(code, self.expiry_minutes, sender_name),
        )
        try:
            mail.send(msg)
        except Exception as e:
            logger.error(f"SMTP error sending email to {email}: {str(e)}", exc_info=True)
            raise EmailDeliveryFailed() from e
        return True


def build_mailer(config):
    """Pick the transport named by MAIL_BACKEND."""
    expiry_minutes = max(1, int(config.get("OTP_EXPIRY_SECONDS", 300)) // 60)
    backend = (config.get("MAIL_BACKEND") or "brevo").lower()
    if backend == "smtp":
        return SmtpMailer(config, expiry_minutes=expiry_minutes)
    if backend != "brevo":
        raise RuntimeError(f"Unknown MAIL_BACKEND: {backend}")
    return BrevoMailer(
        api_key=config.get("BREVO_API_KEY"),
        sender_email=config.get("BREVO_SENDER_EMAIL"),
        sender_name=config.get("BREVO_SENDER"),
        expiry_minutes=expiry_minutes,
        timeout=config.get("HTTP_TIMEOUT_SECONDS", 10),
    )
