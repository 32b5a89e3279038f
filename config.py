"""
Configuration for the lead form OTP service.
Production (Railway/Render): requires a real signing secret.
Local: SQLite fallback and a dev secret so the service runs out of the box.
"""
import os
from pathlib import Path


DEFAULT_SECRET = "dev-secret-key-change-in-production"


def _is_production():
    """True when running on Railway, Render, or explicit production."""
    return (
        os.environ.get("RENDER") == "true"
        or os.environ.get("RAILWAY_ENVIRONMENT") is not None
        or os.environ.get("FLASK_ENV") == "production"
    )


def _env_bool(name, default="false"):
    return os.environ.get(name, default).lower() in ("true", "on", "1")


def _normalize_database_url(url):
    """Convert postgres:// to postgresql+psycopg2:// for SQLAlchemy/psycopg2."""
    if not url:
        return url
    url = url.strip()
    if url.startswith("postgres://"):
        return "postgresql+psycopg2://" + url[11:]
    if url.startswith("postgresql://") and "psycopg2" not in url:
        return "postgresql+psycopg2://" + url[13:]
    return url


def _get_database_uri():
    """DATABASE_URL when set; otherwise a local SQLite file under instance/."""
    url = os.environ.get("DATABASE_URL")
    if url and url.strip():
        return _normalize_database_url(url)
    return f"sqlite:///{Config.INSTANCE_DIR / 'leadgate.db'}"


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get("SECRET_KEY") or DEFAULT_SECRET
    # Signs OTP tokens; rotating it invalidates every outstanding token.
    OTP_SECRET = os.environ.get("OTP_SECRET") or SECRET_KEY

    BASE_DIR = Path(__file__).parent
    INSTANCE_DIR = BASE_DIR / "instance"
    try:
        INSTANCE_DIR.mkdir(exist_ok=True)
    except OSError:
        pass
    SQLALCHEMY_DATABASE_URI = None  # resolved below, needs INSTANCE_DIR
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    OTP_EXPIRY_SECONDS = int(os.environ.get("OTP_EXPIRY_SECONDS") or 300)
    OTP_RATE_LIMIT_BACKEND = os.environ.get("OTP_RATE_LIMIT_BACKEND", "memory").lower()
    OTP_RATE_LIMIT_WINDOW_SECONDS = int(os.environ.get("OTP_RATE_LIMIT_WINDOW_SECONDS") or 3600)
    OTP_RATE_LIMIT_MAX_REQUESTS = int(os.environ.get("OTP_RATE_LIMIT_MAX_REQUESTS") or 10)
    OTP_ENFORCE_SINGLE_USE = _env_bool("OTP_ENFORCE_SINGLE_USE")

    # Mailer: "brevo" (HTTP API) or "smtp" (Flask-Mail)
    MAIL_BACKEND = os.environ.get("MAIL_BACKEND", "brevo").lower()
    BREVO_API_KEY = os.environ.get("BREVO_API_KEY")
    BREVO_SENDER = os.environ.get("BREVO_SENDER") or "CipherBC"
    BREVO_SENDER_EMAIL = os.environ.get("BREVO_SENDER_EMAIL") or "noreply@cipherbc.com"

    MAIL_SERVER = os.environ.get("MAIL_SERVER")
    MAIL_PORT = int(os.environ.get("MAIL_PORT") or 587)
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", "true")
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.environ.get("MAIL_DEFAULT_SENDER") or os.environ.get("MAIL_USERNAME") or BREVO_SENDER_EMAIL

    HUBSPOT_PORTAL_ID = os.environ.get("HUBSPOT_PORTAL_ID")
    HUBSPOT_FORM_GUID = os.environ.get("HUBSPOT_FORM_GUID")
    HUBSPOT_ACCESS_TOKEN = os.environ.get("HUBSPOT_ACCESS_TOKEN")
    HUBSPOT_PAGE_URI = os.environ.get("HUBSPOT_PAGE_URI") or "https://cipherbc.com/contact"
    HUBSPOT_PAGE_NAME = os.environ.get("HUBSPOT_PAGE_NAME") or "CipherBC Contact Form"

    FORM_SUBMISSION_WEBHOOK = os.environ.get("FORM_SUBMISSION_WEBHOOK")

    HTTP_TIMEOUT_SECONDS = float(os.environ.get("HTTP_TIMEOUT_SECONDS") or 10)
    CORS_ALLOW_ORIGIN = os.environ.get("CORS_ALLOW_ORIGIN") or "*"

    @staticmethod
    def check(config):
        """Refuse to boot production with the placeholder secret."""
        if _is_production() and config.get("OTP_SECRET") == DEFAULT_SECRET:
            raise RuntimeError(
                "OTP_SECRET (or SECRET_KEY) is required in production. "
                "Set it in your service environment variables."
            )


Config.SQLALCHEMY_DATABASE_URI = _get_database_uri()


class TestingConfig(Config):
    """In-memory database, deterministic secret, no outbound integrations."""
    TESTING = True
    SECRET_KEY = "test-secret"
    OTP_SECRET = "test-otp-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    OTP_RATE_LIMIT_BACKEND = "memory"
    OTP_ENFORCE_SINGLE_USE = False
    MAIL_BACKEND = "brevo"
    BREVO_API_KEY = "test-brevo-key"
    HUBSPOT_PORTAL_ID = None
    HUBSPOT_FORM_GUID = None
    HUBSPOT_ACCESS_TOKEN = None
    FORM_SUBMISSION_WEBHOOK = None
    CORS_ALLOW_ORIGIN = "*"
