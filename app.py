"""
Main Flask application entry point for the lead form OTP service
"""
import logging
import os

from flask import Flask, jsonify, request

from config import Config
from models import db
from utils.audit import WebhookAuditSink
from utils.crm import HubSpotClient
from utils.mail import build_mailer, mail
from utils.rate_limit import build_rate_limiter

API_PREFIX = "/api"


def create_app(config_class=Config):
    """Application factory pattern. DB init runs inside app_context; non-fatal on failure."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    Config.check(app.config)

    db.init_app(app)
    mail.init_app(app)

    # Collaborators; tests swap these for fakes
    app.extensions["otp_rate_limiter"] = build_rate_limiter(app.config)
    app.extensions["otp_mailer"] = build_mailer(app.config)
    app.extensions["lead_crm"] = HubSpotClient.from_config(app.config)
    app.extensions["lead_audit_sink"] = WebhookAuditSink.from_config(app.config)

    # Tables back the database rate limiter and the single-use ledger only
    with app.app_context():
        try:
            db.create_all()
        except Exception as e:
            logging.getLogger(__name__).warning("Database init skipped (non-fatal): %s", e)

    from routes import public_bp, otp_bp, forms_bp

    app.register_blueprint(public_bp)
    app.register_blueprint(otp_bp, url_prefix=API_PREFIX)
    app.register_blueprint(forms_bp, url_prefix=API_PREFIX)

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = app.config.get("CORS_ALLOW_ORIGIN", "*")
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        response.headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
        return response

    @app.errorhandler(405)
    def handle_405_error(e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def handle_500_error(e):
        if request.path.startswith(API_PREFIX):
            return jsonify({"error": "An unexpected error occurred. Please try again."}), 500
        return e

    return app


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    create_app().run(host="0.0.0.0", port=port, debug=os.environ.get("FLASK_DEBUG", "false").lower() in ("true", "1"))
