"""
OTP routes: issue a verification code, verify it.
"""
from flask import Blueprint, current_app, jsonify

from routes.common import GENERIC_ERROR, json_payload
from utils.errors import LeadGateError
from utils.otp_issuer import OtpIssuer
from utils.otp_verifier import DatabaseRedemptionLedger, OtpVerifier

otp_bp = Blueprint('otp', __name__)

OTP_SUCCESS_MSG = "OTP sent to your email"
OTP_VERIFY_SUCCESS_MSG = "OTP verified successfully"


def _issuer():
    config = current_app.config
    return OtpIssuer(
        rate_limiter=current_app.extensions["otp_rate_limiter"],
        mailer=current_app.extensions["otp_mailer"],
        secret=config["OTP_SECRET"],
        expiry_seconds=config["OTP_EXPIRY_SECONDS"],
    )


def _verifier():
    ledger = DatabaseRedemptionLedger() if current_app.config.get("OTP_ENFORCE_SINGLE_USE") else None
    return OtpVerifier(secret=current_app.config["OTP_SECRET"], ledger=ledger)


@otp_bp.route('/send-otp', methods=['POST'])
def api_send_otp():
    """
    Send a 6-digit code to the given email.
    Input: {email}. The returned token must be sent back with the code.
    """
    try:
        data = json_payload()
        issued = _issuer().issue(data.get("email"))
    except LeadGateError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        current_app.logger.error(f"Error in send-otp: {str(e)}", exc_info=True)
        return jsonify({"error": GENERIC_ERROR}), 500

    return jsonify({
        "success": True,
        "message": OTP_SUCCESS_MSG,
        "token": issued.token,
        "expiresIn": issued.expires_in,
    })


@otp_bp.route('/verify-otp', methods=['POST'])
def api_verify_otp():
    """Verify a code against its token. Input: {email, otp, token}."""
    try:
        data = json_payload()
        _verifier().verify(data.get("email"), data.get("otp"), data.get("token"))
    except LeadGateError as e:
        if e.status_code < 500:
            current_app.logger.info(f"OTP verification rejected: {e.message}")
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        current_app.logger.error(f"Error in verify-otp: {str(e)}", exc_info=True)
        return jsonify({"error": GENERIC_ERROR}), 500

    return jsonify({
        "success": True,
        "valid": True,
        "message": OTP_VERIFY_SUCCESS_MSG,
    })
