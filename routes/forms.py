"""
Lead form submission route.
Email verification is enforced by the form itself; this endpoint does not
re-check it.
"""
from flask import Blueprint, current_app, jsonify

from routes.common import GENERIC_ERROR, json_payload
from utils.errors import LeadGateError
from utils.form_submitter import FormSubmitter

forms_bp = Blueprint('forms', __name__)

FORM_SUCCESS_MSG = "Form submitted successfully"


@forms_bp.route('/submit-form', methods=['POST'])
def api_submit_form():
    """Validate the lead form and forward it to HubSpot and the audit webhook."""
    try:
        submitter = FormSubmitter(
            crm=current_app.extensions["lead_crm"],
            audit_sink=current_app.extensions["lead_audit_sink"],
        )
        ack = submitter.submit(json_payload())
    except LeadGateError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        current_app.logger.error(f"Error in submit-form: {str(e)}", exc_info=True)
        return jsonify({"error": GENERIC_ERROR}), 500

    return jsonify({
        "success": True,
        "message": FORM_SUCCESS_MSG,
        "data": ack.to_dict(),
    })
