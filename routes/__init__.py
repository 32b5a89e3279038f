"""
Routes package for the lead form OTP service
"""
# Export blueprints for registration in app.py
from routes.public import public_bp
from routes.otp import otp_bp
from routes.forms import forms_bp

__all__ = [
    'public_bp',
    'otp_bp',
    'forms_bp',
]
