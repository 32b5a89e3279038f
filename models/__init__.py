"""
Models package for the lead form OTP service
"""
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# Import all models here to ensure they're registered
from models.otp import OTPRateLimit, RedeemedOTPToken

__all__ = [
    'db',
    'OTPRateLimit',
    'RedeemedOTPToken',
]
