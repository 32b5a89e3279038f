"""
Gunicorn config: bind to 0.0.0.0 and PORT for Railway/Render.
A single worker keeps the in-memory OTP rate limiter exact; scale out with
OTP_RATE_LIMIT_BACKEND=database.
"""
import os

bind = "0.0.0.0:{}".format(os.environ.get("PORT", "8080"))
workers = int(os.environ.get("WEB_CONCURRENCY", "1"))
threads = 2
timeout = 30
