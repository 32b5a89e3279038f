"""
WSGI entry point (gunicorn / cPanel Passenger): gunicorn -c gunicorn_config.py passenger_wsgi:application
"""
import sys
import os

# Add project directory to path so 'app' can be imported
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app import create_app

application = create_app()
app = application
