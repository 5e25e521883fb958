"""
WSGI entry point for the lease comp history service.

    FLASK_APP=wsgi.py flask db upgrade     # apply migrations/
    FLASK_APP=wsgi.py flask run            # development server

APP_ENV selects the config (development | testing | production).
"""

import os

from app import create_app

app = create_app(os.getenv("APP_ENV", "development"))
