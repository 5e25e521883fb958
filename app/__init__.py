"""
Lease Comp History
Flask Application Factory.

Usage:
    from app import create_app
    app = create_app()           # APP_ENV, else "development"
    app = create_app("testing")
"""

import logging
import os

from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate

from app.config import config
from app.middleware.jwt_auth import init_jwt_middleware
from app.middleware.logging_config import configure_logging
from app.middleware.rate_limiter import init_rate_limits
from app.middleware.timing import init_request_timing
from app.models import db
from app.models.history import HistoryGuards
from app.utils.errors import E, api_error

logger = logging.getLogger(__name__)

migrate = Migrate()
# Limits are attached per blueprint in init_rate_limits
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],
    storage_uri=os.getenv("REDIS_URL", "memory://"),
)


def _init_extensions(app):
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    origins = app.config.get("CORS_ORIGINS") or ""
    if origins == "*":
        CORS(app)
    elif origins:
        CORS(app, origins=[o.strip() for o in origins.split(",") if o.strip()])


def _register_blueprints(app):
    from app.blueprints.health_bp import health_bp
    from app.blueprints.history_bp import history_bp
    from app.blueprints.lease_comp_bp import lease_comp_bp

    for bp in (lease_comp_bp, history_bp, health_bp):
        app.register_blueprint(bp)


def _register_http_errors(app):
    @app.errorhandler(404)
    def not_found(e):
        return api_error(E.NOT_FOUND, "Not found", path=request.path)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return api_error(E.VALIDATION_INVALID, "Method not allowed", status=405)

    @app.errorhandler(429)
    def rate_limited(e):
        return api_error(E.VALIDATION_INVALID, "Too many requests", status=429, retry_after=e.description)

    @app.errorhandler(500)
    def server_error(e):
        logger.error("Unhandled error on %s %s", request.method, request.path, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: "development", "testing" or "production".
                     Defaults to the APP_ENV env var, then "development".
    """
    config_name = config_name or os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())
    app.config.setdefault("MAX_CONTENT_LENGTH", 2 * 1024 * 1024)

    configure_logging(app)

    # ── History guards (append-only events, SQLite FK enforcement) ──────
    guards = HistoryGuards()
    guards.ensure_initialized()
    app.extensions["lease_comp_history"] = guards

    _init_extensions(app)

    # Timing runs first so request_id exists before the caller is resolved
    init_request_timing(app)
    init_jwt_middleware(app)

    # Register tables on db.metadata
    from app.models import auth, history, lease_comp  # noqa: F401

    _register_blueprints(app)
    _register_http_errors(app)
    init_rate_limits(app, limiter)

    logger.debug("App created (%s)", config_name)
    return app
