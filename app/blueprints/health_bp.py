"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready  — 200 whenever the process serves requests
    GET /api/v1/health/live   — database round trip + history guard status

No auth; the JWT middleware skips /api/v1/health.
"""

import logging
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from app.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")


def _check_database() -> dict:
    started = time.perf_counter()
    try:
        db.session.execute(db.text("SELECT 1"))
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Health check: database unreachable: %s", exc)
        return {"status": "error", "detail": str(exc)}
    return {"status": "ok", "latency_ms": round((time.perf_counter() - started) * 1000, 1)}


def _check_history_guards() -> dict:
    guards = current_app.extensions.get("lease_comp_history")
    if guards is None or not guards.initialized:
        return {"status": "missing"}
    return {"status": "ok"}


@health_bp.route("/ready", methods=["GET"])
def ready():
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    checks = {
        "database": _check_database(),
        "history_guards": _check_history_guards(),
    }
    healthy = all(c["status"] == "ok" for c in checks.values())
    return jsonify({
        "status": "healthy" if healthy else "degraded",
        "checks": checks,
        "testing": current_app.testing,
    }), 200 if healthy else 503
