"""
Lease Comp History Blueprint — read-only audit trail.

Endpoints:
    GET /api/v1/lease-comps/<id>/events              — most recent first
        ?include_diffs=false                         — events without diff rows
    GET /api/v1/lease-comps/<id>/events/<event_id>   — one event with its diffs

There is no write endpoint; events are appended by the lease comp services.
"""

import logging

from flask import Blueprint, jsonify, request

from app.blueprints import register_error_handlers, require_caller
from app.services import history_service

logger = logging.getLogger(__name__)

history_bp = Blueprint("lease_comp_history", __name__, url_prefix="/api/v1/lease-comps")
register_error_handlers(history_bp)


@history_bp.route("/<comp_id>/events", methods=["GET"])
def list_events(comp_id):
    _user_id, team_id, err = require_caller()
    if err:
        return err
    include_diffs = request.args.get("include_diffs", "true").lower() not in ("false", "0", "no")
    items = history_service.list_lease_comp_events(comp_id, team_id=team_id, include_diffs=include_diffs)
    return jsonify({"items": items, "total": len(items)}), 200


@history_bp.route("/<comp_id>/events/<int:event_id>", methods=["GET"])
def get_event(comp_id, event_id):
    _user_id, team_id, err = require_caller()
    if err:
        return err
    return jsonify(history_service.get_lease_comp_event(event_id, team_id=team_id, lease_comp_id=comp_id)), 200
