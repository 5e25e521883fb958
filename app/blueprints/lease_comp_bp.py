"""
Lease Comp Blueprint.

Endpoints:
    GET    /api/v1/lease-comps                                  — list team comps
    POST   /api/v1/lease-comps                                  — create draft comp
    GET    /api/v1/lease-comps/team-members                     — assignable team members
    GET    /api/v1/lease-comps/<id>                             — detail + completeness
    PUT    /api/v1/lease-comps/<id>/details                     — edit lease details
    PUT    /api/v1/lease-comps/<id>/confidentiality             — access / export levels
    PUT    /api/v1/lease-comps/<id>/status                      — draft | active
    GET    /api/v1/lease-comps/<id>/options/<kind>              — list options
    POST   /api/v1/lease-comps/<id>/options/<kind>              — add option
    PUT    /api/v1/lease-comps/<id>/options/<kind>/<option_id>  — edit option
    DELETE /api/v1/lease-comps/<id>/options/<kind>/<option_id>  — remove option
    GET    /api/v1/lease-comps/<id>/tasks                       — list tasks
    POST   /api/v1/lease-comps/<id>/tasks                       — create task
    POST   /api/v1/lease-comps/<id>/tasks/<task_id>/complete    — complete task
    GET    /api/v1/lease-comps/<id>/reminders                   — list reminders
    POST   /api/v1/lease-comps/<id>/reminders                   — create reminder
    POST   /api/v1/lease-comps/<id>/reminders/<rid>/complete    — complete reminder
    GET    /api/v1/lease-comps/<id>/files                       — list file metadata
    POST   /api/v1/lease-comps/<id>/files                       — record uploaded file
    DELETE /api/v1/lease-comps/<id>/files/<file_id>             — remove file metadata

Layer contract:
    - No ORM calls here — all DB work delegated to the services.
    - No db.session.commit() here.
    - user_id / team_id come from the access token, never from the body.
"""

import logging

from flask import Blueprint, jsonify

from app.blueprints import json_body, register_error_handlers, require_caller
from app.services import (
    file_service,
    lease_comp_service,
    option_service,
    permission,
    reminder_service,
    task_service,
)

logger = logging.getLogger(__name__)

lease_comp_bp = Blueprint("lease_comps", __name__, url_prefix="/api/v1/lease-comps")
register_error_handlers(lease_comp_bp)


def _mutation_response(result, status=200):
    return jsonify(result.to_dict()), status


# ── Lease comps ───────────────────────────────────────────────────────────────


@lease_comp_bp.route("", methods=["GET"])
def list_comps():
    _user_id, team_id, err = require_caller()
    if err:
        return err
    items = lease_comp_service.list_lease_comps(team_id)
    return jsonify({"items": items, "total": len(items)}), 200


@lease_comp_bp.route("", methods=["POST"])
def create_comp():
    """Create a draft comp.

    Body: { address (required), tenant_name_raw?, city?, state? }
    """
    user_id, team_id, err = require_caller()
    if err:
        return err
    result = lease_comp_service.create_lease_comp(json_body(), team_id=team_id, user_id=user_id)
    return _mutation_response(result, 201)


@lease_comp_bp.route("/team-members", methods=["GET"])
def list_team_members():
    """Caller's team members, for task and reminder assignment."""
    _user_id, team_id, err = require_caller()
    if err:
        return err
    items = permission.list_team_members(team_id)
    return jsonify({"items": items, "total": len(items)}), 200


@lease_comp_bp.route("/<comp_id>", methods=["GET"])
def get_comp(comp_id):
    _user_id, team_id, err = require_caller()
    if err:
        return err
    return jsonify(lease_comp_service.get_lease_comp_detail(comp_id, team_id=team_id)), 200


@lease_comp_bp.route("/<comp_id>/details", methods=["PUT"])
def update_details(comp_id):
    user_id, team_id, err = require_caller()
    if err:
        return err
    result = lease_comp_service.update_lease_details(
        comp_id, json_body(), team_id=team_id, user_id=user_id,
    )
    return _mutation_response(result)


@lease_comp_bp.route("/<comp_id>/confidentiality", methods=["PUT"])
def update_confidentiality(comp_id):
    user_id, team_id, err = require_caller()
    if err:
        return err
    result = lease_comp_service.update_confidentiality(
        comp_id, json_body(), team_id=team_id, user_id=user_id,
    )
    return _mutation_response(result)


@lease_comp_bp.route("/<comp_id>/status", methods=["PUT"])
def set_status(comp_id):
    user_id, team_id, err = require_caller()
    if err:
        return err
    result = lease_comp_service.set_comp_status(
        comp_id, json_body(), team_id=team_id, user_id=user_id,
    )
    return _mutation_response(result)


# ── Options ───────────────────────────────────────────────────────────────────


@lease_comp_bp.route("/<comp_id>/options/<kind>", methods=["GET"])
def list_options(comp_id, kind):
    _user_id, team_id, err = require_caller()
    if err:
        return err
    items = option_service.list_options(comp_id, kind, team_id=team_id)
    return jsonify({"items": items, "total": len(items)}), 200


@lease_comp_bp.route("/<comp_id>/options/<kind>", methods=["POST"])
def add_option(comp_id, kind):
    user_id, team_id, err = require_caller()
    if err:
        return err
    result = option_service.add_option(comp_id, kind, json_body(), team_id=team_id, user_id=user_id)
    return _mutation_response(result, 201)


@lease_comp_bp.route("/<comp_id>/options/<kind>/<option_id>", methods=["PUT"])
def edit_option(comp_id, kind, option_id):
    user_id, team_id, err = require_caller()
    if err:
        return err
    result = option_service.edit_option(
        comp_id, kind, option_id, json_body(), team_id=team_id, user_id=user_id,
    )
    return _mutation_response(result)


@lease_comp_bp.route("/<comp_id>/options/<kind>/<option_id>", methods=["DELETE"])
def remove_option(comp_id, kind, option_id):
    user_id, team_id, err = require_caller()
    if err:
        return err
    result = option_service.remove_option(comp_id, kind, option_id, team_id=team_id, user_id=user_id)
    return _mutation_response(result)


# ── Tasks ─────────────────────────────────────────────────────────────────────


@lease_comp_bp.route("/<comp_id>/tasks", methods=["GET"])
def list_tasks(comp_id):
    _user_id, team_id, err = require_caller()
    if err:
        return err
    items = task_service.list_tasks(comp_id, team_id=team_id)
    return jsonify({"items": items, "total": len(items)}), 200


@lease_comp_bp.route("/<comp_id>/tasks", methods=["POST"])
def create_task(comp_id):
    user_id, team_id, err = require_caller()
    if err:
        return err
    result = task_service.create_task(comp_id, json_body(), team_id=team_id, user_id=user_id)
    return _mutation_response(result, 201)


@lease_comp_bp.route("/<comp_id>/tasks/<task_id>/complete", methods=["POST"])
def complete_task(comp_id, task_id):
    user_id, team_id, err = require_caller()
    if err:
        return err
    result = task_service.complete_task(comp_id, task_id, team_id=team_id, user_id=user_id)
    return _mutation_response(result)


# ── Reminders ─────────────────────────────────────────────────────────────────


@lease_comp_bp.route("/<comp_id>/reminders", methods=["GET"])
def list_reminders(comp_id):
    _user_id, team_id, err = require_caller()
    if err:
        return err
    items = reminder_service.list_reminders(comp_id, team_id=team_id)
    return jsonify({"items": items, "total": len(items)}), 200


@lease_comp_bp.route("/<comp_id>/reminders", methods=["POST"])
def create_reminder(comp_id):
    user_id, team_id, err = require_caller()
    if err:
        return err
    result = reminder_service.create_reminder(comp_id, json_body(), team_id=team_id, user_id=user_id)
    return _mutation_response(result, 201)


@lease_comp_bp.route("/<comp_id>/reminders/<reminder_id>/complete", methods=["POST"])
def complete_reminder(comp_id, reminder_id):
    user_id, team_id, err = require_caller()
    if err:
        return err
    result = reminder_service.complete_reminder(comp_id, reminder_id, team_id=team_id, user_id=user_id)
    return _mutation_response(result)


# ── Files ─────────────────────────────────────────────────────────────────────


@lease_comp_bp.route("/<comp_id>/files", methods=["GET"])
def list_files(comp_id):
    _user_id, team_id, err = require_caller()
    if err:
        return err
    items = file_service.list_files(comp_id, team_id=team_id)
    return jsonify({"items": items, "total": len(items)}), 200


@lease_comp_bp.route("/<comp_id>/files", methods=["POST"])
def add_file(comp_id):
    """Record metadata for a file already uploaded to object storage.

    Body: { original_filename, storage_path, mime_type?, size_bytes? }
    """
    user_id, team_id, err = require_caller()
    if err:
        return err
    result = file_service.add_file(comp_id, json_body(), team_id=team_id, user_id=user_id)
    return _mutation_response(result, 201)


@lease_comp_bp.route("/<comp_id>/files/<file_id>", methods=["DELETE"])
def remove_file(comp_id, file_id):
    user_id, team_id, err = require_caller()
    if err:
        return err
    result = file_service.remove_file(comp_id, file_id, team_id=team_id, user_id=user_id)
    return _mutation_response(result)
