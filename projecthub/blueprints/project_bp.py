"""
Project Blueprint: project CRUD and child records.

All business logic is delegated to project_service (3-layer architecture).

Endpoints:
  Projects:       GET/POST        /projects
                  GET/PUT/DELETE  /projects/<id>
  Child records:  GET/POST        /projects/<id>/<kind>
                  (kind: notes, problem_overviews, progress_statuses,
                   user_stories, user_journeys, designs)
"""

import logging

from flask import Blueprint, g, jsonify

from projecthub.blueprints import json_body
from projecthub.services import project_service
from projecthub.utils.errors import E, api_error

logger = logging.getLogger(__name__)

project_bp = Blueprint("projects", __name__, url_prefix="/api/v1/projects")


@project_bp.route("", methods=["GET"])
def list_projects():
    """List every project, newest first.

    Returns: { "items": [...], "total": int }
    """
    items = [p.to_dict() for p in project_service.list_projects()]
    return jsonify({"items": items, "total": len(items)}), 200


@project_bp.route("", methods=["POST"])
def create_project():
    """Create a project.

    Body: { "name": str, "overview"?: str }
    """
    data = json_body()
    if not str(data.get("name") or "").strip():
        return api_error(E.VALIDATION_REQUIRED, "name is required")
    project = project_service.create_project(
        name=data["name"],
        overview=data.get("overview"),
        created_by=getattr(g, "user_id", None),
    )
    return jsonify(project.to_dict()), 201


@project_bp.route("/<project_id>", methods=["GET"])
def get_project(project_id):
    return jsonify(project_service.get_project(project_id).to_dict()), 200


@project_bp.route("/<project_id>", methods=["PUT"])
def update_project(project_id):
    """Update name and/or overview."""
    project = project_service.update_project(project_id=project_id, data=json_body())
    return jsonify(project.to_dict()), 200


@project_bp.route("/<project_id>", methods=["DELETE"])
def delete_project(project_id):
    project_service.delete_project(project_id)
    return jsonify({"deleted": True, "id": project_id}), 200


@project_bp.route("/<project_id>/<kind>", methods=["GET"])
def list_child_records(project_id, kind):
    """Child records of one kind for one project."""
    items = [r.to_dict() for r in project_service.list_project_child_records(kind, project_id)]
    return jsonify({"items": items, "total": len(items)}), 200


@project_bp.route("/<project_id>/<kind>", methods=["POST"])
def add_child_record(project_id, kind):
    if kind not in project_service.CHILD_MODELS:
        return api_error(E.NOT_FOUND, f"Unknown record kind: {kind}")
    record = project_service.add_child_record(kind, project_id, json_body())
    return jsonify(record.to_dict()), 201
