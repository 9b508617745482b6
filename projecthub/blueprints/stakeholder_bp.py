"""
Stakeholder Blueprint.

Routes for stakeholder records, project links and the per-project counts the
project board shows. All business logic is delegated to stakeholder_service
(3-layer architecture).

Endpoints:
  Stakeholders:   GET/POST     /stakeholders
  Links:          GET          /projects/<id>/stakeholders
                  POST/DELETE  /projects/<id>/stakeholders/<stakeholder_id>
  Counts:         GET          /projects/<id>/stakeholders/count
                  POST         /projects/stakeholders/counts   (batch)
"""

import logging

from flask import Blueprint, jsonify

from projecthub.blueprints import id_list, json_body
from projecthub.services import stakeholder_service

logger = logging.getLogger(__name__)

stakeholder_bp = Blueprint("stakeholders", __name__, url_prefix="/api/v1")


# ═════════════════════════════════════════════════════════════════════════════
# Stakeholder records
# ═════════════════════════════════════════════════════════════════════════════


@stakeholder_bp.route("/stakeholders", methods=["GET"])
def list_stakeholders():
    """Returns: { "items": [...], "total": int }"""
    items = stakeholder_service.list_stakeholders()
    return jsonify({"items": items, "total": len(items)}), 200


@stakeholder_bp.route("/stakeholders", methods=["POST"])
def create_stakeholder():
    """Body: { "name": str, "role"?: str, "email"?: str }"""
    return jsonify(stakeholder_service.create_stakeholder(json_body())), 201


# ═════════════════════════════════════════════════════════════════════════════
# Project links
# ═════════════════════════════════════════════════════════════════════════════


@stakeholder_bp.route("/projects/<project_id>/stakeholders", methods=["GET"])
def list_project_stakeholders(project_id):
    ids = stakeholder_service.get_project_stakeholder_ids(project_id)
    return jsonify({"project_id": project_id, "stakeholder_ids": ids}), 200


@stakeholder_bp.route("/projects/<project_id>/stakeholders/<int:stakeholder_id>", methods=["POST"])
def link_stakeholder(project_id, stakeholder_id):
    return jsonify(stakeholder_service.link_stakeholder(project_id, stakeholder_id)), 201


@stakeholder_bp.route("/projects/<project_id>/stakeholders/<int:stakeholder_id>", methods=["DELETE"])
def unlink_stakeholder(project_id, stakeholder_id):
    removed = stakeholder_service.unlink_stakeholder(project_id, stakeholder_id)
    return jsonify({"removed": removed}), 200


# ═════════════════════════════════════════════════════════════════════════════
# Counts
# ═════════════════════════════════════════════════════════════════════════════


@stakeholder_bp.route("/projects/<project_id>/stakeholders/count", methods=["GET"])
def stakeholder_count(project_id):
    count = stakeholder_service.get_stakeholder_count(project_id)
    return jsonify({"project_id": project_id, "count": count}), 200


@stakeholder_bp.route("/projects/stakeholders/counts", methods=["POST"])
def stakeholder_counts_batch():
    """Body: { "project_ids": [str, ...] }  →  { "counts": {id: int} }"""
    ids = id_list(json_body())
    return jsonify({"counts": stakeholder_service.get_stakeholder_counts_batch(ids)}), 200
