"""
Order Preference Blueprint: the signed-in user's saved project order.

Endpoints:
  GET     /preferences/order                 - saved order (may be empty)
  PUT     /preferences/order                 - replace the whole order
  POST    /preferences/order/initialize      - seed once; no-op if present
  DELETE  /preferences/order/<project_id>    - drop one entry

Every write carries the complete order, so concurrent writers resolve by
last write wins.
"""

import logging

from flask import Blueprint, jsonify

from projecthub.blueprints import current_session, id_list, json_body
from projecthub.services import preference_service

logger = logging.getLogger(__name__)

preference_bp = Blueprint("preferences", __name__, url_prefix="/api/v1/preferences")


@preference_bp.route("/order", methods=["GET"])
async def get_order():
    _, session = await current_session()
    ids = preference_service.get_user_order_preference(session.user.id)
    return jsonify({"project_ids": ids}), 200


@preference_bp.route("/order", methods=["PUT"])
async def put_order():
    """Body: { "project_ids": [str, ...] }"""
    _, session = await current_session()
    stored = preference_service.persist_order(session.user.id, id_list(json_body()))
    return jsonify({"project_ids": stored}), 200


@preference_bp.route("/order/initialize", methods=["POST"])
async def initialize_order():
    """Body: { "project_ids": [str, ...] }"""
    _, session = await current_session()
    written = preference_service.initialize_order_preference(session.user.id, id_list(json_body()))
    return jsonify({"initialized": written > 0, "count": written}), 200


@preference_bp.route("/order/<project_id>", methods=["DELETE"])
async def remove_entry(project_id):
    _, session = await current_session()
    removed = preference_service.remove_order_entry(session.user.id, project_id)
    return jsonify({"removed": removed}), 200
