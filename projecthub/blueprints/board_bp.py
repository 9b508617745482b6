"""
Board Blueprint: the signed-in user's project board.

Each request builds a ProjectBoard over the service layer, opens it for the
caller and returns the rendered slice.

Endpoints:
  GET   /board?q=&limit=   - ordered, filtered, paginated projects with stats
  POST  /board/reorder     - { "moved_id": str, "target_id": str }

A reorder whose persistence fails still returns 200 with the new order and
a "warning"; the order shown to the user is not rolled back.
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from projecthub.blueprints import current_session, json_body
from projecthub.board import ProjectBoard, ServiceProjectStore
from projecthub.board.records import project_ids
from projecthub.core.exceptions import SessionExpiredError
from projecthub.utils.errors import E, api_error

logger = logging.getLogger(__name__)

board_bp = Blueprint("board", __name__, url_prefix="/api/v1/board")


async def _open_board():
    provider, session = await current_session()
    cfg = current_app.config
    board = ProjectBoard(
        ServiceProjectStore(),
        auth=provider,
        page_size=cfg.get("BOARD_PAGE_SIZE", 12),
        debounce_seconds=cfg.get("BOARD_SEARCH_DEBOUNCE_SECONDS", 0.3),
        slow_build_ms=cfg.get("BOARD_SLOW_BUILD_MS", 100.0),
    )
    await board.open(session.user.id)
    if board.user_id is None:
        board.close()
        raise SessionExpiredError()
    return board


@board_bp.route("", methods=["GET"])
async def get_board():
    """Query params: q (search text), limit (minimum visible rows)."""
    limit = request.args.get("limit", type=int)
    board = await _open_board()
    try:
        query = request.args.get("q", "")
        if query:
            board.set_search(query)
            board.apply_search_now()
        if limit:
            while board.visible_count < limit and board.has_more:
                board.load_more()
        return jsonify(board.to_dict()), 200
    finally:
        board.close()


@board_bp.route("/reorder", methods=["POST"])
async def reorder():
    data = json_body()
    moved_id = data.get("moved_id")
    target_id = data.get("target_id")
    if not moved_id or not target_id:
        return api_error(E.VALIDATION_REQUIRED, "moved_id and target_id are required")

    board = await _open_board()
    try:
        order = await board.move(moved_id, target_id)
        if board.user_id is None:
            raise SessionExpiredError()
        body = {"project_ids": project_ids(order)}
        if board.notifications:
            body["warning"] = board.notifications[-1]
        return jsonify(body), 200
    finally:
        board.close()
