"""
Health endpoints.

    GET /api/v1/health       - 200 while the process is up (load balancer)
    GET /api/v1/health/live  - database round trip plus the configured backends;
                               503 when the database does not answer
"""

import logging
import time

from flask import Blueprint, current_app, jsonify

from projecthub.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")


def _check_database() -> dict:
    started = time.perf_counter()
    try:
        db.session.execute(db.text("SELECT 1"))
    except Exception as exc:
        db.session.rollback()
        logger.error("Database health check failed: %s", exc)
        return {"status": "error", "detail": str(exc)}
    return {"status": "ok", "latency_ms": round((time.perf_counter() - started) * 1000, 1)}


@health_bp.route("", methods=["GET"])
def ready():
    return jsonify({"status": "ok", "app": "ProjectHub"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    cfg = current_app.config
    database = _check_database()
    healthy = database["status"] == "ok"
    body = {
        "status": "healthy" if healthy else "degraded",
        "checks": {
            "database": database,
            "app": {
                "auth_backend": cfg.get("AUTH_BACKEND", "hosted"),
                "rate_limit_storage": cfg.get("REDIS_URL", "memory://").split(":", 1)[0],
                "board_page_size": cfg.get("BOARD_PAGE_SIZE"),
                "testing": current_app.testing,
            },
        },
    }
    return jsonify(body), 200 if healthy else 503
