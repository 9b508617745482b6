"""
ProjectHub application factory.

    from projecthub import create_app
    app = create_app("testing")

Without an argument the environment comes from ``APP_ENV`` (default
``development``). The factory wires the database, migrations, rate limiting,
CORS, request timing, auth context and the JSON error handlers, then mounts
the API blueprints under ``/api/v1``.
"""

import logging
import os

from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from projecthub.config import config
from projecthub.middleware.auth_context import init_auth_context
from projecthub.middleware.logging_config import configure_logging
from projecthub.middleware.rate_limiter import init_rate_limits
from projecthub.middleware.timing import init_request_timing
from projecthub.models import db
from projecthub.utils.errors import E, api_error, register_error_handlers

logger = logging.getLogger(__name__)

migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],
    storage_uri=os.getenv("REDIS_URL", "memory://"),
)


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _sqlite_foreign_keys(dbapi_conn, connection_record):
    # project deletes rely on ON DELETE CASCADE for child records and links
    if "sqlite" not in type(dbapi_conn).__module__:
        return
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_app(config_name=None):
    """Build a configured ProjectHub app.

    Args:
        config_name: "development", "testing" or "production".

    Returns:
        Flask application.
    """
    config_name = config_name or os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    # instantiated: ProductionConfig validates DATABASE_URL in __init__
    app.config.from_object(config[config_name]())

    configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    _init_cors(app)

    init_request_timing(app)
    init_auth_context(app)
    register_error_handlers(app)

    _create_tables(app)
    _register_blueprints(app)
    _register_http_errors(app)

    # per-blueprint limits need the blueprints in place
    init_rate_limits(app, limiter)

    logger.debug("ProjectHub app created (env=%s)", config_name)
    return app


def _init_cors(app):
    origins = app.config.get("CORS_ORIGINS", "*")
    if not origins or origins == "*":
        CORS(app)
        return
    CORS(app, origins=[o.strip() for o in origins.split(",") if o.strip()])


def _create_tables(app):
    """CREATE IF NOT EXISTS for every model; Alembic owns real upgrades."""
    from projecthub.models import auth, preference, project, research, stakeholder  # noqa: F401

    with app.app_context():
        try:
            db.create_all()
        except Exception as exc:
            logger.warning("Could not create tables: %s", exc)
        else:
            logger.debug("Tables ready: %s", ", ".join(sorted(db.metadata.tables)))


def _register_blueprints(app):
    from projecthub.blueprints.auth_bp import auth_bp
    from projecthub.blueprints.board_bp import board_bp
    from projecthub.blueprints.health_bp import health_bp
    from projecthub.blueprints.preference_bp import preference_bp
    from projecthub.blueprints.project_bp import project_bp
    from projecthub.blueprints.stakeholder_bp import stakeholder_bp

    for bp in (auth_bp, board_bp, health_bp, preference_bp, project_bp, stakeholder_bp):
        app.register_blueprint(bp)
    logger.debug("Registered %d blueprints", len(app.blueprints))


def _register_http_errors(app):
    """JSON bodies for errors raised by Flask itself (routing, limits, crashes)."""

    @app.errorhandler(404)
    def not_found(e):
        return api_error(E.NOT_FOUND, f"No route for {request.path}")

    @app.errorhandler(405)
    def method_not_allowed(e):
        return api_error(E.VALIDATION_INVALID, f"{request.method} not allowed here", status=405)

    @app.errorhandler(429)
    def rate_limited(e):
        return api_error(E.RATE_LIMITED, "Too many requests", details={"limit": str(e.description)})

    @app.errorhandler(500)
    def server_error(e):
        logger.error("Unhandled error on %s: %s", request.path, e, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")
