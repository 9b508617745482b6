"""
Auth context middleware: parses the Bearer token, sets g.access_token / g.user_id.

Never rejects a request on its own: views that need a signed-in user call
``projecthub.blueprints.current_session()``, which validates the session
against the configured auth backend. ``g.user_id`` here is only a hint for
logging (see middleware/timing.py).
"""

import jwt as pyjwt
from flask import current_app, g, request

from projecthub.services.jwt_service import decode_access_token

# Paths that skip token parsing entirely
SKIP_PREFIXES = (
    "/api/v1/auth/login",
    "/api/v1/auth/signup",
    "/api/v1/health",
)


def init_auth_context(app):
    """Register the token parser as a before_request hook."""

    @app.before_request
    def _auth_context():
        g.access_token = None
        g.user_id = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        g.access_token = auth_header[7:]
        if current_app.config.get("AUTH_BACKEND", "hosted") != "hosted":
            return
        try:
            g.user_id = decode_access_token(g.access_token).get("sub")
        except pyjwt.InvalidTokenError:
            # Expired or malformed; current_session() reports it
            pass
