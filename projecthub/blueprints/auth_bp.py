"""
Auth Blueprint: sign-in, sign-up and session endpoints.

Works against whichever provider AUTH_BACKEND selects (hosted users table +
JWT, or the local credential store).

  POST /api/v1/auth/login            - email + password → session (+ token)
  POST /api/v1/auth/signup           - create an account
  POST /api/v1/auth/logout           - end the current session
  GET  /api/v1/auth/session          - current session or null
  POST /api/v1/auth/password/reset   - request a reset email
  POST /api/v1/auth/password         - set a new password (signed in)
"""

import logging

from flask import Blueprint, jsonify

from projecthub.blueprints import auth_provider, current_session, json_body
from projecthub.utils.errors import E, api_error

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


def _credentials():
    data = json_body()
    return str(data.get("email") or "").strip(), str(data.get("password") or "")


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/login
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/login", methods=["POST"])
async def login():
    """Body: { "email": "...", "password": "..." }"""
    email, password = _credentials()
    if not email or not password:
        return api_error(E.VALIDATION_REQUIRED, "Email and password are required")

    session = await auth_provider().sign_in(email, password)
    logger.info("User signed in", extra={"user_id": session.user.id})
    return jsonify(session.to_dict()), 200


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/signup
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/signup", methods=["POST"])
async def signup():
    """Body: { "email": "...", "password": "..." }"""
    email, password = _credentials()
    if not email or not password:
        return api_error(E.VALIDATION_REQUIRED, "Email and password are required")

    user = await auth_provider().sign_up(email, password)
    return jsonify({"user": user.to_dict()}), 201


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/logout
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/logout", methods=["POST"])
async def logout():
    await auth_provider().sign_out()
    return jsonify({"message": "Logged out"}), 200


# ═══════════════════════════════════════════════════════════════
# GET /api/v1/auth/session
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/session", methods=["GET"])
async def get_session():
    session = await auth_provider().get_current_session()
    return jsonify({"session": session.to_dict() if session else None}), 200


# ═══════════════════════════════════════════════════════════════
# Passwords
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/password/reset", methods=["POST"])
async def request_password_reset():
    """Always 200 so the endpoint does not reveal which emails exist."""
    email = str(json_body().get("email") or "").strip()
    if not email:
        return api_error(E.VALIDATION_REQUIRED, "Email is required")
    await auth_provider().send_password_reset_email(email)
    return jsonify({"message": "If the account exists, a reset email has been sent"}), 200


@auth_bp.route("/password", methods=["POST"])
async def update_password():
    """Body: { "password": "..." }"""
    password = str(json_body().get("password") or "")
    if not password:
        return api_error(E.VALIDATION_REQUIRED, "password is required")
    provider, _ = await current_session()
    await provider.update_user_password(password)
    return jsonify({"message": "Password updated"}), 200
