"""
Access tokens and the session rows that back them.

Tokens are HS256 JWTs signed with ``JWT_SECRET_KEY`` (``SECRET_KEY`` when
unset) and carry ``sub`` (user id), ``email``, ``type="access"``, ``iat``,
``exp`` and a random ``jti``. Lifetime is ``JWT_ACCESS_EXPIRES`` seconds.

A valid signature is not enough: the token must also match an active row in
``sessions``. Only the SHA-256 of the token is stored, and sign-out flips
``is_active`` so the token dies before ``exp``.
"""

import hashlib
import secrets
import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from projecthub.models import db
from projecthub.models.auth import Session

ALGORITHM = "HS256"
TOKEN_TYPE = "access"


def _signing_key() -> str:
    cfg = current_app.config
    return cfg.get("JWT_SECRET_KEY") or cfg["SECRET_KEY"]


def generate_access_token(user_id: str, email: str, expires_in: int | None = None) -> tuple[str, datetime]:
    """Sign a token for ``user_id``; returns ``(token, expires_at)``.

    A negative ``expires_in`` yields an already expired token.
    """
    if expires_in is None:
        expires_in = current_app.config.get("JWT_ACCESS_EXPIRES", 3600)
    issued_at = datetime.now(timezone.utc)
    expires_at = issued_at + timedelta(seconds=expires_in)
    claims = {
        "sub": user_id,
        "email": email,
        "type": TOKEN_TYPE,
        "iat": issued_at,
        "exp": expires_at,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, _signing_key(), algorithm=ALGORITHM), expires_at


def decode_access_token(token: str) -> dict:
    """Verified claims of ``token``.

    Raises jwt.ExpiredSignatureError or jwt.InvalidTokenError.
    """
    claims = jwt.decode(token, _signing_key(), algorithms=[ALGORITHM])
    if claims.get("type") != TOKEN_TYPE:
        raise jwt.InvalidTokenError("not an access token")
    return claims


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_reset_token() -> str:
    return secrets.token_hex(32)


def create_session(user_id: str, token: str, expires_at: datetime) -> Session:
    row = Session(user_id=user_id, token_hash=hash_token(token), expires_at=expires_at)
    db.session.add(row)
    db.session.commit()
    return row


def get_active_session(token: str) -> Session | None:
    return Session.query.filter_by(token_hash=hash_token(token), is_active=True).first()


def revoke_session_by_token(token: str) -> bool:
    """Deactivate the session for ``token``; False when there was none."""
    row = get_active_session(token)
    if row is None:
        return False
    row.is_active = False
    db.session.commit()
    return True
