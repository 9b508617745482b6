"""
Auth Service: session providers consumed by the API and the project board.

Two interchangeable providers share one async contract:

    get_current_session()         -> AuthSession | None
    on_session_change(callback)   -> unsubscribe callable
    sign_in(email, password)      -> AuthSession
    sign_up(email, password)      -> AuthUser
    sign_out()
    send_password_reset_email(email)
    update_user_password(new_password)

HostedAuthProvider   users table + JWT access tokens + session rows
LocalAuthProvider    injected CredentialStore, for running without a
                     configured backend (seeded with default users on
                     first use)

Rejected credentials raise AuthError. An expired or revoked token raises
SessionExpiredError, which callers turn into a sign-out.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt
from email_validator import EmailNotValidError, validate_email
from flask import current_app

from projecthub.core.exceptions import AuthError, SessionExpiredError
from projecthub.models import db
from projecthub.models.auth import User
from projecthub.services import jwt_service, workspace_service
from projecthub.services.credential_store import CredentialStore, JsonFileCredentialStore
from projecthub.utils.crypto import hash_password, verify_password

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
RESET_TOKEN_EXPIRES = timedelta(hours=1)

ALREADY_REGISTERED_MESSAGE = (
    "An account with this email already exists. If you were invited to join a "
    "workspace, please sign in instead. If you forgot your password, use the "
    "password reset option."
)

# Local store keys
LOCAL_USERS_KEY = "users"
LOCAL_CURRENT_USER_KEY = "current_user"
LOCAL_WORKSPACE_USERS_KEY = "workspace_users"


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str
    created_at: str | None = None

    def to_dict(self) -> dict:
        return {"id": self.id, "email": self.email, "created_at": self.created_at}


@dataclass(frozen=True)
class AuthSession:
    user: AuthUser
    access_token: str | None = None
    expires_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "user": self.user.to_dict(),
            "access_token": self.access_token,
            "token_type": "Bearer" if self.access_token else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }


def _normalize_email(email: str) -> str:
    try:
        return validate_email(email or "", check_deliverability=False).normalized.lower()
    except EmailNotValidError as exc:
        raise AuthError(f"Invalid email: {exc}", 400) from exc


def _check_password(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", 400)


class _SessionListeners:
    """Callback registry behind ``on_session_change``."""

    def __init__(self):
        self._listeners: list[Callable] = []

    def on_session_change(self, callback: Callable[[str, AuthSession | None], None]) -> Callable[[], None]:
        """Register ``callback(event, session)``; returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _emit(self, event: str, session: AuthSession | None) -> None:
        for callback in list(self._listeners):
            try:
                callback(event, session)
            except Exception:
                logger.exception("Session listener failed for event %s", event)


# ═══════════════════════════════════════════════════════════════
# Hosted backend
# ═══════════════════════════════════════════════════════════════
class HostedAuthProvider(_SessionListeners):
    """Users table + JWT. Needs an application context."""

    def __init__(self, token: str | None = None):
        super().__init__()
        self.token = token

    async def get_current_session(self) -> AuthSession | None:
        if not self.token:
            return None
        try:
            payload = jwt_service.decode_access_token(self.token)
        except jwt.ExpiredSignatureError as exc:
            logger.warning("Authentication session expired, user will be signed out")
            await self.sign_out()
            raise SessionExpiredError() from exc
        except jwt.InvalidTokenError as exc:
            raise AuthError("Invalid access token", 401) from exc

        session_row = jwt_service.get_active_session(self.token)
        if session_row is None:
            raise SessionExpiredError("Session revoked")

        user = db.session.get(User, payload["sub"])
        if user is None or user.status != "active":
            raise SessionExpiredError("User no longer active")

        return AuthSession(
            user=AuthUser(id=user.id, email=user.email,
                          created_at=user.created_at.isoformat() if user.created_at else None),
            access_token=self.token,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    async def sign_in(self, email: str, password: str) -> AuthSession:
        email = _normalize_email(email)
        user = User.query.filter_by(email=email).first()
        if user is None or not verify_password(password or "", user.password_hash):
            raise AuthError("Invalid email or password", 401)
        if user.status != "active":
            raise AuthError(f"Account is {user.status}", 403)

        token, expires_at = jwt_service.generate_access_token(user.id, user.email)
        jwt_service.create_session(user.id, token, expires_at)
        user.last_login_at = datetime.now(timezone.utc)
        db.session.commit()
        self.token = token

        try:
            workspace_service.ensure_default_membership(user.id, user.email)
        except Exception:
            db.session.rollback()
            logger.exception("Error adding user to default workspace", extra={"user_id": user.id})

        session = AuthSession(
            user=AuthUser(id=user.id, email=user.email,
                          created_at=user.created_at.isoformat() if user.created_at else None),
            access_token=token,
            expires_at=expires_at,
        )
        self._emit("SIGNED_IN", session)
        return session

    async def sign_up(self, email: str, password: str) -> AuthUser:
        email = _normalize_email(email)
        _check_password(password)
        if User.query.filter_by(email=email).first() is not None:
            raise AuthError(ALREADY_REGISTERED_MESSAGE, 409)

        user = User(email=email, password_hash=hash_password(password), status="active")
        db.session.add(user)
        db.session.commit()
        logger.info("User signed up", extra={"user_id": user.id})
        activated = workspace_service.activate_pending_memberships(email, user.id)
        if activated:
            logger.info("Activated %d pending workspace invitations", activated, extra={"user_id": user.id})
        return AuthUser(id=user.id, email=user.email,
                        created_at=user.created_at.isoformat() if user.created_at else None)

    async def sign_out(self) -> None:
        if self.token:
            jwt_service.revoke_session_by_token(self.token)
        self.token = None
        self._emit("SIGNED_OUT", None)

    async def send_password_reset_email(self, email: str) -> None:
        """Issue a reset token. Unknown emails succeed silently."""
        email = _normalize_email(email)
        user = User.query.filter_by(email=email).first()
        if user is None:
            return
        token = jwt_service.generate_reset_token()
        user.reset_token_hash = jwt_service.hash_token(token)
        user.reset_expires_at = datetime.now(timezone.utc) + RESET_TOKEN_EXPIRES
        db.session.commit()
        # Delivery is out of band; the token is only ever logged at debug level
        logger.info("Password reset requested", extra={"user_id": user.id})
        logger.debug("Password reset token for %s: %s", email, token)

    async def update_user_password(self, new_password: str) -> None:
        _check_password(new_password)
        session = await self.get_current_session()
        if session is None:
            raise AuthError("Not signed in", 401)
        user = db.session.get(User, session.user.id)
        user.password_hash = hash_password(new_password)
        user.reset_token_hash = None
        user.reset_expires_at = None
        db.session.commit()
        self._emit("USER_UPDATED", session)


# ═══════════════════════════════════════════════════════════════
# Local fallback backend
# ═══════════════════════════════════════════════════════════════
class LocalAuthProvider(_SessionListeners):
    """Accounts in an injected CredentialStore; seeded on first use."""

    def __init__(self, store: CredentialStore, seed_users: list[dict] | None = None):
        super().__init__()
        self.store = store
        self.seed_users = seed_users or []

    def _users(self) -> list[dict]:
        users = self.store.read(LOCAL_USERS_KEY)
        if users is None:
            users = [
                {
                    "id": f"user-{uuid.uuid4().hex[:12]}",
                    "email": seed["email"].strip().lower(),
                    "password_hash": hash_password(seed["password"]),
                    "created_at": datetime.now(timezone.utc).isoformat(),
                }
                for seed in self.seed_users
            ]
            self.store.write(LOCAL_USERS_KEY, users)
            logger.info("Local credential store initialized with %d seed users", len(users))
        return users

    async def get_current_session(self) -> AuthSession | None:
        stored = self.store.read(LOCAL_CURRENT_USER_KEY)
        if not stored:
            return None
        try:
            user = AuthUser(id=stored["id"], email=stored["email"], created_at=stored.get("created_at"))
        except (KeyError, TypeError):
            logger.error("Stored local user is malformed; ignoring it")
            return None
        return AuthSession(user=user)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        email = (email or "").strip().lower()
        record = next((u for u in self._users() if u["email"] == email), None)
        if record is None or not verify_password(password or "", record["password_hash"]):
            raise AuthError("Invalid email or password", 401)

        user = AuthUser(id=record["id"], email=record["email"], created_at=record.get("created_at"))
        self.store.write(LOCAL_CURRENT_USER_KEY, user.to_dict())
        session = AuthSession(user=user)
        self._emit("SIGNED_IN", session)
        return session

    async def sign_up(self, email: str, password: str) -> AuthUser:
        email = _normalize_email(email)
        _check_password(password)
        users = self._users()
        if any(u["email"] == email for u in users):
            raise AuthError("User already exists", 409)

        record = {
            "id": f"user-{uuid.uuid4().hex[:12]}",
            "email": email,
            "password_hash": hash_password(password),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        users.append(record)
        self.store.write(LOCAL_USERS_KEY, users)
        self._activate_pending_memberships(email, record["id"])
        return AuthUser(id=record["id"], email=email, created_at=record["created_at"])

    def _activate_pending_memberships(self, email: str, user_id: str) -> None:
        members = self.store.read(LOCAL_WORKSPACE_USERS_KEY, [])
        changed = False
        for member in members:
            if member.get("user_email") == email and member.get("status") != "active":
                member.update(
                    status="active",
                    user_id=user_id,
                    updated_at=datetime.now(timezone.utc).isoformat(),
                )
                changed = True
        if changed:
            self.store.write(LOCAL_WORKSPACE_USERS_KEY, members)

    async def sign_out(self) -> None:
        self.store.delete(LOCAL_CURRENT_USER_KEY)
        self._emit("SIGNED_OUT", None)

    async def send_password_reset_email(self, email: str) -> None:
        logger.info("Password reset is not available with local auth; ignoring request")

    async def update_user_password(self, new_password: str) -> None:
        logger.info("Password update is not available with local auth; ignoring request")


def create_auth_provider(token: str | None = None, store: CredentialStore | None = None):
    """Build the provider selected by ``AUTH_BACKEND`` for the current app."""
    cfg = current_app.config
    if cfg.get("AUTH_BACKEND", "hosted") == "local":
        if store is None:
            store = JsonFileCredentialStore(cfg["LOCAL_AUTH_STORE_PATH"])
        return LocalAuthProvider(store, seed_users=cfg.get("LOCAL_AUTH_SEED_USERS"))
    return HostedAuthProvider(token=token)
