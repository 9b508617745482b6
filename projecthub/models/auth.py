"""
Accounts for the hosted auth backend.

``users`` holds credentials (bcrypt hash) and password-reset state,
``sessions`` one row per issued access token, and ``workspaces`` /
``workspace_members`` the membership every signed-in user gets. The local
backend does not touch these tables.
"""

import uuid
from datetime import datetime, timezone

from projecthub.models import db


def _now():
    return datetime.now(timezone.utc)


def _new_id():
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    email = db.Column(db.String(200), nullable=False, unique=True)
    password_hash = db.Column(db.String(256))
    status = db.Column(db.String(20), default="active")
    # SHA-256 of the emailed reset token
    reset_token_hash = db.Column(db.String(256))
    reset_expires_at = db.Column(db.DateTime)
    last_login_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=_now)
    updated_at = db.Column(db.DateTime, default=_now, onupdate=_now)

    sessions = db.relationship(
        "Session", back_populates="user", lazy="dynamic", cascade="all, delete-orphan"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "status": self.status,
            "last_login_at": _iso(self.last_login_at),
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<User {self.email}>"


class Session(db.Model):
    """An issued access token; the token itself is never stored."""

    __tablename__ = "sessions"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_hash = db.Column(db.String(256), nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=_now)
    expires_at = db.Column(db.DateTime, nullable=False)

    user = db.relationship("User", back_populates="sessions")


class Workspace(db.Model):
    __tablename__ = "workspaces"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, unique=True)
    created_by = db.Column(db.String(64))
    created_at = db.Column(db.DateTime, default=_now)

    members = db.relationship(
        "WorkspaceMember", backref="workspace", lazy="dynamic", cascade="all, delete-orphan"
    )

    def to_dict(self):
        return {"id": self.id, "name": self.name, "created_by": self.created_by}


class WorkspaceMember(db.Model):
    """Membership row. ``pending`` rows are invitations keyed by email and
    become ``active`` (with ``user_id`` filled in) when that email signs in.
    """

    __tablename__ = "workspace_members"
    __table_args__ = (
        db.UniqueConstraint("workspace_id", "user_email", name="uq_workspace_member_email"),
    )

    id = db.Column(db.Integer, primary_key=True)
    workspace_id = db.Column(
        db.Integer, db.ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False
    )
    user_id = db.Column(db.String(64))
    user_email = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(20), default="member")
    status = db.Column(db.String(20), default="pending")
    updated_at = db.Column(db.DateTime, default=_now, onupdate=_now)

    def to_dict(self):
        return {
            "id": self.id,
            "workspace_id": self.workspace_id,
            "user_id": self.user_id,
            "user_email": self.user_email,
            "role": self.role,
            "status": self.status,
        }
