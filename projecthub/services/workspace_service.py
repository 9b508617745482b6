"""
Workspace membership.

Every user who signs in is made an active member of the default workspace
(``DEFAULT_WORKSPACE_NAME``). Members invited by email before they had an
account sit in ``pending`` status until that email signs in or signs up.
"""

import logging

from flask import current_app

from projecthub.models import db
from projecthub.models.auth import Workspace, WorkspaceMember

logger = logging.getLogger(__name__)


def get_or_create_default_workspace(created_by: str | None = None) -> Workspace:
    name = current_app.config.get("DEFAULT_WORKSPACE_NAME", "Default")
    workspace = Workspace.query.filter_by(name=name).first()
    if workspace is None:
        workspace = Workspace(name=name, created_by=created_by)
        db.session.add(workspace)
        db.session.flush()
        logger.info("Default workspace %r created", name)
    return workspace


def invite_member(email: str, role: str = "member") -> WorkspaceMember:
    """Add a pending membership for ``email`` to the default workspace."""
    workspace = get_or_create_default_workspace()
    email = email.strip().lower()
    member = WorkspaceMember.query.filter_by(workspace_id=workspace.id, user_email=email).first()
    if member is None:
        member = WorkspaceMember(workspace_id=workspace.id, user_email=email, role=role, status="pending")
        db.session.add(member)
    db.session.commit()
    return member


def ensure_default_membership(user_id: str, email: str) -> WorkspaceMember:
    """Make the user an active member of the default workspace.

    A pending invitation for the same email is activated in place.
    """
    workspace = get_or_create_default_workspace(created_by=user_id)
    email = email.strip().lower()
    member = WorkspaceMember.query.filter_by(workspace_id=workspace.id, user_email=email).first()
    if member is None:
        member = WorkspaceMember(
            workspace_id=workspace.id,
            user_id=user_id,
            user_email=email,
            role="member",
            status="active",
        )
        db.session.add(member)
    elif member.status != "active" or member.user_id != user_id:
        member.user_id = user_id
        member.status = "active"
    db.session.commit()
    return member


def activate_pending_memberships(email: str, user_id: str) -> int:
    """Activate every pending membership for ``email``. Returns how many changed."""
    email = email.strip().lower()
    pending = WorkspaceMember.query.filter_by(user_email=email, status="pending").all()
    for member in pending:
        member.user_id = user_id
        member.status = "active"
    if pending:
        db.session.commit()
    return len(pending)
