"""
User project order preferences.

Functions:
    - get_user_order_preference:   Ordered project ids for a user (may be empty)
    - initialize_order_preference: Seed a user's order once, on first view
    - persist_order:               Replace a user's whole order (idempotent)
    - remove_order_entry:          Drop one project from a user's order

Every write sends or stores the complete order, never a delta, so
concurrent writers resolve by last write wins.
"""

from __future__ import annotations

import logging

from projecthub.models import db
from projecthub.models.preference import UserProjectPreference
from projecthub.models.project import Project
from projecthub.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)


def _known_unique_ids(project_ids: list[str]) -> list[str]:
    """Deduplicate (first occurrence wins) and drop ids with no project row."""
    seen: set[str] = set()
    unique = []
    for pid in project_ids:
        if pid not in seen:
            seen.add(pid)
            unique.append(pid)
    if not unique:
        return []
    existing = {
        row[0] for row in db.session.query(Project.id).filter(Project.id.in_(unique)).all()
    }
    dropped = [pid for pid in unique if pid not in existing]
    if dropped:
        logger.warning("Ignoring %d unknown project ids in order", len(dropped))
    return [pid for pid in unique if pid in existing]


def _write_rows(user_id: str, project_ids: list[str]) -> None:
    for position, pid in enumerate(project_ids):
        db.session.add(UserProjectPreference(user_id=user_id, project_id=pid, position=position))


def get_user_order_preference(user_id: str) -> list[str]:
    """Return the user's ordered project ids; [] when no preference exists."""
    rows = (
        UserProjectPreference.query
        .filter_by(user_id=user_id)
        .order_by(UserProjectPreference.position.asc(), UserProjectPreference.id.asc())
        .all()
    )
    return [row.project_id for row in rows]


def initialize_order_preference(user_id: str, project_ids: list[str]) -> int:
    """Seed the user's order. No-op when a preference already exists.

    Returns the number of entries written.
    """
    if UserProjectPreference.query.filter_by(user_id=user_id).first() is not None:
        logger.debug("Order preference already initialized", extra={"user_id": user_id})
        return 0

    ids = _known_unique_ids(project_ids)
    _write_rows(user_id, ids)
    commit_or_raise("UserProjectPreference", "user_id", user_id)
    logger.info("Order preference initialized", extra={"user_id": user_id, "project_count": len(ids)})
    return len(ids)


def persist_order(user_id: str, project_ids: list[str]) -> list[str]:
    """Replace the user's whole order with ``project_ids``.

    Idempotent: calling twice with the same order stores the same rows.
    Returns the stored order.
    """
    ids = _known_unique_ids(project_ids)
    UserProjectPreference.query.filter_by(user_id=user_id).delete(synchronize_session=False)
    _write_rows(user_id, ids)
    commit_or_raise("UserProjectPreference", "user_id", user_id)
    logger.info("Order persisted", extra={"user_id": user_id, "project_count": len(ids)})
    return ids


def remove_order_entry(user_id: str, project_id: str) -> bool:
    """Remove one project from the user's order. Returns False if it was absent."""
    deleted = (
        UserProjectPreference.query
        .filter_by(user_id=user_id, project_id=project_id)
        .delete(synchronize_session=False)
    )
    commit_or_raise("UserProjectPreference", "project_id", project_id)
    return bool(deleted)
