"""
Stakeholder Service.

Stakeholder records, their links to projects, and the per-project counts the
project board shows.

Functions:
    - create_stakeholder:            Create a stakeholder
    - list_stakeholders:             List all stakeholders
    - link_stakeholder:              Attach a stakeholder to a project
    - unlink_stakeholder:            Detach a stakeholder from a project
    - get_project_stakeholder_ids:   Stakeholder ids linked to one project
    - get_stakeholder_count:         Link count for one project
    - get_stakeholder_counts_batch:  Link counts for many projects in one query
"""

import logging

from sqlalchemy import func, select

from projecthub.core.exceptions import NotFoundError, ValidationError
from projecthub.models import db
from projecthub.models.stakeholder import ProjectStakeholder, Stakeholder
from projecthub.services.project_service import get_project
from projecthub.utils.helpers import clean_text, commit_or_raise

logger = logging.getLogger(__name__)


# ── Stakeholder CRUD ──────────────────────────────────────────────────────────


def create_stakeholder(data: dict) -> dict:
    """Create a stakeholder.

    Raises:
        ValidationError: If name is missing.
    """
    name = clean_text(data.get("name"), 200)
    if not name:
        raise ValidationError("Stakeholder name is required.", details={"name": "required"})

    stakeholder = Stakeholder(
        name=name,
        role=clean_text(data.get("role"), 200) or None,
        email=clean_text(data.get("email"), 255) or None,
    )
    db.session.add(stakeholder)
    commit_or_raise("Stakeholder", "name", name)
    return stakeholder.to_dict()


def list_stakeholders() -> list[dict]:
    stmt = select(Stakeholder).order_by(Stakeholder.name.asc())
    return [s.to_dict() for s in db.session.execute(stmt).scalars().all()]


def link_stakeholder(project_id: str, stakeholder_id: int) -> dict:
    """Link a stakeholder to a project (idempotent)."""
    get_project(project_id)
    if db.session.get(Stakeholder, stakeholder_id) is None:
        raise NotFoundError(resource="Stakeholder", resource_id=stakeholder_id)

    link = ProjectStakeholder.query.filter_by(
        project_id=project_id, stakeholder_id=stakeholder_id
    ).first()
    if link is None:
        link = ProjectStakeholder(project_id=project_id, stakeholder_id=stakeholder_id)
        db.session.add(link)
        commit_or_raise("ProjectStakeholder", "stakeholder_id", str(stakeholder_id))
    return link.to_dict()


def unlink_stakeholder(project_id: str, stakeholder_id: int) -> bool:
    deleted = ProjectStakeholder.query.filter_by(
        project_id=project_id, stakeholder_id=stakeholder_id
    ).delete(synchronize_session=False)
    commit_or_raise("ProjectStakeholder", "stakeholder_id", str(stakeholder_id))
    return bool(deleted)


# ── Counts ────────────────────────────────────────────────────────────────────


def get_project_stakeholder_ids(project_id: str) -> list[int]:
    stmt = (
        select(ProjectStakeholder.stakeholder_id)
        .where(ProjectStakeholder.project_id == project_id)
        .order_by(ProjectStakeholder.stakeholder_id.asc())
    )
    return list(db.session.execute(stmt).scalars().all())


def get_stakeholder_count(project_id: str) -> int:
    """Number of stakeholders linked to one project (0 when none)."""
    stmt = select(func.count(ProjectStakeholder.id)).where(
        ProjectStakeholder.project_id == project_id
    )
    return int(db.session.execute(stmt).scalar() or 0)


def get_stakeholder_counts_batch(project_ids: list[str]) -> dict[str, int]:
    """Link counts for every id in ``project_ids`` with a single GROUP BY query.

    Ids without links map to 0, so the result always covers the input.
    """
    if not project_ids:
        return {}
    stmt = (
        select(ProjectStakeholder.project_id, func.count(ProjectStakeholder.id))
        .where(ProjectStakeholder.project_id.in_(project_ids))
        .group_by(ProjectStakeholder.project_id)
    )
    counts = {pid: 0 for pid in project_ids}
    for project_id, count in db.session.execute(stmt).all():
        counts[project_id] = int(count)
    return counts
