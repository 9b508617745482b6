"""Project CRUD service and the flat child-record listing the board aggregates."""

from __future__ import annotations

import logging

from projecthub.core.exceptions import NotFoundError, ValidationError
from projecthub.models import db
from projecthub.models.project import Project
from projecthub.models.research import (
    Design,
    ProblemOverview,
    ProjectProgressStatus,
    ResearchNote,
    UserJourney,
    UserStory,
)
from projecthub.utils.helpers import clean_text, commit_or_raise

logger = logging.getLogger(__name__)

# Child record kind → model, in the order the board displays them
CHILD_MODELS = {
    "notes": ResearchNote,
    "problem_overviews": ProblemOverview,
    "progress_statuses": ProjectProgressStatus,
    "user_stories": UserStory,
    "user_journeys": UserJourney,
    "designs": Design,
}


def list_projects() -> list[Project]:
    """Return the authoritative project set, newest first."""
    return Project.query.order_by(Project.created_at.desc(), Project.id.asc()).all()


def get_project(project_id: str) -> Project:
    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFoundError(resource="Project", resource_id=project_id)
    return project


def create_project(*, name: str, overview: str | None = None, created_by: str | None = None) -> Project:
    """Create a project.

    Raises:
        ValidationError: If name is blank.
    """
    name = clean_text(name, 200)
    if not name:
        raise ValidationError("name is required", details={"name": "required"})

    project = Project(
        name=name,
        overview=clean_text(overview) or None,
        created_by=created_by,
    )
    db.session.add(project)
    commit_or_raise("Project", "name", name)
    logger.info("Project created", extra={"project_id": project.id, "user_id": created_by})
    return project


def update_project(*, project_id: str, data: dict) -> Project:
    """Update name and/or overview. Unknown keys are ignored."""
    project = get_project(project_id)

    if "name" in data:
        name = clean_text(data.get("name"), 200)
        if not name:
            raise ValidationError("name cannot be empty", details={"name": "required"})
        project.name = name
    if "overview" in data:
        project.overview = clean_text(data.get("overview")) or None

    commit_or_raise("Project", "id", project_id)
    return project


def delete_project(project_id: str) -> None:
    """Delete a project and (by cascade) its child records, links and order entries."""
    project = get_project(project_id)
    db.session.delete(project)
    commit_or_raise("Project", "id", project_id)
    logger.info("Project deleted", extra={"project_id": project_id})


def list_child_records() -> dict[str, list]:
    """Return every child record collection as flat lists keyed by kind."""
    return {
        kind: model.query.order_by(model.id.asc()).all()
        for kind, model in CHILD_MODELS.items()
    }


def add_child_record(kind: str, project_id: str, data: dict):
    """Attach a child record of ``kind`` to a project."""
    model = CHILD_MODELS.get(kind)
    if model is None:
        raise ValidationError(f"Unknown record kind: {kind}", details={"kind": kind})
    get_project(project_id)

    fields = {k: v for k, v in data.items() if k in model.__table__.columns.keys()}
    fields.pop("id", None)
    fields["project_id"] = project_id
    missing = [
        col.name for col in model.__table__.columns
        if not col.nullable and col.default is None and not col.primary_key and fields.get(col.name) is None
    ]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details={name: "required" for name in missing},
        )
    try:
        record = model(**fields)
        db.session.add(record)
        commit_or_raise(model.__name__)
    except (TypeError, ValueError) as exc:
        db.session.rollback()
        raise ValidationError(str(exc)) from exc
    return record


def list_project_child_records(kind: str, project_id: str) -> list:
    """Child records of one ``kind`` for one project, oldest first."""
    model = CHILD_MODELS.get(kind)
    if model is None:
        raise NotFoundError(resource="Record kind", resource_id=kind)
    get_project(project_id)
    return model.query.filter_by(project_id=project_id).order_by(model.id.asc()).all()
