"""
Per-project child records shown as counts on the project board.

Every record carries ``project_id``; the board groups them by that key in a
single pass (see projecthub.board.aggregation).
"""

from datetime import datetime, timezone

from sqlalchemy.orm import declared_attr

from projecthub.models import db


def _now():
    return datetime.now(timezone.utc)


class _ProjectChild:
    """Columns shared by every child record table."""

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_now)

    @declared_attr
    def project_id(cls):
        return db.Column(
            db.String(36),
            db.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )

    def _base_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class ResearchNote(_ProjectChild, db.Model):
    __tablename__ = "research_notes"

    title = db.Column(db.String(200), nullable=False)
    body = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {**self._base_dict(), "title": self.title, "body": self.body}


class ProblemOverview(_ProjectChild, db.Model):
    """Single problem statement per project (latest row wins on the board)."""

    __tablename__ = "problem_overviews"

    summary = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {**self._base_dict(), "summary": self.summary}


class ProjectProgressStatus(_ProjectChild, db.Model):
    """Checklist entry; the board's progress bar is completed / total."""

    __tablename__ = "project_progress_statuses"

    label = db.Column(db.String(200), nullable=False)
    is_completed = db.Column(db.Boolean, nullable=False, default=False)

    def to_dict(self) -> dict:
        return {**self._base_dict(), "label": self.label, "is_completed": bool(self.is_completed)}


class UserStory(_ProjectChild, db.Model):
    __tablename__ = "user_stories"

    title = db.Column(db.String(300), nullable=False)

    def to_dict(self) -> dict:
        return {**self._base_dict(), "title": self.title}


class UserJourney(_ProjectChild, db.Model):
    __tablename__ = "user_journeys"

    name = db.Column(db.String(200), nullable=False)

    def to_dict(self) -> dict:
        return {**self._base_dict(), "name": self.name}


class Design(_ProjectChild, db.Model):
    __tablename__ = "designs"

    name = db.Column(db.String(200), nullable=False)
    link = db.Column(db.String(500), nullable=True)

    def to_dict(self) -> dict:
        return {**self._base_dict(), "name": self.name, "link": self.link}
