"""Project model: the unit the board orders, filters and aggregates."""

import uuid
from datetime import datetime, timezone

from projecthub.models import db


def _uuid() -> str:
    return str(uuid.uuid4())


class Project(db.Model):
    """A design/research project owned by the data service."""

    __tablename__ = "projects"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    name = db.Column(db.String(200), nullable=False)
    overview = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(64), nullable=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Child collections are removed with the project
    notes = db.relationship("ResearchNote", backref="project", lazy="dynamic",
                            cascade="all, delete-orphan")
    problem_overviews = db.relationship("ProblemOverview", backref="project", lazy="dynamic",
                                        cascade="all, delete-orphan")
    progress_statuses = db.relationship("ProjectProgressStatus", backref="project", lazy="dynamic",
                                        cascade="all, delete-orphan")
    user_stories = db.relationship("UserStory", backref="project", lazy="dynamic",
                                   cascade="all, delete-orphan")
    user_journeys = db.relationship("UserJourney", backref="project", lazy="dynamic",
                                    cascade="all, delete-orphan")
    designs = db.relationship("Design", backref="project", lazy="dynamic",
                              cascade="all, delete-orphan")
    stakeholder_links = db.relationship("ProjectStakeholder", backref="project", lazy="dynamic",
                                        cascade="all, delete-orphan")

    __table_args__ = (
        db.Index("ix_projects_created_at", "created_at"),
    )

    def to_dict(self) -> dict:
        """Serialize project fields for API responses."""
        return {
            "id": self.id,
            "name": self.name,
            "overview": self.overview,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<Project {self.id}: {self.name}>"
