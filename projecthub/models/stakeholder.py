"""Stakeholders and their links to projects."""

from datetime import datetime, timezone

from projecthub.models import db


class Stakeholder(db.Model):
    __tablename__ = "stakeholders"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(200), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    project_links = db.relationship("ProjectStakeholder", backref="stakeholder", lazy="dynamic",
                                    cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "email": self.email,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class ProjectStakeholder(db.Model):
    """Link row; a project's stakeholder count is the number of its links."""

    __tablename__ = "project_stakeholders"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.String(36), db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    stakeholder_id = db.Column(
        db.Integer, db.ForeignKey("stakeholders.id", ondelete="CASCADE"), nullable=False
    )
    linked_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.UniqueConstraint("project_id", "stakeholder_id", name="uq_project_stakeholder"),
        db.Index("ix_project_stakeholders_project", "project_id"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "stakeholder_id": self.stakeholder_id,
            "linked_at": self.linked_at.isoformat() if self.linked_at else None,
        }
