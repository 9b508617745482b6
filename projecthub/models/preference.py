"""Per-user explicit ordering of projects on the board."""

from datetime import datetime, timezone

from projecthub.models import db


class UserProjectPreference(db.Model):
    """One row per (user, project); the user's order is the rows by ``position``.

    ``user_id`` is not a foreign key: local-auth users only exist in the
    credential store, not in the ``users`` table.
    """

    __tablename__ = "user_project_preferences"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False)
    project_id = db.Column(
        db.String(36), db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    position = db.Column(db.Integer, nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.UniqueConstraint("user_id", "project_id", name="uq_user_project_preference"),
        db.Index("ix_user_project_preferences_user_position", "user_id", "position"),
    )

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "project_id": self.project_id,
            "position": self.position,
        }
