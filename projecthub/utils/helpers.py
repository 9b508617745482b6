"""Shared utility functions for services and blueprints."""

import logging

from sqlalchemy.exc import IntegrityError

from projecthub.core.exceptions import ConflictError
from projecthub.models import db

logger = logging.getLogger(__name__)


def commit_or_raise(resource: str, field: str = "id", value: str | None = None) -> None:
    """Commit the current SQLAlchemy session, rolling back on failure.

    IntegrityError → ConflictError (duplicate / constraint violation)
    Anything else is logged and re-raised after the rollback.
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit: %s", exc.orig)
        raise ConflictError(resource, field, value) from exc
    except Exception:
        db.session.rollback()
        logger.exception("Unexpected database error on commit")
        raise


def clean_text(value, max_len: int | None = None) -> str:
    """Coerce a request value to a stripped string (None → "")."""
    text = str(value or "").strip()
    return text[:max_len] if max_len else text
