"""
The persistence collaborator the board talks to.

``ProjectStore`` is the async contract; ``ServiceProjectStore`` implements it
in-process over the SQLAlchemy services. Records cross the boundary as
plain dicts, so nothing the board holds is bound to a database session.

Domain errors (NotFoundError, ValidationError, ConflictError,
SessionExpiredError) pass through unchanged. Database failures are rolled
back and re-raised as StoreError.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from flask import has_app_context
from sqlalchemy.exc import SQLAlchemyError

from projecthub.core.exceptions import (
    ConflictError,
    NotFoundError,
    SessionExpiredError,
    StoreError,
    ValidationError,
)
from projecthub.models import db
from projecthub.services import preference_service, project_service, stakeholder_service

logger = logging.getLogger(__name__)

_PASS_THROUGH = (NotFoundError, ValidationError, ConflictError, SessionExpiredError)


class ProjectStore(Protocol):
    async def list_projects(self) -> list: ...

    async def list_child_records(self) -> dict: ...

    async def get_user_order_preference(self, user_id: str) -> list: ...

    async def initialize_order_preference(self, user_id: str, project_ids: list) -> None: ...

    async def persist_order(self, user_id: str, project_ids: list) -> None: ...

    async def remove_order_entry(self, user_id: str, project_id: str) -> None: ...

    async def get_stakeholder_counts_batch(self, project_ids: list) -> dict: ...

    async def get_stakeholder_count(self, project_id: str) -> int: ...

    async def create_project(self, name: str, overview: str | None = None, created_by: str | None = None): ...

    async def update_project(self, project_id: str, data: dict): ...

    async def delete_project(self, project_id: str) -> None: ...


class ServiceProjectStore:
    """ProjectStore backed by the service layer.

    Args:
        app: Flask app to push a context for when called outside one.
            Inside a request (or an existing app context) it is not needed.
    """

    def __init__(self, app=None):
        self.app = app

    async def _call(self, operation: str, fn, *args, **kwargs):
        # Yield once so concurrent callers interleave like real I/O
        await asyncio.sleep(0)
        if self.app is not None and not has_app_context():
            with self.app.app_context():
                return self._invoke(operation, fn, *args, **kwargs)
        return self._invoke(operation, fn, *args, **kwargs)

    @staticmethod
    def _invoke(operation: str, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except _PASS_THROUGH:
            raise
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error("Store operation %s failed: %s", operation, exc)
            raise StoreError(operation, exc) from exc

    async def list_projects(self) -> list:
        return await self._call(
            "list_projects",
            lambda: [p.to_dict() for p in project_service.list_projects()],
        )

    async def list_child_records(self) -> dict:
        def _collect():
            return {
                kind: [r.to_dict() for r in records]
                for kind, records in project_service.list_child_records().items()
            }
        return await self._call("list_child_records", _collect)

    async def get_user_order_preference(self, user_id: str) -> list:
        return await self._call(
            "get_user_order_preference", preference_service.get_user_order_preference, user_id
        )

    async def initialize_order_preference(self, user_id: str, project_ids: list) -> None:
        await self._call(
            "initialize_order_preference",
            preference_service.initialize_order_preference, user_id, list(project_ids),
        )

    async def persist_order(self, user_id: str, project_ids: list) -> None:
        await self._call("persist_order", preference_service.persist_order, user_id, list(project_ids))

    async def remove_order_entry(self, user_id: str, project_id: str) -> None:
        await self._call("remove_order_entry", preference_service.remove_order_entry, user_id, project_id)

    async def get_stakeholder_counts_batch(self, project_ids: list) -> dict:
        return await self._call(
            "get_stakeholder_counts_batch",
            stakeholder_service.get_stakeholder_counts_batch, list(project_ids),
        )

    async def get_stakeholder_count(self, project_id: str) -> int:
        return await self._call(
            "get_stakeholder_count", stakeholder_service.get_stakeholder_count, project_id
        )

    async def create_project(self, name: str, overview: str | None = None, created_by: str | None = None) -> dict:
        return await self._call(
            "create_project",
            lambda: project_service.create_project(
                name=name, overview=overview, created_by=created_by
            ).to_dict(),
        )

    async def update_project(self, project_id: str, data: dict) -> dict:
        return await self._call(
            "update_project",
            lambda: project_service.update_project(project_id=project_id, data=data).to_dict(),
        )

    async def delete_project(self, project_id: str) -> None:
        await self._call("delete_project", project_service.delete_project, project_id)
