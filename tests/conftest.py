"""
Shared pytest fixtures for the ProjectHub test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - user / auth_headers: a hosted-auth user and its Bearer header
    - fake_store / fake_auth: in-memory collaborators for the board engine
"""

import asyncio

import pytest

from projecthub import create_app
from projecthub.core.exceptions import SessionExpiredError, StoreError
from projecthub.models import db as _db
from projecthub.models.auth import User
from projecthub.services import jwt_service
from projecthub.services.auth_service import AuthSession, AuthUser
from projecthub.utils.crypto import hash_password

TEST_PASSWORD = "Pass1234!"


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Auth fixtures ────────────────────────────────────────────────────────


@pytest.fixture()
def user():
    """An active hosted-auth user."""
    u = User(email="owner@example.com", password_hash=hash_password(TEST_PASSWORD), status="active")
    _db.session.add(u)
    _db.session.commit()
    return u


@pytest.fixture()
def auth_headers(user):
    """Bearer header for ``user`` backed by an active session row."""
    token, expires_at = jwt_service.generate_access_token(user.id, user.email)
    jwt_service.create_session(user.id, token, expires_at)
    return {"Authorization": f"Bearer {token}"}


# ── In-memory collaborators for the board engine ─────────────────────────


class FakeStore:
    """ProjectStore over plain dicts.

    ``fail[operation] = exc`` makes that operation raise; ``fail_ids`` makes
    ``get_stakeholder_count`` raise for those ids; ``gates[operation]`` is an
    asyncio.Event the operation waits on before returning.
    """

    def __init__(self, projects=(), children=None, preferences=None, counts=None):
        self.projects = [dict(p) for p in projects]
        self.children = {k: list(v) for k, v in (children or {}).items()}
        self.preferences = {k: list(v) for k, v in (preferences or {}).items()}
        self.counts = dict(counts or {})
        self.calls = []
        self.fail = {}
        self.fail_ids = set()
        self.gates = {}
        self._next_id = len(self.projects) + 1

    def calls_to(self, operation):
        return [c for c in self.calls if c[0] == operation]

    async def _enter(self, operation, *args):
        self.calls.append((operation, *args))
        gate = self.gates.get(operation)
        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)
        exc = self.fail.get(operation)
        if exc is not None:
            raise exc

    async def list_projects(self):
        await self._enter("list_projects")
        return [dict(p) for p in self.projects]

    async def list_child_records(self):
        await self._enter("list_child_records")
        return {k: list(v) for k, v in self.children.items()}

    async def get_user_order_preference(self, user_id):
        await self._enter("get_user_order_preference", user_id)
        return list(self.preferences.get(user_id, []))

    async def initialize_order_preference(self, user_id, project_ids):
        await self._enter("initialize_order_preference", user_id, list(project_ids))
        if not self.preferences.get(user_id):
            self.preferences[user_id] = list(project_ids)

    async def persist_order(self, user_id, project_ids):
        await self._enter("persist_order", user_id, list(project_ids))
        self.preferences[user_id] = list(project_ids)

    async def remove_order_entry(self, user_id, project_id):
        await self._enter("remove_order_entry", user_id, project_id)
        order = self.preferences.get(user_id, [])
        if project_id in order:
            order.remove(project_id)

    async def get_stakeholder_counts_batch(self, project_ids):
        await self._enter("get_stakeholder_counts_batch", list(project_ids))
        return {pid: self.counts.get(pid, 0) for pid in project_ids}

    async def get_stakeholder_count(self, project_id):
        await self._enter("get_stakeholder_count", project_id)
        if project_id in self.fail_ids:
            raise StoreError("get_stakeholder_count")
        return self.counts.get(project_id, 0)

    async def create_project(self, name, overview=None, created_by=None):
        await self._enter("create_project", name)
        project = {"id": f"p{self._next_id}", "name": name, "overview": overview}
        self._next_id += 1
        self.projects.append(project)
        return dict(project)

    async def update_project(self, project_id, data):
        await self._enter("update_project", project_id, dict(data))
        for project in self.projects:
            if project["id"] == project_id:
                project.update(data)
                return dict(project)
        raise StoreError("update_project")

    async def delete_project(self, project_id):
        await self._enter("delete_project", project_id)
        self.projects = [p for p in self.projects if p["id"] != project_id]
        for kind, records in self.children.items():
            self.children[kind] = [r for r in records if r["project_id"] != project_id]


class FakeAuth:
    """Auth provider with one fixed user; ``expired = True`` ends the session."""

    def __init__(self, user_id="user-1"):
        self.user_id = user_id
        self.expired = False
        self.sign_outs = 0
        self._listeners = []

    async def get_current_session(self):
        if self.expired:
            raise SessionExpiredError()
        if self.user_id is None:
            return None
        return AuthSession(user=AuthUser(id=self.user_id, email=f"{self.user_id}@example.com"))

    def on_session_change(self, callback):
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback)

    def emit(self, event, session):
        for callback in list(self._listeners):
            callback(event, session)

    async def sign_out(self):
        self.sign_outs += 1
        self.user_id = None
        self.emit("SIGNED_OUT", None)


def make_project(pid, name=None, overview=None):
    return {"id": pid, "name": name or pid.upper(), "overview": overview}


@pytest.fixture()
def fake_store():
    return FakeStore(projects=[make_project("a"), make_project("b"), make_project("c")])


@pytest.fixture()
def fake_auth():
    return FakeAuth()
