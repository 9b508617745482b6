"""
Auth providers: hosted (users table + JWT) and local (credential store).
"""

import asyncio
import json

import pytest

from conftest import TEST_PASSWORD
from projecthub.core.exceptions import AuthError, SessionExpiredError
from projecthub.models.auth import Session, WorkspaceMember
from projecthub.services import jwt_service, workspace_service
from projecthub.services.auth_service import (
    ALREADY_REGISTERED_MESSAGE,
    LOCAL_CURRENT_USER_KEY,
    LOCAL_USERS_KEY,
    LOCAL_WORKSPACE_USERS_KEY,
    HostedAuthProvider,
    LocalAuthProvider,
    create_auth_provider,
)
from projecthub.services.credential_store import JsonFileCredentialStore, MemoryCredentialStore

SEED = [{"email": "demo@example.com", "password": "demo1234"}]


def _events(provider):
    seen = []
    provider.on_session_change(lambda event, session: seen.append(event))
    return seen


# ═════════════════════════════════════════════════════════════════════════════
# Hosted provider
# ═════════════════════════════════════════════════════════════════════════════


class TestHostedProvider:
    def test_sign_in_issues_token_and_session(self, user):
        provider = HostedAuthProvider()
        events = _events(provider)

        session = asyncio.run(provider.sign_in("Owner@Example.com", TEST_PASSWORD))

        assert session.user.id == user.id
        assert session.access_token
        assert jwt_service.get_active_session(session.access_token) is not None
        assert events == ["SIGNED_IN"]

    def test_sign_in_joins_default_workspace(self, user):
        asyncio.run(HostedAuthProvider().sign_in(user.email, TEST_PASSWORD))
        member = WorkspaceMember.query.filter_by(user_email=user.email).one()
        assert (member.user_id, member.status) == (user.id, "active")

    def test_wrong_password_rejected(self, user):
        with pytest.raises(AuthError) as exc_info:
            asyncio.run(HostedAuthProvider().sign_in(user.email, "wrong-password"))
        assert exc_info.value.status_code == 401

    def test_current_session_round_trip(self, user):
        session = asyncio.run(HostedAuthProvider().sign_in(user.email, TEST_PASSWORD))
        current = asyncio.run(HostedAuthProvider(token=session.access_token).get_current_session())
        assert current.user.email == user.email

    def test_no_token_means_no_session(self):
        assert asyncio.run(HostedAuthProvider().get_current_session()) is None

    def test_expired_token_signs_out_and_raises(self, user):
        token, expires_at = jwt_service.generate_access_token(user.id, user.email, expires_in=-10)
        jwt_service.create_session(user.id, token, expires_at)
        provider = HostedAuthProvider(token=token)
        events = _events(provider)

        with pytest.raises(SessionExpiredError):
            asyncio.run(provider.get_current_session())

        assert events == ["SIGNED_OUT"]
        assert Session.query.filter_by(is_active=True).count() == 0

    def test_revoked_session_is_expired(self, user):
        session = asyncio.run(HostedAuthProvider().sign_in(user.email, TEST_PASSWORD))
        asyncio.run(HostedAuthProvider(token=session.access_token).sign_out())
        with pytest.raises(SessionExpiredError):
            asyncio.run(HostedAuthProvider(token=session.access_token).get_current_session())

    def test_sign_up_duplicate_email_message(self, user):
        with pytest.raises(AuthError) as exc_info:
            asyncio.run(HostedAuthProvider().sign_up(user.email, "Another123!"))
        assert exc_info.value.status_code == 409
        assert exc_info.value.message == ALREADY_REGISTERED_MESSAGE

    def test_sign_up_rejects_short_password(self):
        with pytest.raises(AuthError):
            asyncio.run(HostedAuthProvider().sign_up("new@example.com", "short"))

    def test_sign_up_activates_pending_invitation(self):
        workspace_service.invite_member("invited@example.com")
        created = asyncio.run(HostedAuthProvider().sign_up("invited@example.com", "Welcome123!"))
        member = WorkspaceMember.query.filter_by(user_email="invited@example.com").one()
        assert (member.status, member.user_id) == ("active", created.id)

    def test_update_password(self, user):
        session = asyncio.run(HostedAuthProvider().sign_in(user.email, TEST_PASSWORD))
        asyncio.run(HostedAuthProvider(token=session.access_token).update_user_password("Changed123!"))
        asyncio.run(HostedAuthProvider().sign_in(user.email, "Changed123!"))

    def test_password_reset_for_unknown_email_is_silent(self):
        asyncio.run(HostedAuthProvider().send_password_reset_email("ghost@example.com"))

    def test_password_reset_stores_token_hash(self, user):
        asyncio.run(HostedAuthProvider().send_password_reset_email(user.email))
        assert user.reset_token_hash
        assert user.reset_expires_at is not None


# ═════════════════════════════════════════════════════════════════════════════
# Local provider
# ═════════════════════════════════════════════════════════════════════════════


class TestLocalProvider:
    def test_seeds_default_users_on_first_use(self):
        store = MemoryCredentialStore()
        provider = LocalAuthProvider(store, seed_users=SEED)
        session = asyncio.run(provider.sign_in("demo@example.com", "demo1234"))
        assert session.user.email == "demo@example.com"
        assert [u["email"] for u in store.read(LOCAL_USERS_KEY)] == ["demo@example.com"]
        assert store.read(LOCAL_CURRENT_USER_KEY)["id"] == session.user.id

    def test_user_id_is_stable_across_sign_ins(self):
        provider = LocalAuthProvider(MemoryCredentialStore(), seed_users=SEED)
        first = asyncio.run(provider.sign_in("demo@example.com", "demo1234"))
        asyncio.run(provider.sign_out())
        second = asyncio.run(provider.sign_in("demo@example.com", "demo1234"))
        assert first.user.id == second.user.id

    def test_wrong_password_rejected(self):
        provider = LocalAuthProvider(MemoryCredentialStore(), seed_users=SEED)
        with pytest.raises(AuthError):
            asyncio.run(provider.sign_in("demo@example.com", "nope"))

    def test_sign_up_then_sign_in(self):
        provider = LocalAuthProvider(MemoryCredentialStore(), seed_users=SEED)
        created = asyncio.run(provider.sign_up("new@example.com", "Welcome123!"))
        session = asyncio.run(provider.sign_in("new@example.com", "Welcome123!"))
        assert session.user.id == created.id

    def test_duplicate_sign_up(self):
        provider = LocalAuthProvider(MemoryCredentialStore(), seed_users=SEED)
        with pytest.raises(AuthError) as exc_info:
            asyncio.run(provider.sign_up("demo@example.com", "Whatever123!"))
        assert exc_info.value.message == "User already exists"
        assert exc_info.value.status_code == 409

    def test_sign_up_activates_pending_workspace_users(self):
        store = MemoryCredentialStore({
            LOCAL_WORKSPACE_USERS_KEY: [
                {"user_email": "new@example.com", "status": "pending"},
                {"user_email": "other@example.com", "status": "pending"},
            ]
        })
        provider = LocalAuthProvider(store, seed_users=SEED)
        created = asyncio.run(provider.sign_up("new@example.com", "Welcome123!"))

        members = store.read(LOCAL_WORKSPACE_USERS_KEY)
        assert members[0]["status"] == "active"
        assert members[0]["user_id"] == created.id
        assert members[1]["status"] == "pending"

    def test_sign_out_clears_current_user(self):
        store = MemoryCredentialStore()
        provider = LocalAuthProvider(store, seed_users=SEED)
        events = _events(provider)
        asyncio.run(provider.sign_in("demo@example.com", "demo1234"))
        asyncio.run(provider.sign_out())
        assert asyncio.run(provider.get_current_session()) is None
        assert events == ["SIGNED_IN", "SIGNED_OUT"]

    def test_malformed_current_user_is_ignored(self):
        store = MemoryCredentialStore({LOCAL_CURRENT_USER_KEY: {"email": "x@example.com"}})
        provider = LocalAuthProvider(store)
        assert asyncio.run(provider.get_current_session()) is None

    def test_password_operations_are_noops(self):
        provider = LocalAuthProvider(MemoryCredentialStore(), seed_users=SEED)
        asyncio.run(provider.send_password_reset_email("demo@example.com"))
        asyncio.run(provider.update_user_password("Another123!"))
        asyncio.run(provider.sign_in("demo@example.com", "demo1234"))

    def test_unsubscribe_stops_events(self):
        provider = LocalAuthProvider(MemoryCredentialStore(), seed_users=SEED)
        seen = []
        unsubscribe = provider.on_session_change(lambda event, session: seen.append(event))
        unsubscribe()
        asyncio.run(provider.sign_in("demo@example.com", "demo1234"))
        assert seen == []


# ═════════════════════════════════════════════════════════════════════════════
# Credential stores and provider selection
# ═════════════════════════════════════════════════════════════════════════════


class TestJsonFileCredentialStore:
    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "auth" / "local_auth.json"
        JsonFileCredentialStore(str(path)).write("current_user", {"id": "u1"})
        assert JsonFileCredentialStore(str(path)).read("current_user") == {"id": "u1"}
        assert json.loads(path.read_text()) == {"current_user": {"id": "u1"}}

    def test_unreadable_file_behaves_as_empty(self, tmp_path):
        path = tmp_path / "local_auth.json"
        path.write_text("{not json")
        store = JsonFileCredentialStore(str(path))
        assert store.read("users", []) == []

    def test_delete(self, tmp_path):
        store = JsonFileCredentialStore(str(tmp_path / "local_auth.json"))
        store.write("a", 1)
        store.delete("a")
        store.delete("missing")
        assert store.read("a") is None


def test_create_auth_provider_follows_config(app):
    assert isinstance(create_auth_provider(token="t"), HostedAuthProvider)
    app.config["AUTH_BACKEND"] = "local"
    try:
        provider = create_auth_provider(store=MemoryCredentialStore())
        assert isinstance(provider, LocalAuthProvider)
    finally:
        app.config["AUTH_BACKEND"] = "hosted"
