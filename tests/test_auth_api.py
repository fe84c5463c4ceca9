"""
Tests for identity resolution and the auth endpoints.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from swimtrackr.core.dependencies import resolve_profile
from swimtrackr.core.errors import AuthenticationMissing
from swimtrackr.core.roles import Role
from swimtrackr.database.supabase_client import get_auth_client_factory, get_supabase
from swimtrackr.main import app

from conftest import FakeSupabase, school_tables


def signed_in(user_id, email="user@example.com", token="access-token"):
    return SimpleNamespace(
        user=SimpleNamespace(id=user_id, email=email),
        session=SimpleNamespace(access_token=token),
    )


@pytest.fixture
def store(fake_supabase):
    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    return fake_supabase


class AuthClients:
    """Stands in for the per-flow client factory; every flow gets its own client"""

    def __init__(self):
        self.auth = MagicMock()
        self.created = []

    def __call__(self, storage=None):
        flow_client = SimpleNamespace(auth=self.auth, storage=storage)
        self.created.append(flow_client)
        return flow_client


@pytest.fixture
def auth_clients():
    clients = AuthClients()
    app.dependency_overrides[get_auth_client_factory] = lambda: clients
    return clients


class TestResolveProfile:
    def test_resolves_role_and_facility(self):
        db = FakeSupabase(school_tables())
        db.auth.get_user.return_value = signed_in("manager-1")
        profile = resolve_profile("token", db)
        assert profile.role == Role.MANAGER
        assert profile.facility_id == "facility-a"
        db.auth.get_user.assert_called_once_with(jwt="token")

    def test_missing_token(self):
        with pytest.raises(AuthenticationMissing):
            resolve_profile(None, FakeSupabase())

    def test_auth_error_fails_closed(self):
        db = FakeSupabase(school_tables())
        db.auth.get_user.side_effect = RuntimeError("JWT expired")
        with pytest.raises(AuthenticationMissing):
            resolve_profile("token", db)

    def test_missing_profile_fails_closed(self):
        db = FakeSupabase(school_tables())
        db.auth.get_user.return_value = signed_in("ghost")
        with pytest.raises(AuthenticationMissing) as exc_info:
            resolve_profile("token", db)
        assert exc_info.value.detail == "Profile not found"

    def test_unknown_role_fails_closed(self):
        tables = school_tables()
        tables["profiles"].append({"id": "odd-1", "email": "odd@example.com", "role": "superhero"})
        db = FakeSupabase(tables)
        db.auth.get_user.return_value = signed_in("odd-1")
        with pytest.raises(AuthenticationMissing):
            resolve_profile("token", db)

    def test_store_failure_fails_closed(self):
        db = FakeSupabase(school_tables())
        db.auth.get_user.return_value = signed_in("manager-1")
        db.failing_tables.add("profiles")
        with pytest.raises(AuthenticationMissing):
            resolve_profile("token", db)


class TestProtectedRoutes:
    async def test_no_session_is_401_with_login_redirect(self, client, store):
        response = await client.get("/api/v1/students")
        assert response.status_code == 401
        assert response.json()["redirect"] == "/auth/login"

    async def test_bearer_token(self, client, store):
        store.auth.get_user.return_value = signed_in("parent-1")
        response = await client.get("/api/v1/students", headers={"Authorization": "Bearer abc"})
        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == ["student-1"]

    async def test_session_cookie(self, client, store):
        store.auth.get_user.return_value = signed_in("parent-1")
        response = await client.get("/api/v1/students", headers={"Cookie": "sb-access-token=cookie-token"})
        assert response.status_code == 200
        store.auth.get_user.assert_called_with(jwt="cookie-token")


class TestAuthEndpoints:
    async def test_login_sets_session_cookie(self, client, store, auth_clients):
        auth_clients.auth.sign_in_with_password.return_value = signed_in("manager-1", "manager@example.com", "tok-1")
        response = await client.post("/api/v1/auth/login", json={"email": "manager@example.com", "password": "secret"})
        assert response.status_code == 200
        assert response.json()["access_token"] == "tok-1"
        assert "sb-access-token=tok-1" in response.headers["set-cookie"]

    async def test_bad_credentials(self, client, store, auth_clients):
        auth_clients.auth.sign_in_with_password.side_effect = RuntimeError("Invalid login credentials")
        response = await client.post("/api/v1/auth/login", json={"email": "manager@example.com", "password": "nope"})
        assert response.status_code == 401

    async def test_register_creates_parent_profile(self, client, store, auth_clients):
        auth_clients.auth.sign_up.return_value = signed_in("new-parent", "new@example.com")
        response = await client.post("/api/v1/auth/register", json={
            "email": "new@example.com",
            "password": "long-enough",
            "full_name": "New Parent",
        })
        assert response.status_code == 201
        created = next(p for p in store.tables["profiles"] if p["id"] == "new-parent")
        assert created["role"] == "parent"

    async def test_magic_link(self, client, store, auth_clients):
        response = await client.post("/api/v1/auth/otp", json={"email": "parent@example.com", "redirect_to": "/dashboard/sessions"})
        assert response.status_code == 200
        options = auth_clients.auth.sign_in_with_otp.call_args[0][0]["options"]
        assert options["email_redirect_to"].endswith("/auth/callback?redirectTo=/dashboard/sessions")

    async def test_callback_without_code_goes_to_login(self, client, store):
        response = await client.get("/api/v1/auth/callback")
        assert response.status_code == 303
        assert response.headers["location"] == "/auth/login"

    async def test_callback_exchanges_code(self, client, store, auth_clients):
        auth_clients.auth.exchange_code_for_session.return_value = signed_in("parent-1", token="tok-2")
        response = await client.get("/api/v1/auth/callback", params={"code": "abc", "redirectTo": "/dashboard/students"})
        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard/students"
        assert "sb-access-token=tok-2" in response.headers["set-cookie"]

    async def test_callback_ignores_offsite_redirect(self, client, store, auth_clients):
        auth_clients.auth.exchange_code_for_session.return_value = signed_in("parent-1")
        response = await client.get("/api/v1/auth/callback", params={"code": "abc", "redirectTo": "//evil.example"})
        assert response.headers["location"] == "/dashboard"

    async def test_sign_in_never_touches_the_shared_client(self, client, store, auth_clients):
        auth_clients.auth.sign_in_with_password.return_value = signed_in("manager-1", "manager@example.com", "tok-1")
        await client.post("/api/v1/auth/login", json={"email": "manager@example.com", "password": "secret"})
        await client.post("/api/v1/auth/login", json={"email": "manager@example.com", "password": "secret"})
        store.auth.sign_in_with_password.assert_not_called()
        assert len(auth_clients.created) == 2

    async def test_magic_link_keeps_code_verifier_for_callback(self, client, store, auth_clients):
        def issue_verifier(params):
            auth_clients.created[-1].storage.set_item("supabase.auth.token-code-verifier", "verifier-1")

        auth_clients.auth.sign_in_with_otp.side_effect = issue_verifier
        response = await client.post("/api/v1/auth/otp", json={"email": "parent@example.com"})
        assert "sb-code-verifier=verifier-1" in response.headers["set-cookie"]

        auth_clients.auth.exchange_code_for_session.return_value = signed_in("parent-1", token="tok-3")
        callback = await client.get(
            "/api/v1/auth/callback",
            params={"code": "abc"},
            headers={"Cookie": "sb-code-verifier=verifier-1"},
        )
        assert callback.status_code == 303
        assert auth_clients.auth.exchange_code_for_session.call_args[0][0] == {
            "auth_code": "abc", "code_verifier": "verifier-1"
        }

    async def test_logout_revokes_callers_token_only(self, client, store, auth_clients):
        response = await client.post("/api/v1/auth/logout", headers={"Authorization": "Bearer tok-9"})
        assert response.status_code == 200
        auth_clients.auth.admin.sign_out.assert_called_once_with("tok-9")
        store.auth.sign_out.assert_not_called()

    async def test_reset_password(self, client, store, auth_clients):
        response = await client.post("/api/v1/auth/reset-password", json={"email": "parent@example.com"})
        assert response.status_code == 200
        assert auth_clients.auth.reset_password_for_email.call_args[0][0] == "parent@example.com"

    async def test_me_includes_navigation_and_roles(self, client, as_profile, manager):
        as_profile(manager)
        response = await client.get("/api/v1/auth/me")
        data = response.json()
        assert data["profile"]["role"] == "manager"
        assert "Analytics" in [entry["name"] for entry in data["navigation"]]
        assert "admin" not in data["allowed_roles"]
