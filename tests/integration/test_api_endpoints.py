import io
from unittest.mock import Mock
from urllib.parse import parse_qs, urlsplit

from fastapi.testclient import TestClient
from PIL import Image

from src.application.use_cases.authorize_access import PROFILE_MISSING_MESSAGE
from src.domain.entities.navigation import NavLink, Role
from src.domain.entities.profile import ProfileEntity
from src.domain.errors import DatabaseError
from src.infrastructure.api.dependencies import get_profile_repo


def make_png_bytes(w=4, h=4, color=(128, 64, 32)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (w, h), color).save(buf, format="PNG")
    return buf.getvalue()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "ok"
    assert client.get("/health").json() == {"status": "healthy"}


def test_auth_validate(client, make_user):
    make_user("test-token", email="member@example.com")
    r = client.post("/auth/validate", headers=bearer("test-token"))
    assert r.status_code == 200
    assert r.json()["email"] == "member@example.com"


def test_auth_validate_without_profile(client, auth_header, audit_logs):
    r = client.post("/auth/validate", headers=auth_header)
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "PROFILE_MISSING"
    assert any(record["code"] == "PROFILE_MISSING" for record in audit_logs())


def test_me_does_not_recreate_missing_profile(client):
    headers = bearer("whatever")
    assert client.get("/dashboard", headers=headers).status_code == 303

    r = client.get("/auth/me", headers=headers)
    assert r.status_code == 403
    assert r.json()["error"] == {"message": PROFILE_MISSING_MESSAGE, "code": "PROFILE_MISSING"}

    r = client.get("/dashboard", headers=headers)
    assert r.status_code == 303
    assert urlsplit(r.headers["location"]).path == "/login"


def test_me_reports_role(client, make_user):
    make_user("admin-token", role="admin")
    r = client.get("/auth/me", headers=bearer("admin-token"))
    assert r.status_code == 200
    assert r.json()["role"] == "admin"


class TestPageAccess:
    def test_anonymous_admin_page_redirects_to_login(self, client, audit_logs):
        r = client.get("/admin")

        assert r.status_code == 303
        assert r.headers["location"] == "/login?redirect=/admin"
        codes = [record["code"] for record in audit_logs()]
        assert "UNAUTHORIZED" in codes
        assert "FORBIDDEN" not in codes

    def test_non_admin_redirected_to_access_denied(self, client, make_user, audit_logs):
        make_user("member-token", role="user")

        r = client.get("/admin", headers=bearer("member-token"))

        assert r.status_code == 303
        assert r.headers["location"] == "/"
        forbidden = [record for record in audit_logs() if record["code"] == "FORBIDDEN"]
        assert forbidden[0]["context"] == {"profileRole": "user"}

    def test_access_denied_path_is_configurable(self, client, make_user, monkeypatch):
        monkeypatch.setenv("ACCESS_DENIED_PATH", "/denied")
        make_user("member-token", role="user")
        r = client.get("/users", headers=bearer("member-token"))
        assert r.headers["location"] == "/denied"

    def test_admin_pages(self, client, make_user):
        make_user("admin-token", role="admin", email="admin@example.com")
        make_user("member-token", role="user", email="member@example.com")

        r = client.get("/admin", headers=bearer("admin-token"))
        assert r.status_code == 200
        assert r.json()["role"] == "admin"

        r = client.get("/users", headers=bearer("admin-token"))
        assert r.status_code == 200
        emails = {u["email"] for u in r.json()["users"]}
        assert emails == {"admin@example.com", "member@example.com"}

    def test_dashboard_and_profile_for_members(self, client, make_user):
        make_user("member-token", role="user", email="member@example.com")

        r = client.get("/dashboard", headers=bearer("member-token"))
        assert r.status_code == 200
        assert r.json()["role"] == "authenticated"

        r = client.get("/profile", headers=bearer("member-token"))
        assert r.json()["profile"]["email"] == "member@example.com"

    def test_anonymous_dashboard_preserves_path(self, client):
        r = client.get("/dashboard")
        assert r.headers["location"] == "/login?redirect=/dashboard"

    def test_user_without_profile_is_sent_to_login(self, client, audit_logs):
        r = client.get("/dashboard", headers=bearer("orphan-token"))

        assert r.status_code == 303
        location = urlsplit(r.headers["location"])
        assert location.path == "/login"
        assert parse_qs(location.query)["message"] == [PROFILE_MISSING_MESSAGE]
        assert any(record["code"] == "PROFILE_MISSING" for record in audit_logs())

    def test_profile_store_failure_redirects_home(self, client, make_user, audit_logs):
        make_user("member-token")
        repo = Mock()
        repo.get.side_effect = DatabaseError("db unreachable")
        client.app.dependency_overrides[get_profile_repo] = lambda: repo

        r = client.get("/admin", headers=bearer("member-token"))

        assert r.status_code == 303
        assert r.headers["location"] == "/"
        assert any(record["code"] == "PROFILE_FETCH_ERROR" for record in audit_logs())

    def test_users_list_failure_is_reported(self, client, make_user):
        admin = make_user("admin-token", role="admin")
        repo = Mock()
        repo.get.return_value = ProfileEntity(id=admin.id, email=None, role="admin")
        repo.list_all.side_effect = DatabaseError("rls", provider_code="42501")
        client.app.dependency_overrides[get_profile_repo] = lambda: repo

        r = client.get("/users", headers=bearer("admin-token"))

        assert r.status_code == 403
        assert r.json()["error"]["code"] == "SUPABASE_RLS_ERROR"


class TestNavigation:
    def test_public_links(self, client):
        body = client.get("/navigation").json()
        assert body["role"] == "public"
        assert [link["href"] for link in body["links"]] == ["/", "/how-it-works", "/docs", "/pricing"]

    def test_admin_links(self, client, make_user):
        make_user("admin-token", role="admin")
        body = client.get("/navigation", headers=bearer("admin-token")).json()
        assert body["role"] == "admin"
        assert len(body["links"]) == 8
        assert body["links"][-1]["href"] == "/users"

    def test_navigation_is_injectable(self):
        from src.main import create_app

        links = [NavLink("/only", "Only", (Role.PUBLIC,)), NavLink("/hidden", "Hidden", (Role.ADMIN,))]
        client = TestClient(create_app(navigation=links))
        body = client.get("/navigation").json()
        assert [link["href"] for link in body["links"]] == ["/only"]


class TestAuthFlow:
    CREDS = {"email": "new@example.com", "password": "s3cret-pass"}

    def test_sign_up_sign_in_sign_out(self, client):
        r = client.post("/auth/sign-up", json=self.CREDS)
        assert r.status_code == 200
        assert r.json()["message"] == "Check email to continue sign in process"

        r = client.post("/auth/sign-in", params={"redirect": "/dashboard"}, json=self.CREDS)
        assert r.status_code == 200, r.text
        assert r.json()["redirect_to"] == "/dashboard"
        assert "sb-access-token" in r.cookies

        # session cookie now carries the user
        assert client.get("/dashboard").status_code == 200

        r = client.post("/auth/sign-out")
        assert r.json()["success"] is True
        client.cookies.clear()
        assert client.get("/dashboard").status_code == 303

    def test_unconfigured_auth_rejects_bearer_tokens(self, client, monkeypatch):
        monkeypatch.setenv("SUPABASE_DISABLED", "0")
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)

        assert client.get("/auth/me", headers=bearer("whatever")).status_code == 401
        r = client.get("/dashboard", headers=bearer("whatever"))
        assert r.headers["location"] == "/login?redirect=/dashboard"

    def test_signed_out_token_is_rejected(self, client):
        client.post("/auth/sign-up", json=self.CREDS)
        token = client.post("/auth/sign-in", json=self.CREDS).cookies["sb-access-token"]
        assert client.get("/auth/me", headers=bearer(token)).status_code == 200

        client.post("/auth/sign-out", headers=bearer(token))
        client.cookies.clear()

        assert client.get("/auth/me", headers=bearer(token)).status_code == 401

    def test_sign_in_rejects_external_redirect(self, client):
        client.post("/auth/sign-up", json=self.CREDS)
        r = client.post("/auth/sign-in", params={"redirect": "//evil.example"}, json=self.CREDS)
        assert r.json()["redirect_to"] == "/"

    def test_wrong_password(self, client):
        client.post("/auth/sign-up", json=self.CREDS)
        r = client.post("/auth/sign-in", json={**self.CREDS, "password": "nope"})
        assert r.status_code == 401
        assert r.json()["error_code"] == "AUTH_FAILED"

    def test_duplicate_sign_up(self, client):
        client.post("/auth/sign-up", json=self.CREDS)
        r = client.post("/auth/sign-up", json=self.CREDS)
        assert r.status_code == 400
        assert r.json()["error_code"] == "SIGNUP_FAILED"

    def test_callback_without_code(self, client):
        r = client.get("/auth/callback")
        assert r.status_code == 303
        assert r.headers["location"] == "/"

    def test_callback_with_bad_code(self, client):
        r = client.get("/auth/callback", params={"code": "bogus"})
        location = urlsplit(r.headers["location"])
        assert location.path == "/login"
        assert parse_qs(location.query)["message"] == ["Authentication failed"]

    def test_callback_with_confirmation_code(self, client):
        from src.infrastructure.database import supabase_client

        client.post("/auth/sign-up", json=self.CREDS)
        [code] = list(supabase_client._MEM_CODES)

        r = client.get("/auth/callback", params={"code": code})

        assert r.headers["location"] == "/"
        assert "sb-access-token" in r.cookies


class TestProfileActions:
    def test_update_requires_auth(self, client):
        r = client.patch("/profile", json={"full_name": "Ada"})
        assert r.status_code == 401
        assert r.json()["error"]["code"] == "UNAUTHORIZED"

    def test_update_profile(self, client, make_user):
        make_user("member-token")
        r = client.patch("/profile", headers=bearer("member-token"), json={"full_name": "Ada", "bio": "Hi"})
        assert r.status_code == 200
        assert r.json()["profile"]["full_name"] == "Ada"

    def test_update_validation(self, client, make_user):
        make_user("member-token")
        r = client.patch("/profile", headers=bearer("member-token"), json={"bio": "b" * 501})
        assert r.status_code == 400
        assert r.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_avatar_upload_and_delete(self, client, make_user):
        make_user("member-token")
        files = {"avatar": ("me.png", make_png_bytes(), "image/png")}

        r = client.post("/profile/avatar", headers=bearer("member-token"), files=files)
        assert r.status_code == 200, r.text
        url = r.json()["avatar_url"]
        assert url.endswith("/avatar.png")

        profile = client.get("/profile", headers=bearer("member-token")).json()["profile"]
        assert profile["avatar_url"] == url

        r = client.delete("/profile/avatar", headers=bearer("member-token"))
        assert r.json()["success"] is True

        r = client.delete("/profile/avatar", headers=bearer("member-token"))
        assert r.status_code == 404
        assert r.json()["error"]["message"] == "No avatar to delete"

    def test_avatar_rejects_non_images(self, client, make_user):
        make_user("member-token")
        files = {"avatar": ("notes.txt", b"hello", "text/plain")}
        r = client.post("/profile/avatar", headers=bearer("member-token"), files=files)
        assert r.status_code == 400
        assert r.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_avatar_requires_auth(self, client):
        files = {"avatar": ("me.png", make_png_bytes(), "image/png")}
        assert client.post("/profile/avatar", files=files).status_code == 401


def test_message_endpoint(client, audit_logs):
    r = client.get("/api/message")
    assert r.json() == {"success": True, "data": {"message": "Hello from the API!"}}
    assert audit_logs()[-1]["code"] == "SUCCESS"


def test_unexpected_errors_are_generic(audit_logs):
    from src.main import create_app

    app = create_app()
    repo = Mock()
    repo.get.side_effect = RuntimeError("password=hunter2 leaked")
    app.dependency_overrides[get_profile_repo] = lambda: repo
    client = TestClient(app, raise_server_exceptions=False)

    r = client.get("/auth/me", headers=bearer("any"))

    assert r.status_code == 500
    assert r.json()["error"] == {"message": "An unexpected error occurred", "code": "INTERNAL_ERROR"}
    assert "hunter2" not in r.text
    assert audit_logs()[-1]["code"] == "INTERNAL_ERROR"


def test_run_serves_app_with_uvicorn(monkeypatch):
    from src import main

    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs)))
    monkeypatch.setenv("PORT", "9001")
    monkeypatch.setenv("ENV", "production")

    main.run()

    [(target, kwargs)] = calls
    assert target == "src.main:app"
    assert kwargs["port"] == 9001
    assert kwargs["reload"] is False
