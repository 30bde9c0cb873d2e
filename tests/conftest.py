import json
import logging
import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure project root is on sys.path so 'src' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SUPABASE_DISABLED", "1")
os.environ.setdefault("SUPABASE_STORAGE_LOCAL_DIR", ".local_storage")


@pytest.fixture(autouse=True)
def isolated_stores(tmp_path, monkeypatch):
    """Fresh in-memory identities/profiles and a throwaway storage dir per test."""
    from src.infrastructure.database import supabase_client
    from src.infrastructure.database.repositories import profile_repository

    monkeypatch.setenv("SUPABASE_STORAGE_LOCAL_DIR", str(tmp_path / "storage"))
    monkeypatch.setenv("ENV", "development")
    for store in (
        profile_repository._MEM_PROFILES,
        supabase_client._MEM_USERS,
        supabase_client._MEM_SESSIONS,
        supabase_client._MEM_CODES,
    ):
        store.clear()
    yield


@pytest.fixture()
def client() -> TestClient:
    # lazy import after env configured
    from src.main import create_app

    return TestClient(create_app(), follow_redirects=False)


@pytest.fixture()
def auth_header() -> dict[str, str]:
    # any token is accepted in disabled mode
    return {"Authorization": "Bearer test-token"}


@pytest.fixture()
def make_user():
    """Create the fake user behind a bearer token, with a profile of the given role."""
    from src.infrastructure.database.repositories.profile_repository import ProfileRepository
    from src.infrastructure.database.supabase_client import SupabaseAuthAdapter

    def _make(token: str, role: str | None = "user", email: str | None = None):
        user = SupabaseAuthAdapter().validate_token(token)
        repo = ProfileRepository(None)
        repo.upsert(user.id, email)
        if role is not None:
            repo.set_role(user.id, role)
        return user

    return _make


@pytest.fixture()
def audit_logs(caplog):
    """Parsed JSON records emitted through the structured logger."""
    caplog.set_level(logging.DEBUG, logger="app.audit")

    def _records() -> list[dict]:
        return [json.loads(r.getMessage()) for r in caplog.records if r.name == "app.audit"]

    return _records
