from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Settings:
    env: str
    supabase_disabled: bool
    supabase_url: str | None
    supabase_anon_key: str | None
    avatar_bucket: str
    storage_local_dir: str
    site_url: str
    login_path: str
    access_denied_path: str
    access_cookie: str = "sb-access-token"
    refresh_cookie: str = "sb-refresh-token"
    max_avatar_bytes: int = 2 * 1024 * 1024

    @property
    def is_production(self) -> bool:
        return self.env == "production"


def get_settings() -> Settings:
    """Snapshot of the environment. Read on every call so tests can monkeypatch."""
    return Settings(
        env=os.getenv("ENV", "development"),
        supabase_disabled=os.getenv("SUPABASE_DISABLED", "0") == "1",
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_anon_key=os.getenv("SUPABASE_ANON_KEY"),
        avatar_bucket=os.getenv("SUPABASE_AVATAR_BUCKET", "avatars"),
        storage_local_dir=os.getenv("SUPABASE_STORAGE_LOCAL_DIR", ".local_storage"),
        site_url=os.getenv("SITE_URL", "http://localhost:3000"),
        login_path=os.getenv("LOGIN_PATH", "/login"),
        access_denied_path=os.getenv("ACCESS_DENIED_PATH", "/"),
    )
