from __future__ import annotations

import os
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from postgrest.exceptions import APIError
from supabase import Client

from src.domain.entities.profile import ProfileEntity
from src.domain.errors import DatabaseError
from src.infrastructure.database.postgres_client import get_postgres_client

# module-level in-memory store for disabled mode
_MEM_PROFILES: dict[str, ProfileEntity] = {}

# PostgREST code for ".single()" matching zero rows
NO_ROWS = "PGRST116"


def _parse_ts(value: Any) -> datetime | None:
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value


class ProfileRepository:
    """
    Profiles table access across the three storage modes.

    USE_LOCAL_DB=1 routes queries to PostgreSQL, SUPABASE_DISABLED=1 (or no
    Supabase client) keeps profiles in memory, otherwise Supabase is used.
    Store failures surface as ``DatabaseError`` with the provider code.
    """

    def __init__(self, client: Client | None) -> None:
        self.client = client
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.use_local_db = os.getenv("USE_LOCAL_DB", "0") == "1"
        self.pg_client = get_postgres_client() if self.use_local_db else None

    @property
    def _in_memory(self) -> bool:
        return not (self.use_local_db and self.pg_client) and (self.disabled or self.client is None)

    def _row_to_entity(self, row: dict) -> ProfileEntity:
        """Convert database row to ProfileEntity."""
        return ProfileEntity(
            id=row["id"],
            email=row.get("email"),
            full_name=row.get("full_name"),
            avatar_url=row.get("avatar_url"),
            bio=row.get("bio"),
            role=row.get("role"),
            created_at=_parse_ts(row.get("created_at")),
            updated_at=_parse_ts(row.get("updated_at")),
        )

    def get(self, user_id: str) -> ProfileEntity | None:
        """
        Fetch a user's profile.

        Args:
            user_id: Identity provider user id

        Returns:
            The profile, or None when no row exists

        Raises:
            DatabaseError: If the store rejects the query
        """
        if self.use_local_db and self.pg_client:
            row = self.pg_client.fetch_one("SELECT * FROM profiles WHERE id = %s", (user_id,))
            return self._row_to_entity(row) if row else None

        if self._in_memory:
            return _MEM_PROFILES.get(user_id)

        try:  # pragma: no cover - network
            res = self.client.table("profiles").select("*").eq("id", user_id).maybe_single().execute()
        except APIError as exc:  # pragma: no cover
            raise DatabaseError(f"DB get profile failed: {exc.message}", provider_code=exc.code) from exc
        if res is None or not res.data:  # pragma: no cover
            return None
        return self._row_to_entity(res.data)  # pragma: no cover

    def upsert(self, user_id: str, email: str | None) -> ProfileEntity:
        """
        Create the profile of a new user, or refresh its email.

        New profiles start with the ``user`` role.
        """
        if self.use_local_db and self.pg_client:
            row = self.pg_client.fetch_one(
                """
                INSERT INTO profiles (id, email, created_at, updated_at)
                VALUES (%s, %s, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
                ON CONFLICT (id) DO UPDATE SET email = COALESCE(EXCLUDED.email, profiles.email)
                RETURNING *
                """,
                (user_id, email),
            )
            return self._row_to_entity(row)

        if self._in_memory:
            now = datetime.now(UTC)
            current = _MEM_PROFILES.get(user_id)
            if current is None:
                entity = ProfileEntity(id=user_id, email=email, role="user", created_at=now, updated_at=now)
            else:
                entity = replace(current, email=email or current.email)
            _MEM_PROFILES[user_id] = entity
            return entity

        try:  # pragma: no cover - network
            data: dict[str, Any] = {"id": user_id}
            if email:
                data["email"] = email
            self.client.table("profiles").upsert(data, on_conflict="id").execute()
            res = self.client.table("profiles").select("*").eq("id", user_id).single().execute()
            return self._row_to_entity(res.data)
        except APIError as exc:  # pragma: no cover
            raise DatabaseError(f"DB upsert profile failed: {exc.message}", provider_code=exc.code) from exc

    def update(self, user_id: str, **fields: Any) -> ProfileEntity:
        """
        Update columns of an existing profile.

        Args:
            user_id: Owner of the profile
            **fields: Column values (full_name, bio, avatar_url, role)

        Returns:
            The profile after the update

        Raises:
            DatabaseError: With provider code PGRST116 if the profile is missing
        """
        if self.use_local_db and self.pg_client:
            assignments = ", ".join(f"{column} = %s" for column in fields)
            row = self.pg_client.fetch_one(
                f"UPDATE profiles SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = %s RETURNING *",
                (*fields.values(), user_id),
            )
            if row is None:
                raise DatabaseError("Profile not found", provider_code=NO_ROWS)
            return self._row_to_entity(row)

        if self._in_memory:
            current = _MEM_PROFILES.get(user_id)
            if current is None:
                raise DatabaseError("Profile not found", provider_code=NO_ROWS)
            updated = replace(current, updated_at=datetime.now(UTC), **fields)
            _MEM_PROFILES[user_id] = updated
            return updated

        try:  # pragma: no cover - network
            self.client.table("profiles").update(fields).eq("id", user_id).execute()
            res = self.client.table("profiles").select("*").eq("id", user_id).single().execute()
            return self._row_to_entity(res.data)
        except APIError as exc:  # pragma: no cover
            raise DatabaseError(f"DB update profile failed: {exc.message}", provider_code=exc.code) from exc

    def update_details(self, user_id: str, full_name: str | None, bio: str | None) -> ProfileEntity:
        return self.update(user_id, full_name=full_name, bio=bio)

    def set_avatar_url(self, user_id: str, avatar_url: str | None) -> ProfileEntity:
        return self.update(user_id, avatar_url=avatar_url)

    def set_role(self, user_id: str, role: str) -> ProfileEntity:
        return self.update(user_id, role=role)

    def list_all(self) -> list[ProfileEntity]:
        """
        List every profile for the admin view.

        Returns:
            Profiles ordered by creation time, newest first

        Raises:
            DatabaseError: If the store rejects the query (42501 when RLS denies it)
        """
        if self.use_local_db and self.pg_client:
            rows = self.pg_client.fetch_all("SELECT * FROM profiles ORDER BY created_at DESC")
            return [self._row_to_entity(row) for row in rows]

        if self._in_memory:
            oldest = datetime.min.replace(tzinfo=UTC)
            return sorted(_MEM_PROFILES.values(), key=lambda p: p.created_at or oldest, reverse=True)

        try:  # pragma: no cover - network
            res = (
                self.client.table("profiles")
                .select("id, email, full_name, avatar_url, bio, role, created_at, updated_at")
                .order("created_at", desc=True)
                .execute()
            )
        except APIError as exc:  # pragma: no cover
            raise DatabaseError(f"DB list profiles failed: {exc.message}", provider_code=exc.code) from exc
        return [self._row_to_entity(row) for row in res.data or []]  # pragma: no cover
