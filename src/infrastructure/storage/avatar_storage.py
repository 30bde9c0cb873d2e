from __future__ import annotations

import os
from pathlib import Path

from supabase import Client

from src.domain.errors import ExternalApiError


class AvatarStorage:
    """Avatar bucket adapter for Supabase Storage with a local fake fallback."""

    def __init__(self, client: Client | None) -> None:
        self.client = client
        self.bucket = os.getenv("SUPABASE_AVATAR_BUCKET", "avatars")
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.local_dir = Path(os.getenv("SUPABASE_STORAGE_LOCAL_DIR", ".local_storage"))
        if self.disabled:
            (self.local_dir / self.bucket).mkdir(parents=True, exist_ok=True)

    @property
    def _is_local(self) -> bool:
        return self.disabled or self.client is None

    @staticmethod
    def object_path(user_id: str, ext: str) -> str:
        """Object key of a user's avatar, e.g. ``<user_id>/avatar.png``."""
        return f"{user_id}/avatar.{ext.lower().lstrip('.')}"

    @staticmethod
    def path_from_public_url(url: str) -> str:
        """
        Recover the object key from a public avatar URL.

        Public URLs end in ``.../<user_id>/<file name>``, so the key is the
        last two path segments.
        """
        return "/".join(url.rstrip("/").split("/")[-2:])

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        """
        Store an avatar, replacing any object at the same key.

        Args:
            path: Object key inside the bucket
            data: Image bytes
            content_type: MIME type recorded with the object

        Raises:
            ExternalApiError: If Supabase Storage rejects the upload
        """
        if self._is_local:
            full_path = self.local_dir / self.bucket / path
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_bytes(data)
            return
        try:  # pragma: no cover - network
            self.client.storage.from_(self.bucket).upload(
                path=path,
                file=data,
                file_options={"content-type": content_type, "upsert": "true"},
            )
        except Exception as exc:  # pragma: no cover
            raise ExternalApiError(f"Storage upload failed: {exc}") from exc

    def public_url(self, path: str) -> str:
        """
        Public URL of an object.

        Returns:
            A bucket URL, or ``/local-storage/<bucket>/<path>`` in local mode
        """
        if self._is_local:
            return f"/local-storage/{self.bucket}/{path}"
        return self.client.storage.from_(self.bucket).get_public_url(path)  # pragma: no cover

    def remove(self, path: str) -> None:
        """
        Delete an object. Missing local files are ignored.

        Raises:
            ExternalApiError: If Supabase Storage rejects the removal
        """
        if self._is_local:
            full_path = self.local_dir / self.bucket / path
            if full_path.exists():
                full_path.unlink()
            return
        try:  # pragma: no cover - network
            self.client.storage.from_(self.bucket).remove([path])
        except Exception as exc:
            raise ExternalApiError(f"Storage delete failed: {exc}") from exc
