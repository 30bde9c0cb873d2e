from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO

from PIL import Image

from src.application.results import ActionResult
from src.domain.errors import ErrorCode, ServiceError
from src.infrastructure.database.repositories.profile_repository import ProfileRepository
from src.infrastructure.observability.logger import logger
from src.infrastructure.storage.avatar_storage import AvatarStorage

SOURCE = __name__
MAX_AVATAR_BYTES = 2 * 1024 * 1024

# content type -> (Pillow format, file extension)
ALLOWED_TYPES: dict[str, tuple[str, str]] = {
    "image/jpeg": ("JPEG", "jpg"),
    "image/png": ("PNG", "png"),
    "image/webp": ("WEBP", "webp"),
    "image/gif": ("GIF", "gif"),
}
INVALID_TYPE_MESSAGE = "Invalid file type. Please upload a JPEG, PNG, WebP, or GIF"


def validate_avatar_file(
    data: bytes | None,
    content_type: str | None,
    user_id: str,
    source: str = SOURCE,
    max_size: int = MAX_AVATAR_BYTES,
) -> str | None:
    """Return an error message for an unacceptable upload, None when it is fine."""
    if not data:
        return "No file provided"

    if content_type not in ALLOWED_TYPES:
        logger.warn(
            source=source,
            message="Invalid avatar file type",
            code=ErrorCode.VALIDATION_ERROR,
            context={"userId": user_id, "fileType": content_type},
        )
        return INVALID_TYPE_MESSAGE

    if len(data) > max_size:
        logger.warn(
            source=source,
            message="Avatar file too large",
            code=ErrorCode.VALIDATION_ERROR,
            context={"userId": user_id, "fileSize": len(data), "maxSize": max_size},
        )
        return "File too large. Maximum size is 2MB"

    # the declared type must match what the bytes decode to
    try:
        with Image.open(BytesIO(data)) as img:
            detected = img.format
            img.verify()
    except Exception as exc:
        logger.warn(
            source=source,
            message="Avatar content is not a readable image",
            code=ErrorCode.VALIDATION_ERROR,
            context={"userId": user_id, "fileType": content_type},
            error=exc,
        )
        return INVALID_TYPE_MESSAGE

    if detected != ALLOWED_TYPES[content_type][0]:
        logger.warn(
            source=source,
            message="Avatar content does not match declared type",
            code=ErrorCode.VALIDATION_ERROR,
            context={"userId": user_id, "fileType": content_type, "detected": detected},
        )
        return INVALID_TYPE_MESSAGE

    return None


@dataclass
class UploadAvatarUseCase:
    storage: AvatarStorage
    profile_repo: ProfileRepository

    def execute(self, user_id: str, data: bytes | None, content_type: str | None) -> ActionResult:
        """
        Validate and store a new avatar, replacing the old one.

        Args:
            user_id: Owner of the avatar
            data: Uploaded file bytes
            content_type: MIME type declared by the client

        Returns:
            ActionResult with ``avatar_url`` on success
        """
        error = validate_avatar_file(data, content_type, user_id)
        if error:
            return ActionResult.fail(error, ErrorCode.VALIDATION_ERROR)

        self._delete_old_avatar(user_id)

        file_name = self.storage.object_path(user_id, ALLOWED_TYPES[content_type][1])
        try:
            self.storage.upload(file_name, data, content_type)
        except ServiceError as exc:
            logger.error(
                source=SOURCE,
                message="Failed to upload avatar to storage",
                code=ErrorCode.EXTERNAL_API_ERROR,
                context={"userId": user_id, "fileName": file_name},
                error=exc,
            )
            return ActionResult.fail("Failed to upload avatar", ErrorCode.EXTERNAL_API_ERROR)

        public_url = self.storage.public_url(file_name)
        try:
            self.profile_repo.set_avatar_url(user_id, public_url)
        except ServiceError as exc:
            logger.error(
                source=SOURCE,
                message="Failed to update profile with avatar URL",
                code=ErrorCode.DATABASE_ERROR,
                context={"userId": user_id},
                error=exc,
            )
            return ActionResult.fail("Failed to update profile with avatar URL", ErrorCode.DATABASE_ERROR)

        logger.info(
            source=SOURCE,
            message="Avatar uploaded successfully",
            code=ErrorCode.SUCCESS,
            context={"userId": user_id, "fileName": file_name},
        )
        return ActionResult.ok(avatar_url=public_url)

    def _delete_old_avatar(self, user_id: str) -> None:
        try:
            profile = self.profile_repo.get(user_id)
            if profile is not None and profile.avatar_url:
                self.storage.remove(self.storage.path_from_public_url(profile.avatar_url))
        except ServiceError as exc:
            # the new upload overwrites with upsert, so carry on
            logger.warn(
                source=SOURCE,
                message="Failed to remove previous avatar",
                code=exc.code,
                context={"userId": user_id},
                error=exc,
            )


@dataclass
class DeleteAvatarUseCase:
    storage: AvatarStorage
    profile_repo: ProfileRepository

    def execute(self, user_id: str) -> ActionResult:
        """Remove the avatar object and clear ``avatar_url`` on the profile."""
        profile = self.profile_repo.get(user_id)
        if profile is None or not profile.avatar_url:
            return ActionResult.fail("No avatar to delete", ErrorCode.NOT_FOUND)

        try:
            self.storage.remove(self.storage.path_from_public_url(profile.avatar_url))
        except ServiceError as exc:
            logger.error(
                source=SOURCE,
                message="Failed to delete avatar from storage",
                code=ErrorCode.EXTERNAL_API_ERROR,
                context={"userId": user_id},
                error=exc,
            )
            return ActionResult.fail("Failed to delete avatar", ErrorCode.EXTERNAL_API_ERROR)

        try:
            self.profile_repo.set_avatar_url(user_id, None)
        except ServiceError as exc:
            logger.error(
                source=SOURCE,
                message="Failed to update profile after avatar deletion",
                code=ErrorCode.DATABASE_ERROR,
                context={"userId": user_id},
                error=exc,
            )
            return ActionResult.fail("Failed to update profile", ErrorCode.DATABASE_ERROR)

        logger.info(
            source=SOURCE,
            message="Avatar deleted successfully",
            code=ErrorCode.SUCCESS,
            context={"userId": user_id},
        )
        return ActionResult.ok("Avatar deleted successfully")
