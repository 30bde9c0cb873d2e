from __future__ import annotations

from dataclasses import dataclass

from src.application.results import ActionResult
from src.domain.errors import ErrorCode, ServiceError
from src.infrastructure.database.repositories.profile_repository import ProfileRepository
from src.infrastructure.observability.logger import logger

SOURCE = __name__
MAX_NAME_LENGTH = 100
MAX_BIO_LENGTH = 500


@dataclass
class UpdateProfileUseCase:
    profile_repo: ProfileRepository

    def execute(self, user_id: str, full_name: str | None, bio: str | None) -> ActionResult:
        """Update name and bio. Empty values are stored as null."""
        if full_name and len(full_name) > MAX_NAME_LENGTH:
            logger.warn(
                source=SOURCE,
                message="Profile name validation failed",
                code=ErrorCode.VALIDATION_ERROR,
                context={"userId": user_id, "nameLength": len(full_name)},
            )
            return ActionResult.fail(
                f"Name must be {MAX_NAME_LENGTH} characters or less", ErrorCode.VALIDATION_ERROR
            )

        if bio and len(bio) > MAX_BIO_LENGTH:
            logger.warn(
                source=SOURCE,
                message="Profile bio validation failed",
                code=ErrorCode.VALIDATION_ERROR,
                context={"userId": user_id, "bioLength": len(bio)},
            )
            return ActionResult.fail(
                f"Bio must be {MAX_BIO_LENGTH} characters or less", ErrorCode.VALIDATION_ERROR
            )

        try:
            profile = self.profile_repo.update_details(user_id, full_name or None, bio or None)
        except ServiceError as exc:
            logger.error(
                source=SOURCE,
                message="Failed to update profile in database",
                code=ErrorCode.DATABASE_ERROR,
                context={"userId": user_id},
                error=exc,
            )
            return ActionResult.fail("Failed to update profile", ErrorCode.DATABASE_ERROR)

        logger.info(
            source=SOURCE,
            message="Profile updated successfully",
            code=ErrorCode.SUCCESS,
            context={"userId": user_id},
        )
        return ActionResult.ok("Profile updated successfully", profile=profile)
