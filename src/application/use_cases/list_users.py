from __future__ import annotations

from dataclasses import dataclass

from src.application.results import ActionResult
from src.domain.errors import DatabaseError, ErrorCode
from src.infrastructure.database.repositories.profile_repository import ProfileRepository
from src.infrastructure.observability.logger import logger

SOURCE = __name__

# PostgREST / Postgres codes -> (classified code, user-facing message)
_FAILURES: dict[str | None, tuple[ErrorCode, str]] = {
    "PGRST116": (ErrorCode.NOT_FOUND, "No users found."),
    "42501": (ErrorCode.SUPABASE_RLS_ERROR, "You do not have permission to view users."),
}
_DEFAULT_FAILURE = (ErrorCode.DATABASE_ERROR, "Failed to load users. Please try again later.")


@dataclass
class ListUsersUseCase:
    profile_repo: ProfileRepository

    def execute(self) -> ActionResult:
        """
        Load every profile for the user management page.

        Returns:
            ActionResult with ``users``, or a classified failure:
            NOT_FOUND, SUPABASE_RLS_ERROR or DATABASE_ERROR
        """
        try:
            users = self.profile_repo.list_all()
        except DatabaseError as exc:
            code, message = _FAILURES.get(exc.provider_code, _DEFAULT_FAILURE)
            logger.error(
                source=SOURCE,
                message="Failed to fetch users",
                code=code,
                context={"supabaseCode": exc.provider_code},
                error=exc,
            )
            return ActionResult.fail(message, code)
        return ActionResult.ok(users=users)
