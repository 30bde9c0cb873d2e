from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from src.domain.errors import ErrorCode, ServiceError
from src.domain.services.authorization_service import (
    AccessDecision,
    Authorized,
    Denied,
    HasId,
    get_user_role,
    require_admin,
    require_auth,
)
from src.infrastructure.database.repositories.profile_repository import ProfileRepository
from src.infrastructure.observability.logger import logger

PROFILE_MISSING_MESSAGE = "Account setup incomplete. Please contact support."


class AccessLevel(StrEnum):
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


@dataclass
class AuthorizeAccessUseCase:
    """
    Run the access checks for a protected resource.

    Order is fixed: user presence first, then the profile, then the admin
    role. An anonymous caller is therefore always told UNAUTHORIZED, never
    FORBIDDEN.
    """

    profile_repo: ProfileRepository

    def execute(self, user: HasId | None, level: AccessLevel, *, source: str) -> AccessDecision:
        """
        Decide whether ``user`` may open a resource of the given level.

        Args:
            user: Current user, or None for anonymous callers
            level: Required access level
            source: Caller recorded on every denial log

        Returns:
            Authorized with the role and profile, or Denied with one of
            UNAUTHORIZED, PROFILE_FETCH_ERROR, PROFILE_MISSING or FORBIDDEN
        """
        decision = require_auth(user, source=source)
        if isinstance(decision, Denied):
            return decision

        try:
            profile = self.profile_repo.get(user.id)
        except ServiceError as exc:
            logger.error(
                source=source,
                message="Failed to fetch profile for access check",
                code=ErrorCode.PROFILE_FETCH_ERROR,
                context={"userId": user.id, "providerCode": exc.provider_code},
                error=exc,
            )
            return Denied(ErrorCode.PROFILE_FETCH_ERROR, "Failed to load profile")

        if profile is None:
            logger.error(
                source=source,
                message="CRITICAL: User authenticated but profile missing",
                code=ErrorCode.PROFILE_MISSING,
                context={"userId": user.id, "email": getattr(user, "email", None)},
            )
            return Denied(ErrorCode.PROFILE_MISSING, PROFILE_MISSING_MESSAGE)

        if level == AccessLevel.ADMIN:
            decision = require_admin(profile, source=source)
            if isinstance(decision, Denied):
                return decision

        return Authorized(role=get_user_role(user, profile), profile=profile)
