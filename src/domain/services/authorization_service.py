"""Role computation and access checks.

Checks never raise for policy outcomes. They log the denial and return a
``Denied`` value that the HTTP boundary turns into a redirect or an error
payload; ``Authorized`` means the caller may proceed.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol

from src.domain.entities.navigation import DEFAULT_NAVIGATION, NavLink, Role
from src.domain.entities.profile import ProfileEntity
from src.domain.errors import ErrorCode
from src.infrastructure.observability.logger import logger

_SOURCE = __name__


class HasId(Protocol):
    id: str


@dataclass(frozen=True)
class Authorized:
    role: Role | None = None
    profile: ProfileEntity | None = None


@dataclass(frozen=True)
class Denied:
    code: ErrorCode
    message: str


AccessDecision = Authorized | Denied


def get_user_role(user: HasId | None, profile: ProfileEntity | None) -> Role:
    """Public without a user or profile, admin for admin profiles, else authenticated."""
    if user is None or profile is None:
        return Role.PUBLIC
    if profile.role == "admin":
        return Role.ADMIN
    return Role.AUTHENTICATED


def require_auth(user: HasId | None, *, source: str = f"{_SOURCE}:require_auth") -> AccessDecision:
    if user is None:
        logger.warn(
            source=source,
            message="Unauthorized access attempt",
            code=ErrorCode.UNAUTHORIZED,
        )
        return Denied(ErrorCode.UNAUTHORIZED, "Not authenticated")
    return Authorized()


def require_admin(
    profile: ProfileEntity | None, *, source: str = f"{_SOURCE}:require_admin"
) -> AccessDecision:
    """Admin check only. Call it after ``require_auth`` has passed."""
    if profile is None or profile.role != "admin":
        logger.warn(
            source=source,
            message="Forbidden access attempt - admin required",
            code=ErrorCode.FORBIDDEN,
            context={"profileRole": (profile.role or None) if profile is not None else None},
        )
        return Denied(ErrorCode.FORBIDDEN, "Admin access required")
    return Authorized(role=Role.ADMIN, profile=profile)


def get_visible_links(role: Role | str, links: Iterable[NavLink] = DEFAULT_NAVIGATION) -> list[NavLink]:
    # Admin sees everything; order follows the configuration
    if role == Role.ADMIN:
        return list(links)
    return [link for link in links if role in link.access]
