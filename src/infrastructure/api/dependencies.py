from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.domain.entities.navigation import DEFAULT_NAVIGATION, NavLink
from src.domain.errors import ErrorCode
from src.infrastructure.config import get_settings
from src.infrastructure.database.repositories.profile_repository import ProfileRepository
from src.infrastructure.database.supabase_client import (
    SupabaseAuthAdapter,
    UserInfo,
    get_supabase_client,
)
from src.infrastructure.observability.logger import logger
from src.infrastructure.storage.avatar_storage import AvatarStorage

_bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_adapter() -> SupabaseAuthAdapter:
    return SupabaseAuthAdapter()


def get_access_token(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(_bearer_scheme)] = None,
) -> str | None:
    """Bearer header first, then the session cookie set at sign-in."""
    if credentials and credentials.scheme and credentials.scheme.lower() == "bearer" and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(get_settings().access_cookie) or None


def get_refresh_token(request: Request) -> str | None:
    return request.cookies.get(get_settings().refresh_cookie) or None


def get_current_user(
    token: Annotated[str | None, Depends(get_access_token)] = None,
    auth: Annotated[SupabaseAuthAdapter, Depends(get_auth_adapter)] = None,
) -> UserInfo:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    try:
        return auth.validate_token(token)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))


def get_optional_user(
    token: Annotated[str | None, Depends(get_access_token)] = None,
    auth: Annotated[SupabaseAuthAdapter, Depends(get_auth_adapter)] = None,
) -> UserInfo | None:
    """Current user, or None for anonymous callers and invalid sessions."""
    if not token:
        return None
    try:
        return auth.validate_token(token)
    except ValueError as exc:
        logger.info(
            source=f"{__name__}:get_optional_user",
            message="Ignoring invalid session token",
            code=ErrorCode.UNAUTHORIZED,
            context={"reason": str(exc)},
        )
        return None


def get_profile_repo() -> ProfileRepository:
    return ProfileRepository(get_supabase_client())


def get_avatar_storage() -> AvatarStorage:
    return AvatarStorage(get_supabase_client())


def get_navigation(request: Request) -> tuple[NavLink, ...]:
    return getattr(request.app.state, "navigation", DEFAULT_NAVIGATION)
