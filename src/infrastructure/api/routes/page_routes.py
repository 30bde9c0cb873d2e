"""Role-gated pages and the navigation shell.

Every protected page runs the same access use case; denials are turned into
redirects by ``redirect_for_denial`` and unexpected faults send the user home.
"""
from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel

from src.application.dtos.common_dto import ErrorDetail
from src.application.dtos.navigation_dto import NavigationResponse, NavLinkResponse, PageResponse
from src.application.dtos.profile_dto import ListUsersResponse, ProfileResponse
from src.application.use_cases.authorize_access import AccessLevel, AuthorizeAccessUseCase
from src.application.use_cases.list_users import ListUsersUseCase
from src.domain.entities.navigation import NavLink
from src.domain.errors import ErrorCode, ServiceError
from src.domain.services.authorization_service import Authorized, Denied, get_user_role, get_visible_links
from src.infrastructure.api.access import redirect_for_denial, status_for
from src.infrastructure.api.dependencies import (
    get_access_token,
    get_auth_adapter,
    get_navigation,
    get_optional_user,
    get_profile_repo,
)
from src.infrastructure.database.repositories.profile_repository import ProfileRepository
from src.infrastructure.database.supabase_client import SupabaseAuthAdapter
from src.infrastructure.observability.logger import logger

SOURCE = __name__

router = APIRouter(tags=["Pages"])


class _PageContext:
    """Request-scoped collaborators shared by the protected pages."""

    def __init__(
        self,
        request: Request,
        user=Depends(get_optional_user),
        token: str | None = Depends(get_access_token),
        auth: SupabaseAuthAdapter = Depends(get_auth_adapter),
        profiles: ProfileRepository = Depends(get_profile_repo),
    ) -> None:
        self.request = request
        self.user = user
        self.token = token
        self.auth = auth
        self.profiles = profiles

    def serve(
        self,
        level: AccessLevel,
        source: str,
        render: Callable[[Authorized], BaseModel | Response],
    ) -> BaseModel | Response:
        try:
            decision = AuthorizeAccessUseCase(profile_repo=self.profiles).execute(self.user, level, source=source)
            if isinstance(decision, Denied):
                return redirect_for_denial(self.request, decision, self.auth, self.token)
            return render(decision)
        except Exception as exc:
            logger.error(
                source=source,
                message="Unexpected error while serving page",
                code=exc.code if isinstance(exc, ServiceError) else ErrorCode.INTERNAL_ERROR,
                context={"path": self.request.url.path},
                error=exc,
            )
            return RedirectResponse("/", status.HTTP_303_SEE_OTHER)


@router.get("/dashboard", response_model=PageResponse, summary="Dashboard (signed-in users)")
def dashboard(page: _PageContext = Depends()):
    return page.serve(
        AccessLevel.AUTHENTICATED,
        f"{SOURCE}:dashboard",
        lambda granted: PageResponse(
            title="Dashboard",
            message="Welcome to your dashboard. This page is accessible to all authenticated users.",
            role=granted.role,
        ),
    )


@router.get("/profile", response_model=PageResponse, summary="Profile page (signed-in users)")
def profile_page(page: _PageContext = Depends()):
    return page.serve(
        AccessLevel.AUTHENTICATED,
        f"{SOURCE}:profile_page",
        lambda granted: PageResponse(
            title="Profile",
            message="Manage your profile information.",
            role=granted.role,
            profile=ProfileResponse.from_entity(granted.profile),
        ),
    )


@router.get("/admin", response_model=PageResponse, summary="Admin panel (admins only)")
def admin_page(page: _PageContext = Depends()):
    return page.serve(
        AccessLevel.ADMIN,
        f"{SOURCE}:admin_page",
        lambda granted: PageResponse(
            title="Admin",
            message="Welcome to the admin panel. This page is only accessible to users with admin role.",
            role=granted.role,
        ),
    )


@router.get("/users", response_model=ListUsersResponse, summary="User management (admins only)")
def users_page(page: _PageContext = Depends()):
    def render(_granted: Authorized):
        result = ListUsersUseCase(profile_repo=page.profiles).execute()
        if not result.success:
            body = ListUsersResponse(error=ErrorDetail(message=result.error.message, code=result.error.code))
            return JSONResponse(body.model_dump(mode="json"), status_code=status_for(result.error.code))
        return ListUsersResponse(users=[ProfileResponse.from_entity(p) for p in result.data["users"]])

    return page.serve(AccessLevel.ADMIN, f"{SOURCE}:users_page", render)


@router.get("/navigation", response_model=NavigationResponse, summary="Navigation links for the caller")
def navigation(
    user=Depends(get_optional_user),
    profiles: ProfileRepository = Depends(get_profile_repo),
    links: tuple[NavLink, ...] = Depends(get_navigation),
):
    profile = None
    if user is not None:
        try:
            profile = profiles.get(user.id)
        except ServiceError as exc:
            # fall back to the public link set
            logger.warn(
                source=f"{SOURCE}:navigation",
                message="Failed to fetch profile for navigation",
                code=ErrorCode.PROFILE_FETCH_ERROR,
                context={"userId": user.id},
                error=exc,
            )
    role = get_user_role(user, profile)
    return NavigationResponse(role=role, links=[NavLinkResponse.from_link(link) for link in get_visible_links(role, links)])
