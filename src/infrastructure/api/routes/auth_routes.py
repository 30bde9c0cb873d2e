from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import RedirectResponse

from src.application.dtos.auth_dto import (
    AuthActionResponse,
    CredentialsBody,
    MeResponse,
    ValidateTokenResponse,
)
from src.application.dtos.profile_dto import ProfileResponse
from src.application.use_cases.authenticate import (
    ExchangeCodeUseCase,
    SignInUseCase,
    SignOutUseCase,
    SignUpUseCase,
)
from src.application.use_cases.authorize_access import AccessLevel, AuthorizeAccessUseCase
from src.domain.errors import ErrorCode
from src.domain.services.authorization_service import Denied
from src.infrastructure.api.access import (
    clear_session_cookies,
    json_for_denial,
    login_url,
    safe_redirect_target,
    set_session_cookies,
    status_for,
)
from src.infrastructure.api.dependencies import (
    get_access_token,
    get_auth_adapter,
    get_current_user,
    get_profile_repo,
    get_refresh_token,
)
from src.infrastructure.config import get_settings
from src.infrastructure.database.repositories.profile_repository import ProfileRepository
from src.infrastructure.database.supabase_client import SupabaseAuthAdapter
from src.infrastructure.observability.logger import logger

SOURCE = __name__

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing authentication token"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


@router.post(
    "/sign-in",
    response_model=AuthActionResponse,
    summary="Sign In",
    description="""
    Sign in with email and password.

    On success the session cookies are set and `redirect_to` holds the page
    the user originally asked for (the `redirect` query parameter), or `/`.
    A user without a profile is signed out again and gets `is_critical=true`.
    """,
)
def sign_in(
    body: CredentialsBody,
    response: Response,
    redirect: str | None = Query(None, description="Path to return to after login"),
    auth: SupabaseAuthAdapter = Depends(get_auth_adapter),
    profiles: ProfileRepository = Depends(get_profile_repo),
):
    """Sign in with email and password."""
    result = SignInUseCase(auth=auth, profile_repo=profiles).execute(body.email, body.password)
    if not result.success:
        response.status_code = status_for(result.error.code)
        return AuthActionResponse(
            success=False,
            message=result.error.message,
            error_code=result.error.code,
            is_critical=result.critical,
        )
    set_session_cookies(response, result.data["session"], get_settings())
    return AuthActionResponse(success=True, error_code=ErrorCode.SUCCESS, redirect_to=safe_redirect_target(redirect))


@router.post(
    "/sign-up",
    response_model=AuthActionResponse,
    summary="Sign Up",
    description="Create an account. The user confirms it through the e-mailed link, which lands on `/auth/callback`.",
)
def sign_up(
    body: CredentialsBody,
    response: Response,
    auth: SupabaseAuthAdapter = Depends(get_auth_adapter),
    profiles: ProfileRepository = Depends(get_profile_repo),
):
    """Register a new account."""
    settings = get_settings()
    redirect_to = f"{settings.site_url.rstrip('/')}/auth/callback"
    result = SignUpUseCase(auth=auth, profile_repo=profiles).execute(body.email, body.password, redirect_to)
    if not result.success:
        response.status_code = status_for(result.error.code)
        return AuthActionResponse(success=False, message=result.error.message, error_code=result.error.code)
    return AuthActionResponse(success=True, message=result.message, error_code=ErrorCode.SUCCESS)


@router.post(
    "/sign-out",
    response_model=AuthActionResponse,
    summary="Sign Out",
    description="End the current session and clear the session cookies.",
)
def sign_out(
    response: Response,
    access_token: str | None = Depends(get_access_token),
    refresh_token: str | None = Depends(get_refresh_token),
    auth: SupabaseAuthAdapter = Depends(get_auth_adapter),
):
    """Sign out the current session."""
    settings = get_settings()
    result = SignOutUseCase(auth=auth).execute(access_token, refresh_token)
    if not result.success:
        response.status_code = status_for(result.error.code)
        return AuthActionResponse(success=False, message=result.error.message, error_code=result.error.code)
    clear_session_cookies(response, settings)
    return AuthActionResponse(success=True, error_code=ErrorCode.SUCCESS, redirect_to=settings.login_path)


@router.get(
    "/callback",
    summary="Auth Callback",
    description="Exchange the code from the confirmation e-mail for a session, then redirect.",
    response_class=RedirectResponse,
    status_code=status.HTTP_303_SEE_OTHER,
)
def auth_callback(
    request: Request,
    code: str | None = Query(None, description="One-time auth code"),
    auth: SupabaseAuthAdapter = Depends(get_auth_adapter),
):
    settings = get_settings()
    failed = RedirectResponse(login_url(settings, message="Authentication failed"), status.HTTP_303_SEE_OTHER)
    response = RedirectResponse("/", status.HTTP_303_SEE_OTHER)
    if not code:
        return response
    try:
        result = ExchangeCodeUseCase(auth=auth).execute(code, request.url.path)
    except Exception as exc:
        logger.error(
            source=f"{SOURCE}:auth_callback",
            message="Unexpected error during auth callback",
            code=ErrorCode.INTERNAL_ERROR,
            context={"path": request.url.path},
            error=exc,
        )
        return failed
    if not result.success:
        return failed
    set_session_cookies(response, result.data["session"], settings)
    return response


@router.post(
    "/validate",
    response_model=ValidateTokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Validate Authentication Token",
    description="""
    Validate the provided token and confirm the user profile exists.

    **Authentication required**: Yes (Bearer token or session cookie)

    A valid token without a profile is treated as a broken account: the
    session is ended and the call answers **403** with `PROFILE_MISSING`.
    """,
    response_description="User information confirming valid authentication",
)
def validate_token(
    request: Request,
    user=Depends(get_current_user),
    token: str | None = Depends(get_access_token),
    auth: SupabaseAuthAdapter = Depends(get_auth_adapter),
    profiles: ProfileRepository = Depends(get_profile_repo),
):
    """Validate token and check the user profile."""
    decision = AuthorizeAccessUseCase(profile_repo=profiles).execute(
        user, AccessLevel.AUTHENTICATED, source=f"{SOURCE}:validate_token"
    )
    if isinstance(decision, Denied):
        return json_for_denial(request, decision, auth, token)
    return {"user_id": decision.profile.id, "email": decision.profile.email}


@router.get(
    "/me",
    response_model=MeResponse,
    status_code=status.HTTP_200_OK,
    summary="Get Current User Profile",
    description="Profile of the authenticated user together with the computed access tier.",
)
def get_me(
    request: Request,
    user=Depends(get_current_user),
    token: str | None = Depends(get_access_token),
    auth: SupabaseAuthAdapter = Depends(get_auth_adapter),
    profiles: ProfileRepository = Depends(get_profile_repo),
):
    """Get current user's profile and role."""
    decision = AuthorizeAccessUseCase(profile_repo=profiles).execute(
        user, AccessLevel.AUTHENTICATED, source=f"{SOURCE}:get_me"
    )
    if isinstance(decision, Denied):
        return json_for_denial(request, decision, auth, token)
    return MeResponse(profile=ProfileResponse.from_entity(decision.profile), role=decision.role)
