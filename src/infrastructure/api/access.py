"""Translate access decisions and action results into HTTP responses."""
from __future__ import annotations

from urllib.parse import urlencode

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse, RedirectResponse

from src.application.dtos.common_dto import ActionResponse, ErrorDetail
from src.domain.errors import AuthProviderError, ErrorCode
from src.domain.services.authorization_service import Denied
from src.infrastructure.config import Settings, get_settings
from src.infrastructure.database.supabase_client import AuthSession, SupabaseAuthAdapter
from src.infrastructure.observability.logger import logger

_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.AUTH_FAILED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.PROFILE_MISSING: status.HTTP_403_FORBIDDEN,
    ErrorCode.SUPABASE_RLS_ERROR: status.HTTP_403_FORBIDDEN,
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.SIGNUP_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.EXTERNAL_API_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.SUPABASE_AUTH_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.SIGNOUT_FAILED: status.HTTP_502_BAD_GATEWAY,
}


def status_for(code: ErrorCode) -> int:
    return _STATUS_BY_CODE.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def login_url(settings: Settings, **params: str) -> str:
    if not params:
        return settings.login_path
    return f"{settings.login_path}?{urlencode(params, safe='/')}"


def safe_redirect_target(target: str | None) -> str:
    """Only same-site absolute paths are honored after login."""
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return "/"


def set_session_cookies(response: Response, session: AuthSession, settings: Settings) -> None:
    if session.access_token:
        response.set_cookie(
            settings.access_cookie,
            session.access_token,
            httponly=True,
            secure=settings.is_production,
            samesite="lax",
        )
    if session.refresh_token:
        response.set_cookie(
            settings.refresh_cookie,
            session.refresh_token,
            httponly=True,
            secure=settings.is_production,
            samesite="lax",
        )


def clear_session_cookies(response: Response, settings: Settings) -> None:
    response.delete_cookie(settings.access_cookie)
    response.delete_cookie(settings.refresh_cookie)


def end_session(request: Request, auth: SupabaseAuthAdapter, access_token: str | None) -> None:
    """Sign out an account whose session must not survive, such as one without a profile."""
    try:
        auth.sign_out(access_token, request.cookies.get(get_settings().refresh_cookie))
    except AuthProviderError as exc:
        logger.warn(
            source=f"{__name__}:end_session",
            message="Sign out of profile-less account failed",
            code=ErrorCode.SUPABASE_AUTH_ERROR,
            error=exc,
        )


def redirect_for_denial(
    request: Request,
    denied: Denied,
    auth: SupabaseAuthAdapter,
    access_token: str | None = None,
) -> RedirectResponse:
    """Single place where a denied page request becomes a redirect."""
    settings = get_settings()
    if denied.code == ErrorCode.UNAUTHORIZED:
        return RedirectResponse(login_url(settings, redirect=request.url.path), status.HTTP_303_SEE_OTHER)
    if denied.code == ErrorCode.FORBIDDEN:
        return RedirectResponse(settings.access_denied_path, status.HTTP_303_SEE_OTHER)
    if denied.code == ErrorCode.PROFILE_MISSING:
        end_session(request, auth, access_token)
        response = RedirectResponse(login_url(settings, message=denied.message), status.HTTP_303_SEE_OTHER)
        clear_session_cookies(response, settings)
        return response
    return RedirectResponse("/", status.HTTP_303_SEE_OTHER)


def json_for_denial(
    request: Request,
    denied: Denied,
    auth: SupabaseAuthAdapter,
    access_token: str | None = None,
) -> JSONResponse:
    """JSON counterpart of ``redirect_for_denial`` for API endpoints."""
    body = ActionResponse(success=False, error=ErrorDetail(message=denied.message, code=denied.code))
    response = JSONResponse(body.model_dump(mode="json"), status_code=status_for(denied.code))
    if denied.code == ErrorCode.PROFILE_MISSING:
        end_session(request, auth, access_token)
        clear_session_cookies(response, get_settings())
    return response
