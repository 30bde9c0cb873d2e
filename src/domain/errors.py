"""Error taxonomy shared by the policy engine, use cases and adapters."""
from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    PROFILE_MISSING = "PROFILE_MISSING"
    PROFILE_FETCH_ERROR = "PROFILE_FETCH_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    EXTERNAL_API_ERROR = "EXTERNAL_API_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    # Provider and result codes
    SUPABASE_AUTH_ERROR = "SUPABASE_AUTH_ERROR"
    SUPABASE_RLS_ERROR = "SUPABASE_RLS_ERROR"
    CONFLICT = "CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    AUTH_FAILED = "AUTH_FAILED"
    SIGNUP_FAILED = "SIGNUP_FAILED"
    SIGNOUT_FAILED = "SIGNOUT_FAILED"
    SUCCESS = "SUCCESS"


class ServiceError(RuntimeError):
    """Base class for classified infrastructure failures."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, *, provider_code: str | None = None) -> None:
        super().__init__(message)
        self.provider_code = provider_code


class DatabaseError(ServiceError):
    code = ErrorCode.DATABASE_ERROR


class ExternalApiError(ServiceError):
    code = ErrorCode.EXTERNAL_API_ERROR


class AuthProviderError(ExternalApiError):
    code = ErrorCode.SUPABASE_AUTH_ERROR
