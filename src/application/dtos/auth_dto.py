from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from src.application.dtos.profile_dto import ProfileResponse


class CredentialsBody(BaseModel):
    email: str = Field(..., min_length=3, description="Account email", examples=["user@example.com"])
    password: str = Field(..., min_length=1, description="Account password")


class AuthActionResponse(BaseModel):
    """Result of a sign-in, sign-up or sign-out attempt."""
    success: bool = Field(..., description="Whether the action succeeded")
    message: Optional[str] = Field(None, description="Message to show on the login screen")
    error_code: Optional[str] = Field(None, description="Result code", examples=["AUTH_FAILED"])
    is_critical: bool = Field(False, description="Account is in an invalid state and needs support")
    redirect_to: Optional[str] = Field(None, description="Where the client should navigate next")


class ValidateTokenResponse(BaseModel):
    """Response model for token validation."""
    user_id: str = Field(..., description="Unique identifier of the authenticated user")
    email: Optional[str] = Field(None, description="Email address of the authenticated user")


class MeResponse(BaseModel):
    profile: ProfileResponse
    role: str = Field(..., description="Computed access tier", examples=["authenticated"])
