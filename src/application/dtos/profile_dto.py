from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.application.dtos.common_dto import ActionResponse, ErrorDetail
from src.domain.entities.profile import ProfileEntity


class ProfileResponse(BaseModel):
    """Application-owned profile of a user."""
    id: str = Field(..., description="User id from the identity provider")
    email: Optional[str] = Field(None, description="Email address", examples=["user@example.com"])
    full_name: Optional[str] = Field(None, description="Display name", examples=["Jane Doe"])
    avatar_url: Optional[str] = Field(None, description="Public URL of the avatar image")
    bio: Optional[str] = Field(None, description="Short biography")
    role: Optional[str] = Field(None, description="Stored role: admin or user", examples=["user"])
    created_at: Optional[datetime] = Field(None, description="When the profile was created")
    updated_at: Optional[datetime] = Field(None, description="When the profile was last updated")

    @classmethod
    def from_entity(cls, entity: ProfileEntity) -> ProfileResponse:
        return cls(
            id=entity.id,
            email=entity.email,
            full_name=entity.full_name,
            avatar_url=entity.avatar_url,
            bio=entity.bio,
            role=entity.role,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )


class UpdateProfileBody(BaseModel):
    """Request model for updating the current profile. Lengths are checked by the use case."""
    full_name: Optional[str] = Field(None, description="Display name, at most 100 characters")
    bio: Optional[str] = Field(None, description="Biography, at most 500 characters")


class AvatarUploadResponse(BaseModel):
    success: bool = Field(..., description="Whether the upload succeeded")
    avatar_url: Optional[str] = Field(None, description="Public URL of the new avatar")
    error: Optional[ErrorDetail] = Field(None)


class ProfileActionResponse(ActionResponse):
    profile: Optional[ProfileResponse] = Field(None, description="Profile after the update")


class ListUsersResponse(BaseModel):
    users: list[ProfileResponse] = Field(default_factory=list)
    error: Optional[ErrorDetail] = Field(None, description="Set when the list could not be loaded")
