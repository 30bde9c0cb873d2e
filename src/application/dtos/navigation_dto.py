from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from src.application.dtos.profile_dto import ProfileResponse
from src.domain.entities.navigation import NavLink


class NavLinkResponse(BaseModel):
    href: str = Field(..., examples=["/dashboard"])
    label: str = Field(..., examples=["Dashboard"])
    access: list[str] = Field(..., description="Roles allowed to see the link")

    @classmethod
    def from_link(cls, link: NavLink) -> NavLinkResponse:
        return cls(href=link.href, label=link.label, access=[str(role) for role in link.access])


class NavigationResponse(BaseModel):
    role: str = Field(..., description="Computed role of the caller", examples=["public"])
    links: list[NavLinkResponse] = Field(default_factory=list)


class PageResponse(BaseModel):
    """Content of a role-gated page."""
    title: str
    message: str
    role: str
    profile: Optional[ProfileResponse] = None
