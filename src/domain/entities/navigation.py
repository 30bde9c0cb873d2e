from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Role(StrEnum):
    """Computed access tier. Never stored, derived from user + profile."""

    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


@dataclass(frozen=True)
class NavLink:
    href: str
    label: str
    access: tuple[Role, ...]


_EVERYONE = (Role.PUBLIC, Role.AUTHENTICATED, Role.ADMIN)
_SIGNED_IN = (Role.AUTHENTICATED, Role.ADMIN)

DEFAULT_NAVIGATION: tuple[NavLink, ...] = (
    # Public links
    NavLink(href="/", label="Home", access=_EVERYONE),
    NavLink(href="/how-it-works", label="How It Works", access=_EVERYONE),
    NavLink(href="/docs", label="Docs", access=_EVERYONE),
    NavLink(href="/pricing", label="Pricing", access=_EVERYONE),
    # Authenticated user links
    NavLink(href="/dashboard", label="Dashboard", access=_SIGNED_IN),
    NavLink(href="/profile", label="Profile", access=_SIGNED_IN),
    # Admin-only links
    NavLink(href="/admin", label="Admin", access=(Role.ADMIN,)),
    NavLink(href="/users", label="User Management", access=(Role.ADMIN,)),
)
