from __future__ import annotations

import hashlib
import os
import secrets
import uuid
from dataclasses import dataclass

from supabase import Client, create_client

from src.domain.errors import AuthProviderError


@dataclass(slots=True)
class UserInfo:
    id: str
    email: str | None


@dataclass(slots=True)
class AuthSession:
    user: UserInfo
    access_token: str | None = None
    refresh_token: str | None = None


# in-memory identity store for disabled mode
_MEM_USERS: dict[str, tuple[UserInfo, str]] = {}
_MEM_SESSIONS: dict[str, UserInfo] = {}
_MEM_CODES: dict[str, UserInfo] = {}

LOCAL_TOKEN_PREFIX = "local-"


def _digest(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def _to_session(res) -> AuthSession:  # pragma: no cover - network
    if res.user is None:
        raise AuthProviderError("Auth provider returned no user")
    session = res.session
    return AuthSession(
        user=UserInfo(id=res.user.id, email=res.user.email),
        access_token=session.access_token if session else None,
        refresh_token=session.refresh_token if session else None,
    )


class SupabaseAuthAdapter:
    """Small wrapper around Supabase Auth.

    When SUPABASE_DISABLED=1, identities live in memory and any unknown token
    maps to a deterministic fake user. Sessions opened in memory carry the
    ``local-`` prefix and stop validating once signed out.

    Without SUPABASE_DISABLED=1 and without SUPABASE_URL/SUPABASE_ANON_KEY
    the adapter is misconfigured: every token is rejected.
    """

    def __init__(self) -> None:
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.url = os.getenv("SUPABASE_URL")
        self.key = os.getenv("SUPABASE_ANON_KEY")
        self._client: Client | None = None
        if not self.disabled and self.url and self.key:
            self._client = create_client(self.url, self.key)

    @property
    def is_local(self) -> bool:
        return self.disabled

    def _require_client(self) -> Client:
        if self._client is None:
            raise AuthProviderError("Supabase auth is not configured")
        return self._client

    def validate_token(self, token: str) -> UserInfo:
        """
        Resolve an access token to the user it belongs to.

        Args:
            token: Bearer or cookie access token

        Returns:
            The authenticated user

        Raises:
            ValueError: If the token is missing, revoked or rejected by Supabase
        """
        if not token:
            raise ValueError("Missing access token")
        if self.is_local:
            if token in _MEM_SESSIONS:
                return _MEM_SESSIONS[token]
            if token.startswith(LOCAL_TOKEN_PREFIX):
                # issued by this process and since signed out
                raise ValueError("Session has been signed out")
            fake_id = f"fake-{hashlib.sha256(token.encode('utf-8')).hexdigest()[:10]}"
            return UserInfo(id=fake_id, email=None)
        if self._client is None:
            raise ValueError("Invalid access token: Supabase auth is not configured")
        # Real validation via Supabase Auth API
        try:
            res = self._client.auth.get_user(token)
            user = res.user if res else None
            if not user:
                raise ValueError("Invalid access token")
            return UserInfo(id=user.id, email=user.email)
        except ValueError:
            raise
        except Exception as exc:  # pragma: no cover - network path
            raise ValueError(f"Invalid access token: {exc}") from exc

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """
        Open a session with email and password.

        Raises:
            AuthProviderError: On bad credentials or provider failure
        """
        if self.is_local:
            entry = _MEM_USERS.get(email.lower())
            if entry is None or entry[1] != _digest(password):
                raise AuthProviderError("Invalid login credentials")
            return self._open_local_session(entry[0])
        try:  # pragma: no cover - network
            res = self._require_client().auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as exc:  # pragma: no cover
            raise AuthProviderError(str(exc)) from exc
        return _to_session(res)  # pragma: no cover

    def sign_up(self, email: str, password: str, redirect_to: str) -> UserInfo | None:
        """
        Register an account; the confirmation link points at ``redirect_to``.

        Args:
            email: Account email
            password: Account password
            redirect_to: Callback URL embedded in the confirmation email

        Returns:
            The new user, or None when the provider withholds it
        """
        if self.is_local:
            if email.lower() in _MEM_USERS:
                raise AuthProviderError("User already registered")
            user = UserInfo(id=str(uuid.uuid4()), email=email)
            _MEM_USERS[email.lower()] = (user, _digest(password))
            # stands in for the confirmation link sent by e-mail
            _MEM_CODES[secrets.token_urlsafe(16)] = user
            return user
        try:  # pragma: no cover - network
            res = self._require_client().auth.sign_up(
                {"email": email, "password": password, "options": {"email_redirect_to": redirect_to}}
            )
        except Exception as exc:  # pragma: no cover
            raise AuthProviderError(str(exc)) from exc
        if res.user is None:  # pragma: no cover
            return None
        return UserInfo(id=res.user.id, email=res.user.email)  # pragma: no cover

    def sign_out(self, access_token: str | None, refresh_token: str | None = None) -> None:
        if self.is_local:
            if access_token:
                _MEM_SESSIONS.pop(access_token, None)
            return
        if not access_token or not refresh_token:
            return
        try:  # pragma: no cover - network
            client = self._require_client()
            client.auth.set_session(access_token, refresh_token)
            client.auth.sign_out()
        except Exception as exc:  # pragma: no cover
            raise AuthProviderError(str(exc)) from exc

    def exchange_code_for_session(self, code: str) -> AuthSession:
        """Trade the one-time code from the confirmation email for a session."""
        if self.is_local:
            user = _MEM_CODES.pop(code, None)
            if user is None:
                raise AuthProviderError("Invalid or expired auth code")
            return self._open_local_session(user)
        try:  # pragma: no cover - network
            res = self._require_client().auth.exchange_code_for_session({"auth_code": code})
        except Exception as exc:  # pragma: no cover
            raise AuthProviderError(str(exc)) from exc
        return _to_session(res)  # pragma: no cover

    def _open_local_session(self, user: UserInfo) -> AuthSession:
        access = f"{LOCAL_TOKEN_PREFIX}{secrets.token_urlsafe(24)}"
        _MEM_SESSIONS[access] = user
        return AuthSession(user=user, access_token=access, refresh_token=secrets.token_urlsafe(24))


# Simple reusable singleton client getter for repositories/storage
_CLIENT_SINGLETON: Client | None = None


def get_supabase_client() -> Client | None:
    global _CLIENT_SINGLETON
    disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_ANON_KEY")
    if disabled or not url or not key:
        return None
    if _CLIENT_SINGLETON is None:
        _CLIENT_SINGLETON = create_client(url, key)
    return _CLIENT_SINGLETON
