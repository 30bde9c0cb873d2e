from __future__ import annotations

from unittest.mock import Mock

from src.application.use_cases.authenticate import (
    ExchangeCodeUseCase,
    SignInUseCase,
    SignOutUseCase,
    SignUpUseCase,
)
from src.domain.entities.profile import ProfileEntity
from src.domain.errors import AuthProviderError, ErrorCode
from src.infrastructure.database.supabase_client import AuthSession, UserInfo

SESSION = AuthSession(user=UserInfo(id="u1", email="a@example.com"), access_token="at", refresh_token="rt")


def test_sign_in_invalid_credentials(audit_logs):
    auth, repo = Mock(), Mock()
    auth.sign_in_with_password.side_effect = AuthProviderError("Invalid login credentials")

    result = SignInUseCase(auth=auth, profile_repo=repo).execute("a@example.com", "wrong")

    assert result.error.code == ErrorCode.AUTH_FAILED
    assert result.error.message == "Invalid credentials"
    [record] = audit_logs()
    assert record["code"] == "UNAUTHORIZED"
    assert record["context"]["email"] == "a@example.com"


def test_sign_in_provider_error_is_classified(audit_logs):
    auth = Mock()
    auth.sign_in_with_password.side_effect = AuthProviderError("rate limit exceeded")

    SignInUseCase(auth=auth, profile_repo=Mock()).execute("a@example.com", "pw")

    assert audit_logs()[0]["code"] == "SUPABASE_AUTH_ERROR"


def test_sign_in_never_logs_the_password(audit_logs):
    auth = Mock()
    auth.sign_in_with_password.side_effect = AuthProviderError("Invalid login credentials")

    SignInUseCase(auth=auth, profile_repo=Mock()).execute("a@example.com", "hunter2")

    assert "hunter2" not in str(audit_logs())


def test_sign_in_without_profile_signs_out(audit_logs):
    auth, repo = Mock(), Mock()
    auth.sign_in_with_password.return_value = SESSION
    repo.get.return_value = None

    result = SignInUseCase(auth=auth, profile_repo=repo).execute("a@example.com", "pw")

    assert result.error.code == ErrorCode.PROFILE_MISSING
    assert result.critical
    auth.sign_out.assert_called_once_with("at", "rt")
    assert audit_logs()[0]["code"] == "PROFILE_MISSING"


def test_sign_in_success():
    auth, repo = Mock(), Mock()
    auth.sign_in_with_password.return_value = SESSION
    repo.get.return_value = ProfileEntity(id="u1", email="a@example.com")

    result = SignInUseCase(auth=auth, profile_repo=repo).execute("a@example.com", "pw")

    assert result.success
    assert result.data["session"] is SESSION
    auth.sign_out.assert_not_called()


def test_sign_up_conflict(audit_logs):
    auth = Mock()
    auth.sign_up.side_effect = AuthProviderError("User already registered")

    result = SignUpUseCase(auth=auth, profile_repo=Mock()).execute("a@example.com", "pw", "http://x/auth/callback")

    assert result.error.code == ErrorCode.SIGNUP_FAILED
    assert result.error.message == "Could not create account"
    assert audit_logs()[0]["code"] == "CONFLICT"


def test_sign_up_creates_profile():
    auth, repo = Mock(), Mock()
    auth.sign_up.return_value = UserInfo(id="u1", email="a@example.com")

    result = SignUpUseCase(auth=auth, profile_repo=repo).execute("a@example.com", "pw", "http://x/auth/callback")

    assert result.message == "Check email to continue sign in process"
    repo.upsert.assert_called_once_with("u1", "a@example.com")


def test_sign_out_failure(audit_logs):
    auth = Mock()
    auth.sign_out.side_effect = AuthProviderError("network down")

    result = SignOutUseCase(auth=auth).execute("at", "rt")

    assert result.error.code == ErrorCode.SIGNOUT_FAILED
    assert audit_logs()[0]["code"] == "SUPABASE_AUTH_ERROR"


def test_exchange_code_failure(audit_logs):
    auth = Mock()
    auth.exchange_code_for_session.side_effect = AuthProviderError("expired")

    result = ExchangeCodeUseCase(auth=auth).execute("abc", "/auth/callback")

    assert not result.success
    assert audit_logs()[0]["context"] == {"error": "expired", "path": "/auth/callback"}
