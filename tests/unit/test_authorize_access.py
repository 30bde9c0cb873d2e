"""
Tests for the centralized access use case.
"""
from __future__ import annotations

from unittest.mock import Mock

import pytest

from src.application.use_cases.authorize_access import (
    PROFILE_MISSING_MESSAGE,
    AccessLevel,
    AuthorizeAccessUseCase,
)
from src.domain.entities.navigation import Role
from src.domain.entities.profile import ProfileEntity
from src.domain.errors import DatabaseError, ErrorCode
from src.domain.services.authorization_service import Authorized, Denied
from src.infrastructure.database.supabase_client import UserInfo

USER = UserInfo(id="u1", email="u1@example.com")


@pytest.fixture
def repo():
    return Mock()


def run(repo, user, level):
    return AuthorizeAccessUseCase(profile_repo=repo).execute(user, level, source="test")


def test_anonymous_admin_request_stops_at_auth(repo, audit_logs):
    decision = run(repo, None, AccessLevel.ADMIN)

    assert isinstance(decision, Denied)
    assert decision.code == ErrorCode.UNAUTHORIZED
    repo.get.assert_not_called()
    assert [r["code"] for r in audit_logs()] == ["UNAUTHORIZED"]


def test_non_admin_forbidden(repo, audit_logs):
    repo.get.return_value = ProfileEntity(id="u1", email=None, role="user")

    decision = run(repo, USER, AccessLevel.ADMIN)

    assert decision.code == ErrorCode.FORBIDDEN
    [record] = audit_logs()
    assert record["code"] == "FORBIDDEN"
    assert record["context"]["profileRole"] == "user"


def test_admin_authorized(repo):
    prof = ProfileEntity(id="u1", email=None, role="admin")
    repo.get.return_value = prof

    decision = run(repo, USER, AccessLevel.ADMIN)

    assert decision == Authorized(role=Role.ADMIN, profile=prof)


def test_authenticated_level_skips_admin_check(repo, audit_logs):
    repo.get.return_value = ProfileEntity(id="u1", email=None, role="user")

    decision = run(repo, USER, AccessLevel.AUTHENTICATED)

    assert isinstance(decision, Authorized)
    assert decision.role == Role.AUTHENTICATED
    assert audit_logs() == []


@pytest.mark.parametrize("level", list(AccessLevel))
def test_missing_profile_is_critical(repo, audit_logs, level):
    repo.get.return_value = None

    decision = run(repo, USER, level)

    assert decision == Denied(ErrorCode.PROFILE_MISSING, PROFILE_MISSING_MESSAGE)
    [record] = audit_logs()
    assert record["level"] == "error"
    assert record["code"] == "PROFILE_MISSING"


def test_store_failure_is_classified_separately(repo, audit_logs):
    repo.get.side_effect = DatabaseError("connection refused", provider_code="08006")

    decision = run(repo, USER, AccessLevel.ADMIN)

    assert decision.code == ErrorCode.PROFILE_FETCH_ERROR
    [record] = audit_logs()
    assert record["code"] == "PROFILE_FETCH_ERROR"
    assert record["errorName"] == "DatabaseError"
