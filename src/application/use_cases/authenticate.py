"""Sign-in, sign-up, sign-out and e-mail callback flows."""
from __future__ import annotations

from dataclasses import dataclass

from src.application.results import ActionResult
from src.application.use_cases.authorize_access import PROFILE_MISSING_MESSAGE
from src.domain.errors import AuthProviderError, ErrorCode, ServiceError
from src.infrastructure.database.repositories.profile_repository import ProfileRepository
from src.infrastructure.database.supabase_client import SupabaseAuthAdapter
from src.infrastructure.observability.logger import logger

SOURCE = __name__


@dataclass
class SignInUseCase:
    auth: SupabaseAuthAdapter
    profile_repo: ProfileRepository

    def execute(self, email: str, password: str) -> ActionResult:
        """
        Sign in with email and password.

        Args:
            email: Account email
            password: Account password, never logged

        Returns:
            ActionResult with ``session`` and ``profile`` on success. A user
            without a profile is signed out again and gets a critical failure.
        """
        source = f"{SOURCE}:sign_in"
        try:
            session = self.auth.sign_in_with_password(email, password)
        except AuthProviderError as exc:
            code = ErrorCode.UNAUTHORIZED if "invalid" in str(exc).lower() else ErrorCode.SUPABASE_AUTH_ERROR
            logger.warn(
                source=source,
                message="Sign in failed",
                code=code,
                context={"email": email, "supabaseError": str(exc)},
            )
            return ActionResult.fail("Invalid credentials", ErrorCode.AUTH_FAILED)

        profile_error: str | None = None
        try:
            profile = self.profile_repo.get(session.user.id)
        except ServiceError as exc:
            profile, profile_error = None, str(exc)

        if profile is None:
            logger.error(
                source=source,
                message="CRITICAL: User authenticated but profile missing",
                code=ErrorCode.PROFILE_MISSING,
                context={"userId": session.user.id, "email": session.user.email, "error": profile_error},
            )
            # the account is in an invalid state, do not leave a session behind
            try:
                self.auth.sign_out(session.access_token, session.refresh_token)
            except AuthProviderError as exc:
                logger.warn(
                    source=source,
                    message="Sign out after missing profile failed",
                    code=ErrorCode.SUPABASE_AUTH_ERROR,
                    error=exc,
                )
            return ActionResult.fail(PROFILE_MISSING_MESSAGE, ErrorCode.PROFILE_MISSING, critical=True)

        logger.info(
            source=source,
            message="User signed in successfully",
            code=ErrorCode.SUCCESS,
            context={"email": email},
        )
        return ActionResult.ok(session=session, profile=profile)


@dataclass
class SignUpUseCase:
    auth: SupabaseAuthAdapter
    profile_repo: ProfileRepository

    def execute(self, email: str, password: str, redirect_to: str) -> ActionResult:
        """
        Register an account and create its profile.

        Args:
            email: Account email
            password: Account password
            redirect_to: Callback URL for the confirmation email

        Returns:
            ActionResult asking the user to confirm by email, or SIGNUP_FAILED
        """
        source = f"{SOURCE}:sign_up"
        try:
            user = self.auth.sign_up(email, password, redirect_to)
        except AuthProviderError as exc:
            code = ErrorCode.CONFLICT if "already" in str(exc).lower() else ErrorCode.SUPABASE_AUTH_ERROR
            logger.warn(
                source=source,
                message="Sign up failed",
                code=code,
                context={"email": email, "supabaseError": str(exc)},
            )
            return ActionResult.fail("Could not create account", ErrorCode.SIGNUP_FAILED)

        if user is not None:
            try:
                self.profile_repo.upsert(user.id, user.email)
            except ServiceError as exc:
                logger.error(
                    source=source,
                    message="Failed to create profile for new user",
                    code=ErrorCode.DATABASE_ERROR,
                    context={"userId": user.id},
                    error=exc,
                )

        logger.info(
            source=source,
            message="User signed up successfully",
            code=ErrorCode.SUCCESS,
            context={"email": email},
        )
        return ActionResult.ok("Check email to continue sign in process")


@dataclass
class SignOutUseCase:
    auth: SupabaseAuthAdapter

    def execute(self, access_token: str | None, refresh_token: str | None) -> ActionResult:
        """End the session held by the given tokens."""
        source = f"{SOURCE}:sign_out"
        try:
            self.auth.sign_out(access_token, refresh_token)
        except AuthProviderError as exc:
            logger.error(
                source=source,
                message="Sign out failed",
                code=ErrorCode.SUPABASE_AUTH_ERROR,
                context={"supabaseError": str(exc)},
                error=exc,
            )
            return ActionResult.fail("Failed to sign out. Please try again.", ErrorCode.SIGNOUT_FAILED)

        logger.info(source=source, message="User signed out successfully", code=ErrorCode.SUCCESS)
        return ActionResult.ok()


@dataclass
class ExchangeCodeUseCase:
    auth: SupabaseAuthAdapter

    def execute(self, code: str, path: str) -> ActionResult:
        """
        Exchange a one-time auth code for a session.

        Args:
            code: Code from the confirmation link
            path: Request path, recorded when the exchange fails

        Returns:
            ActionResult with ``session`` on success
        """
        try:
            session = self.auth.exchange_code_for_session(code)
        except AuthProviderError as exc:
            logger.error(
                source=f"{SOURCE}:exchange_code",
                message="Failed to exchange code for session",
                code=ErrorCode.SUPABASE_AUTH_ERROR,
                context={"error": str(exc), "path": path},
                error=exc,
            )
            return ActionResult.fail("Authentication failed", ErrorCode.SUPABASE_AUTH_ERROR)
        return ActionResult.ok(session=session)
