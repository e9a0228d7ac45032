"""
Sign-up, sign-in and profile lookups on top of the Supabase auth client.
"""

import logging
from typing import Any, Callable, Dict, Optional

from models.course_models import UserProfile, UserRole
from services.course_service import validate_model
from utils.exceptions import AuthError, NotFoundError, TechLearnError
from utils.repository import Repository

logger = logging.getLogger(__name__)


def _error_message(error: Exception) -> str:
    return getattr(error, "message", None) or str(error) or "An unexpected error occurred"


def _user_id(response: Any) -> Optional[str]:
    user = getattr(response, "user", None)
    return getattr(user, "id", None) if user else None


class AuthService:
    """
    `auth_client` is `supabase.Client.auth` (or anything with the same
    sign_up / sign_in_with_password / sign_out / resend methods).
    """

    def __init__(self, auth_client, repository: Repository):
        self.auth = auth_client
        self.repository = repository

    def sign_up(self, name: str, email: str, password: str, role: UserRole = UserRole.STUDENT) -> Dict[str, Any]:
        role_value = role.value if isinstance(role, UserRole) else str(role)
        try:
            response = self.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"name": name, "role": role_value}},
            })
        except Exception as e:
            message = _error_message(e)
            logger.error(f"Registration failed for {email}: {message}")
            if "rate limit" in message.lower():
                raise AuthError("Too many registration attempts. Please wait a moment before trying again",
                                error_code="RATE_LIMITED") from e
            raise AuthError(f"Registration failed: {message}", error_code="SIGN_UP_FAILED") from e

        user_id = _user_id(response)
        if not user_id:
            raise AuthError("Registration failed: no user was created", error_code="SIGN_UP_FAILED")

        profile = UserProfile(id=user_id, name=name, email=email, role=role_value)
        try:
            self.repository.upsert("profiles", profile.to_row())
        except TechLearnError as e:
            logger.error(f"Profile creation failed for {user_id}: {e.message}")
            raise AuthError("Your account was created but profile setup failed", error_code="PROFILE_SETUP_FAILED") from e

        needs_confirmation = getattr(response, "session", None) is None
        logger.info(f"Registered user {user_id} as {role_value}")
        return {
            "user": profile.to_api(),
            "requiresConfirmation": needs_confirmation,
            "message": "Please check your email to confirm your account." if needs_confirmation
            else "Your account has been created and you are now logged in.",
        }

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        try:
            response = self.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            message = _error_message(e)
            logger.error(f"Login error for {email}: {message}")
            if "Email not confirmed" in message:
                raise AuthError("Email not confirmed. Please check your email for a confirmation link",
                                error_code="EMAIL_NOT_CONFIRMED") from e
            raise AuthError(f"Login failed: {message}", error_code="SIGN_IN_FAILED") from e

        user_id = _user_id(response)
        if not user_id:
            raise AuthError("Login failed", error_code="SIGN_IN_FAILED")

        session = getattr(response, "session", None)
        return {
            "userId": user_id,
            "accessToken": getattr(session, "access_token", None),
            "refreshToken": getattr(session, "refresh_token", None),
        }

    def sign_out(self) -> bool:
        try:
            self.auth.sign_out()
        except Exception as e:
            raise AuthError(f"Logout failed: {_error_message(e)}", error_code="SIGN_OUT_FAILED") from e
        return True

    def resend_confirmation(self, email: str) -> bool:
        try:
            self.auth.resend({"type": "signup", "email": email})
        except Exception as e:
            raise AuthError(f"Failed to resend confirmation: {_error_message(e)}", error_code="RESEND_FAILED") from e
        logger.info(f"Resent confirmation email to {email}")
        return True

    def subscribe(self, callback: Callable[[str, Any], None]):
        """Register a listener for auth state changes; returns the subscription"""
        return self.auth.on_auth_state_change(callback)

    def get_profile(self, user_id: str) -> UserProfile:
        row = self.repository.get("profiles", {"id": user_id})
        if not row:
            raise NotFoundError("User profile not found", error_code="PROFILE_NOT_FOUND", context={"user_id": user_id})
        enrollments = self.repository.select("course_enrollments", {"user_id": user_id})
        return UserProfile.from_row({**row, "enrolled_courses": [e["course_id"] for e in enrollments]})

    def update_profile(self, user_id: str, updates: Dict[str, Any]) -> UserProfile:
        current = self.get_profile(user_id)
        allowed = {k: v for k, v in updates.items() if k in ("name", "avatar") and v is not None}
        merged = validate_model(UserProfile, {**current.model_dump(), **allowed})
        self.repository.update("profiles", merged.to_row(), {"id": user_id})
        return self.get_profile(user_id)
