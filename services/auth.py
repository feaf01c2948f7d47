"""Account operations backed by the Supabase auth service."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar, Union

import httpx
import yaml
from supabase import AuthError

from garage.errors import AuthServiceError, BackendError, EmailNotConfirmedError
from garage.validation import validate_email_only, validate_sign_in, validate_sign_up
from garage.vehicle import User

from .backend import BackendClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNCONFIRMED_MARKERS = ("email not confirmed", "email confirmation", "verify your email")


@dataclass
class StoredSession:
    """Session tokens persisted between runs."""

    access_token: str
    refresh_token: str
    user_id: str
    email: str


class SessionStore:
    """Persists the current session as a small YAML file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def save(self, session: StoredSession) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as fp:
            yaml.safe_dump(asdict(session), fp, default_flow_style=False, sort_keys=False)
        self.path.chmod(0o600)

    def load(self) -> Optional[StoredSession]:
        """Return the stored session, or None if nothing usable is stored."""
        if not self.path.exists():
            return None
        with open(self.path, "r") as fp:
            data = yaml.safe_load(fp) or {}
        try:
            return StoredSession(
                access_token=data["access_token"],
                refresh_token=data["refresh_token"],
                user_id=data["user_id"],
                email=data.get("email", ""),
            )
        except (KeyError, TypeError):
            logger.warning("Ignoring malformed session file %s", self.path)
            return None

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


def _is_unconfirmed(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in _UNCONFIRMED_MARKERS)


class AuthService:
    """Sign-up, sign-in, sign-out, password reset and verification resend."""

    def __init__(self, client: Any, backend: BackendClient, session_store: SessionStore):
        self._client = client
        self._backend = backend
        self._store = session_store

    def _call(self, action: str, fn: Callable[[], T], fallback: str) -> T:
        try:
            return fn()
        except AuthError as e:
            logger.error("Auth %s failed: %s", action, e.message)
            if _is_unconfirmed(e.message or ""):
                raise EmailNotConfirmedError() from e
            raise AuthServiceError(e.message, fallback=fallback) from e
        except httpx.HTTPError as e:
            logger.error("Auth %s failed: %s", action, e)
            raise AuthServiceError(str(e), fallback=fallback) from e

    def sign_up(self, email: str, password: str, confirm_password: str) -> Optional[User]:
        """
        Create an account and its profile row.

        Returns the new profile, or None when the auth service returned no
        user. Most projects require email verification before sign-in.
        """
        email = validate_sign_up(email, password, confirm_password)
        response = self._call(
            "sign up",
            lambda: self._client.auth.sign_up({"email": email, "password": password}),
            "Failed to create account",
        )
        auth_user = getattr(response, "user", None)
        if auth_user is None:
            return None

        profile = User(id=auth_user.id, email=auth_user.email or email, is_premium=False)
        try:
            return self._backend.insert_user(profile)
        except BackendError:
            logger.error("Error creating user profile for %s", email)
            raise

    def sign_in(self, email: str, password: str) -> StoredSession:
        """Sign in and persist the session locally."""
        email = validate_sign_in(email, password)
        response = self._call(
            "sign in",
            lambda: self._client.auth.sign_in_with_password(
                {"email": email, "password": password}
            ),
            "Failed to sign in",
        )
        session = getattr(response, "session", None)
        if session is None:
            raise AuthServiceError(fallback="Failed to sign in")

        stored = StoredSession(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            user_id=session.user.id,
            email=session.user.email or email,
        )
        self._store.save(stored)
        logger.info("Signed in as %s", stored.email)
        return stored

    def sign_out(self) -> None:
        """Sign out remotely and forget the local session."""
        try:
            self._call("sign out", self._client.auth.sign_out, "Failed to sign out")
        finally:
            self._store.clear()

    def reset_password(self, email: str) -> None:
        email = validate_email_only(email)
        self._call(
            "reset password",
            lambda: self._client.auth.reset_password_for_email(email),
            "Failed to send reset email",
        )

    def resend_verification(self, email: str) -> None:
        email = validate_email_only(email)
        self._call(
            "resend verification",
            lambda: self._client.auth.resend({"type": "signup", "email": email}),
            "Failed to resend confirmation email. Please try again.",
        )

    def restore_session(self) -> Optional[str]:
        """Load the stored session into the client. Returns the user id, or None."""
        stored = self._store.load()
        if stored is None:
            return None
        try:
            self._call(
                "restore session",
                lambda: self._client.auth.set_session(
                    stored.access_token, stored.refresh_token
                ),
                "Your session has expired. Please sign in again.",
            )
        except AuthServiceError:
            self._store.clear()
            raise
        return stored.user_id

    def current_user(self) -> Optional[User]:
        """
        Profile for the stored session.

        A missing profile row is created on the fly. If that insert fails too,
        a minimal profile built from the session is returned.
        """
        stored = self._store.load()
        if stored is None:
            return None

        try:
            user = self._backend.fetch_user(stored.user_id)
        except BackendError as e:
            logger.error("Error fetching user profile: %s", e.user_message)
            user = None
        if user is not None:
            return user

        profile = User(id=stored.user_id, email=stored.email, is_premium=False)
        try:
            return self._backend.insert_user(profile)
        except BackendError as e:
            logger.error("Error creating user profile: %s", e.user_message)
            profile.created_at = datetime.now(timezone.utc)
            return profile
