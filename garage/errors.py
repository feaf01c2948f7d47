"""Exception hierarchy for the maintenance tracker."""

from typing import Dict, Optional


class GarageError(Exception):
    """Base class for all tracker errors."""


class ValidationError(GarageError):
    """One or more input fields failed validation. Raised before any remote call."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))

    @property
    def first_message(self) -> str:
        return next(iter(self.errors.values()), "")


class RemoteServiceError(GarageError):
    """A call to an external service failed."""

    fallback = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None, fallback: Optional[str] = None):
        self.message = message or ""
        if fallback is not None:
            self.fallback = fallback
        super().__init__(self.user_message)

    @property
    def user_message(self) -> str:
        """Underlying message when available, otherwise the generic fallback."""
        return self.message or self.fallback


class BackendError(RemoteServiceError):
    fallback = "Could not reach the server. Please try again."


class AuthServiceError(RemoteServiceError):
    fallback = "Authentication failed. Please try again."


class EmailNotConfirmedError(AuthServiceError):
    fallback = (
        "Please verify your email address before signing in. "
        "Check your inbox for the verification link."
    )


class RegistryError(RemoteServiceError):
    fallback = "Could not decode VIN. Please enter manually."


class ScheduleFormatError(GarageError):
    """A schedule template file does not match the schema."""


class ConfigError(GarageError):
    """Required configuration is missing."""
