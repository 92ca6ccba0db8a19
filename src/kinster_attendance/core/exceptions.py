from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..geolocation.model import LocationError


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class DuplicateEmailError(ValidationError):
    """Raised when a user is created with an email that is already taken."""

    def __init__(self, email: str):
        super().__init__("Email already exists")
        self.email = email


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class LocationUnavailableError(DomainError):
    """Raised when a clock action cannot obtain the current location."""

    def __init__(self, message: str, error: "LocationError | None" = None):
        super().__init__(message)
        self.error = error


class ActionPendingError(DomainError):
    """Raised when a clock action is issued while another one is in flight."""
