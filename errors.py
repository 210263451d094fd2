"""
Exceptions raised by the storefront services.
"""
from typing import Any


class ServiceError(Exception):
    """Base exception for service failures."""


class NotAuthenticatedError(ServiceError):
    """Raised when an operation needs a signed-in user."""


class NotFoundError(ServiceError):
    """Raised when a record does not exist or is not visible to the user."""


class ClientUnavailableError(ServiceError):
    """Raised when no record client is configured."""


class AuthDelegatedError(ServiceError):
    """Raised by auth operations that are handled by the external login UI."""


def describe_error(error: Any) -> Any:
    """Prefer the backend's own message when the error carries an HTTP response."""
    response = getattr(error, "response", None)
    if response is not None:
        try:
            message = response.json().get("message")
        except Exception:
            message = None
        if message:
            return message
    return error
