"""
Name: Typed Exceptions (internal errors)

Responsibilities:
  - Stable error_code per failure family
  - error_id for correlation with logs
  - Human message that never leaks secrets or account existence

Collaborators:
  - api/exception_handlers.py (maps them to RFC 7807 responses)
  - identity/*, application/* (raise them)

Taxonomy:
  - FormatError: malformed IP / CIDR input
  - AuthError: invalid credentials or deactivated account
  - LookupFailure: network origin could not be determined (never surfaced)
  - PersistenceError: store read/write failure
  - PrivilegedCallError: server-side privileged call failed (password, delete)
  - IdentityProviderError: provider rejected an operation (carries a code)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import uuid4


@dataclass(frozen=True)
class ErrorResponse:
    error_code: str
    message: str
    error_id: str

    def to_dict(self) -> dict:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "error_id": self.error_id,
        }


class DirectoryError(Exception):
    """Base for internal errors: error_code + error_id + message."""

    error_code: str = "DIRECTORY_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error_code=self.error_code, message=self.message, error_id=self.error_id
        )


class FormatError(DirectoryError, ValueError):
    """Malformed IPv4 address or range spec."""

    error_code: str = "FORMAT_ERROR"


class AuthReason(str, Enum):
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ACCOUNT_DEACTIVATED = "ACCOUNT_DEACTIVATED"
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"


INVALID_CREDENTIALS_MESSAGE = "Failed to sign in. Please check your credentials."
ACCOUNT_DEACTIVATED_MESSAGE = (
    "Your account has been deactivated. Please contact your administrator."
)


class AuthError(DirectoryError):
    """Authentication failure. Messages are generic on purpose."""

    error_code: str = "AUTH_ERROR"

    def __init__(self, reason: AuthReason, message: str | None = None):
        self.reason = reason
        super().__init__(message or _AUTH_MESSAGES[reason])

    @classmethod
    def invalid_credentials(cls) -> "AuthError":
        return cls(AuthReason.INVALID_CREDENTIALS)

    @classmethod
    def account_deactivated(cls) -> "AuthError":
        return cls(AuthReason.ACCOUNT_DEACTIVATED)

    @classmethod
    def authentication_required(cls) -> "AuthError":
        return cls(AuthReason.AUTHENTICATION_REQUIRED)


_AUTH_MESSAGES: dict[AuthReason, str] = {
    AuthReason.INVALID_CREDENTIALS: INVALID_CREDENTIALS_MESSAGE,
    AuthReason.ACCOUNT_DEACTIVATED: ACCOUNT_DEACTIVATED_MESSAGE,
    AuthReason.AUTHENTICATION_REQUIRED: "Authentication required.",
}


class LookupFailure(DirectoryError):
    """Every origin lookup provider failed or answered garbage."""

    error_code: str = "LOOKUP_FAILURE"


class PersistenceError(DirectoryError):
    """Store errors (connection, query, timeout, pool)."""

    error_code: str = "PERSISTENCE_ERROR"


class IdentityProviderError(DirectoryError):
    """Provider-side rejection, e.g. code='auth/email-already-in-use'."""

    error_code: str = "IDENTITY_PROVIDER_ERROR"

    def __init__(self, code: str, message: str | None = None):
        self.code = code
        super().__init__(message or code)


class PrivilegedCallError(DirectoryError):
    """
    Failure of a privileged server-side call.

    `code` keeps the provider code when one was recognised, so the API can
    answer with the specific reason; unknown failures carry code=None and a
    generic message.
    """

    error_code: str = "PRIVILEGED_CALL_ERROR"

    def __init__(self, message: str, code: str | None = None, **kwargs):
        self.code = code
        super().__init__(message, **kwargs)


# Provider codes the UI can explain; anything else gets the generic message.
PROVIDER_ERROR_MESSAGES: dict[str, str] = {
    "auth/email-already-in-use": "This email is already registered.",
    "auth/invalid-email": "Please enter a valid email address.",
    "auth/weak-password": "Password is too weak.",
    "auth/user-not-found": "No account exists for this email.",
    "auth/invalid-argument": "Email and password are required.",
}

GENERIC_PRIVILEGED_FAILURE = "The operation could not be completed. Please try again."


def provider_message(code: str | None) -> str:
    return PROVIDER_ERROR_MESSAGES.get(code or "", GENERIC_PRIVILEGED_FAILURE)
