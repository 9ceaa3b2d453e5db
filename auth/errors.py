"""
auth/errors.py -- Error taxonomy for the identity service.

Every failure the auth layer reports is an IdentityError subclass carrying:
  code        -- stable machine-readable kind ("duplicate_email", ...)
  status_code -- the HTTP status the API layer answers with
  message     -- safe, user-facing text. Never contains stack traces, SQL,
                 hashes, or anything derived from a password.

Lower layers raise the most specific kind they know about. The service layer
translates into the external kinds (RegistrationConflict, InvalidInput,
InvalidCredentials) so callers never see raw database or bcrypt errors.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations


class IdentityError(Exception):
    """Base class for all identity service errors."""

    code = "identity_error"
    status_code = 500
    default_message = "Identity service error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Client-correctable (4xx)
# ---------------------------------------------------------------------------


class ValidationError(IdentityError):
    code = "validation_error"
    status_code = 400
    default_message = "Invalid user data."


class InvalidInput(ValidationError):
    """Registration input rejected. Raised by AuthenticationService.register."""

    code = "invalid_input"
    default_message = "Registration input is invalid."


class DuplicateEmailError(IdentityError):
    code = "duplicate_email"
    status_code = 409
    default_message = "A user with that email already exists."


class RegistrationConflict(DuplicateEmailError):
    code = "registration_conflict"
    default_message = "An account with that email already exists."


class UserNotFound(IdentityError):
    code = "not_found"
    status_code = 404
    default_message = "User not found."


class InvalidCredentials(IdentityError):
    """Login failed. Deliberately says nothing about which check failed."""

    code = "invalid_credentials"
    status_code = 401
    default_message = "Invalid email or password."


class AuthError(IdentityError):
    code = "unauthorized"
    status_code = 401
    default_message = "Authentication required."


class InvalidToken(AuthError):
    code = "invalid_token"
    default_message = "Invalid access token."


class ExpiredToken(AuthError):
    code = "token_expired"
    default_message = "Access token has expired. Please log in again."


# ---------------------------------------------------------------------------
# Infrastructure (5xx)
# ---------------------------------------------------------------------------


class HashingError(IdentityError):
    code = "hashing_error"
    status_code = 500
    default_message = "Password could not be processed."


class StorageError(IdentityError):
    code = "storage_error"
    status_code = 500
    default_message = "User storage is unavailable."
