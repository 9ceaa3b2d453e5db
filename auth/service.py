"""
auth/service.py -- Registration and login flows.

AuthenticationService holds no per-request state. Each call is a complete
flow over the directory, hasher, and issuer it was constructed with.

Login [C1]:
  Unknown email and wrong password both raise InvalidCredentials with the
  same message, and both pay one bcrypt verification (against a dummy digest
  when the email is unknown) so response time does not reveal whether the
  email exists.

Registration:
  DuplicateEmailError -> RegistrationConflict, ValidationError -> InvalidInput.
  The caller gets a PublicUser, never the stored record.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging

from auth.directory import UserDirectory, to_public
from auth.errors import (
    DuplicateEmailError,
    InvalidCredentials,
    InvalidInput,
    InvalidToken,
    RegistrationConflict,
    UserNotFound,
    ValidationError,
)
from auth.hashing import CredentialHasher
from auth.models import PublicUser, User
from auth.tokens import TokenIssuer

logger = logging.getLogger("identity.auth")


class AuthenticationService:
    def __init__(self, directory: UserDirectory, hasher: CredentialHasher, issuer: TokenIssuer) -> None:
        self._directory = directory
        self._hasher = hasher
        self._issuer = issuer

    def register(self, email: str, password: str, first_name: str, last_name: str) -> PublicUser:
        """Create an account and return its public projection."""
        try:
            user = self._directory.create(email, first_name, last_name, password)
        except DuplicateEmailError as exc:
            raise RegistrationConflict() from exc
        except ValidationError as exc:
            raise InvalidInput(exc.message) from exc
        logger.info("Registered user %s", user.id)
        return to_public(user)

    def login(self, email: str, password: str) -> str:
        """Check credentials and return a signed access token."""
        try:
            user = self._directory.find_by_email(email) if isinstance(email, str) else None
        except UserNotFound:
            user = None

        if user is None:
            # Equalize timing -- do NOT return before running bcrypt [C1]
            self._hasher.verify_dummy(password if isinstance(password, str) else "")
            logger.info("Login failed")
            raise InvalidCredentials()

        if not self._hasher.verify(password, user.password_hash):
            logger.info("Login failed")
            raise InvalidCredentials()

        logger.info("Login: %s", user.id)
        return self._issuer.issue(user.id)

    def authenticate(self, token: str) -> User:
        """Resolve a bearer token to the user it names.

        Raises InvalidToken or ExpiredToken. A valid token for a deleted user
        is InvalidToken.
        """
        subject = self._issuer.verify(token)
        try:
            return self._directory.find_by_id(subject)
        except UserNotFound as exc:
            raise InvalidToken() from exc
