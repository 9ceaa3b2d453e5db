"""
auth/directory.py -- User directory: validated CRUD over UserStore.

The directory is the only place that turns a plaintext password into a
password_hash. It validates input, calls CredentialHasher, and delegates
persistence to UserStore. Store errors (UserNotFound, DuplicateEmailError,
StorageError) pass through unchanged -- they are already in the external
taxonomy.

to_public() is the projection used for anything leaving the service layer.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import re
import uuid

from auth.errors import ValidationError
from auth.hashing import MAX_PASSWORD_BYTES, CredentialHasher
from auth.models import PublicUser, User
from auth.store import UserStore, normalize_email

logger = logging.getLogger("identity.auth")

MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 100

# Deliberately loose: one "@", no whitespace, a dot in the domain part.
# Deliverability is not something a regex can decide.
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_UPDATABLE = frozenset({"email", "first_name", "last_name", "password"})


def to_public(user: User) -> PublicUser:
    return PublicUser(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _validate_email(email) -> str:
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("Email is required.")
    normalized = normalize_email(email)
    if len(normalized) > MAX_EMAIL_LENGTH or not _EMAIL_RE.match(normalized):
        raise ValidationError("Email address is not valid.")
    return normalized


def _validate_name(value, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required.")
    value = value.strip()
    if len(value) > MAX_NAME_LENGTH:
        raise ValidationError(f"{label} must be at most {MAX_NAME_LENGTH} characters.")
    return value


def _validate_password(password) -> str:
    if not isinstance(password, str) or not password:
        raise ValidationError("Password is required.")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    return password


class UserDirectory:
    """Create, read, update, and delete users.

    Usage:
        directory = UserDirectory(store, hasher)
        user = directory.create("a@x.com", "A", "B", "pw123")
    """

    def __init__(self, store: UserStore, hasher: CredentialHasher) -> None:
        self._store = store
        self._hasher = hasher

    def create(self, email: str, first_name: str, last_name: str, password: str) -> User:
        """Validate, hash the password, and insert a new user.

        Raises ValidationError, DuplicateEmailError, HashingError, StorageError.
        """
        user = User(
            id=str(uuid.uuid4()),
            email=_validate_email(email),
            first_name=_validate_name(first_name, "First name"),
            last_name=_validate_name(last_name, "Last name"),
            password_hash=self._hasher.hash(_validate_password(password)),
        )
        created = self._store.insert(user)
        logger.info("Created user %s", created.id)
        return created

    def update(self, user_id: str, **changes) -> User:
        """Apply a partial update. A new password is re-hashed before storage."""
        if not changes:
            raise ValidationError("No fields to update.")
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}.")

        fields: dict = {}
        if "email" in changes:
            fields["email"] = _validate_email(changes["email"])
        if "first_name" in changes:
            fields["first_name"] = _validate_name(changes["first_name"], "First name")
        if "last_name" in changes:
            fields["last_name"] = _validate_name(changes["last_name"], "Last name")
        if "password" in changes:
            fields["password_hash"] = self._hasher.hash(_validate_password(changes["password"]))

        updated = self._store.update(user_id, **fields)
        logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(changes)))
        return updated

    def remove(self, user_id: str) -> None:
        self._store.delete(user_id)
        logger.info("Deleted user %s", user_id)

    def find_by_id(self, user_id: str) -> User:
        return self._store.find_by_id(user_id)

    def find_by_email(self, email: str) -> User:
        return self._store.find_by_email(email)

    def list_all(self) -> list[User]:
        return self._store.list_all()
