"""
auth/models.py -- Domain dataclasses for identity entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the store, directory, and service do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """A registered identity.

    email is stored normalized (stripped, lower-cased) -- see
    auth.store.normalize_email. password_hash is a bcrypt digest, never the
    plaintext. created_at / updated_at are ISO 8601 UTC strings set by the
    store on write; they are "" before the record is persisted.
    """

    id: str
    email: str
    first_name: str
    last_name: str
    password_hash: str
    created_at: str = ""
    updated_at: str = ""


@dataclass(frozen=True)
class PublicUser:
    """External projection of a User. Has no password_hash field at all."""

    id: str
    email: str
    first_name: str
    last_name: str
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class TokenClaim:
    """Facts asserted by an issued access token. Never persisted.

    subject references User.id; the claim does not embed the user.
    Valid while issued_at <= now < expires_at.
    """

    subject: str
    issued_at: datetime
    expires_at: datetime
