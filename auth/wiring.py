"""
auth/wiring.py -- Startup construction of the identity components.

build_identity() is the single place components are created. Order follows
the dependency graph: leaves (hasher, issuer, store) first, then the
directory, then the service. Everything is passed explicitly through
constructors; there is no module-level registry.

This module takes a Settings-shaped object rather than importing core.config
so tests and the CLI can hand in their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from auth.directory import UserDirectory
from auth.hashing import CredentialHasher
from auth.service import AuthenticationService
from auth.store import UserStore
from auth.tokens import TokenIssuer

if TYPE_CHECKING:
    from core.config import Settings


@dataclass
class Identity:
    hasher: CredentialHasher
    issuer: TokenIssuer
    store: UserStore
    directory: UserDirectory
    auth: AuthenticationService

    def close(self) -> None:
        self.store.close()


def build_identity(settings: Settings, store: UserStore | None = None) -> Identity:
    """Construct all identity components from settings.

    Pass an existing store to reuse its engine (tests use isolated in-memory
    stores this way).
    """
    hasher = CredentialHasher(rounds=settings.bcrypt_rounds)
    issuer = TokenIssuer(secret_key=settings.secret_key, ttl_seconds=settings.token_expire_seconds)
    if store is None:
        store = UserStore(settings.database_url)
    directory = UserDirectory(store, hasher)
    auth = AuthenticationService(directory, hasher, issuer)
    return Identity(hasher=hasher, issuer=issuer, store=store, directory=directory, auth=auth)
