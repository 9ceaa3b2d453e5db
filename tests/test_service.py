"""Unit tests for auth/service.py -- AuthenticationService.

Covers:
- register() returns a PublicUser and maps errors to RegistrationConflict / InvalidInput
- concurrent registrations of one email: exactly one succeeds
- login() issues a token for the right user; wrong password and unknown email
  fail identically with InvalidCredentials
- unknown-email logins still run a bcrypt verification [C1]
- authenticate() resolves tokens and rejects tokens for deleted users
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from auth.errors import (
    DuplicateEmailError,
    ExpiredToken,
    InvalidCredentials,
    InvalidInput,
    InvalidToken,
    RegistrationConflict,
    ValidationError,
)
from auth.models import PublicUser
from auth.store import UserStore
from auth.wiring import Identity, build_identity


class TestRegister:
    def test_register_returns_public_user(self, identity: Identity) -> None:
        public = identity.auth.register("a@x.com", "pw123", "A", "B")
        assert isinstance(public, PublicUser)
        assert not hasattr(public, "password_hash")
        assert public.email == "a@x.com"
        assert identity.directory.find_by_id(public.id).password_hash != "pw123"

    def test_duplicate_becomes_registration_conflict(self, identity: Identity) -> None:
        identity.auth.register("a@x.com", "pw123", "A", "B")
        with pytest.raises(RegistrationConflict) as excinfo:
            identity.auth.register("A@x.com", "other", "C", "D")
        assert isinstance(excinfo.value, DuplicateEmailError)
        assert excinfo.value.status_code == 409

    def test_validation_becomes_invalid_input(self, identity: Identity) -> None:
        with pytest.raises(InvalidInput) as excinfo:
            identity.auth.register("not-an-email", "pw123", "A", "B")
        assert isinstance(excinfo.value, ValidationError)
        assert excinfo.value.status_code == 400
        assert "email" in excinfo.value.message.lower()

    def test_concurrent_registration_exactly_one_wins(self, settings, tmp_path) -> None:
        identity = build_identity(settings, store=UserStore(f"sqlite:///{tmp_path / 'register.db'}"))
        barrier = threading.Barrier(6)

        def attempt(i: int):
            barrier.wait()
            try:
                return identity.auth.register("racer@x.com", f"pw-{i}", "R", str(i))
            except RegistrationConflict as exc:
                return exc

        try:
            with ThreadPoolExecutor(max_workers=6) as pool:
                results = list(pool.map(attempt, range(6)))
            assert sum(isinstance(r, PublicUser) for r in results) == 1
            assert sum(isinstance(r, RegistrationConflict) for r in results) == 5
            assert identity.store.count() == 1
        finally:
            identity.close()


class TestLogin:
    def test_login_returns_token_for_user(self, identity: Identity) -> None:
        public = identity.auth.register("a@x.com", "pw123", "A", "B")
        token = identity.auth.login("a@x.com", "pw123")
        assert identity.issuer.verify(token) == public.id

    def test_login_email_is_case_insensitive(self, identity: Identity) -> None:
        identity.auth.register("a@x.com", "pw123", "A", "B")
        assert identity.auth.login(" A@X.com", "pw123")

    def test_wrong_password_and_unknown_email_indistinguishable(self, identity: Identity) -> None:
        identity.auth.register("a@x.com", "pw123", "A", "B")
        with pytest.raises(InvalidCredentials) as wrong_pw:
            identity.auth.login("a@x.com", "wrong")
        with pytest.raises(InvalidCredentials) as no_user:
            identity.auth.login("nobody@x.com", "pw123")
        assert type(wrong_pw.value) is type(no_user.value)
        assert wrong_pw.value.code == no_user.value.code
        assert wrong_pw.value.message == no_user.value.message

    def test_unknown_email_still_runs_bcrypt(self, identity: Identity) -> None:
        """Timing equalization [C1]: the not-found path must pay for a verify."""
        with patch.object(identity.hasher, "verify_dummy", wraps=identity.hasher.verify_dummy) as dummy:
            with pytest.raises(InvalidCredentials):
                identity.auth.login("nobody@x.com", "pw123")
        dummy.assert_called_once()

    @pytest.mark.parametrize("email,password", [("", "pw123"), ("a@x.com", ""), (None, None)])
    def test_degenerate_credentials(self, identity: Identity, email, password) -> None:
        identity.auth.register("a@x.com", "pw123", "A", "B")
        with pytest.raises(InvalidCredentials):
            identity.auth.login(email, password)


class TestAuthenticate:
    def test_authenticate_returns_user(self, identity: Identity) -> None:
        public = identity.auth.register("a@x.com", "pw123", "A", "B")
        token = identity.auth.login("a@x.com", "pw123")
        assert identity.auth.authenticate(token).id == public.id

    def test_deleted_user_token_is_invalid(self, identity: Identity) -> None:
        public = identity.auth.register("a@x.com", "pw123", "A", "B")
        token = identity.auth.login("a@x.com", "pw123")
        identity.directory.remove(public.id)
        with pytest.raises(InvalidToken):
            identity.auth.authenticate(token)

    def test_expired_token_propagates(self, identity: Identity) -> None:
        public = identity.auth.register("a@x.com", "pw123", "A", "B")
        token = identity.issuer.issue(public.id)
        with patch.object(identity.issuer, "decode_claim", side_effect=ExpiredToken()):
            with pytest.raises(ExpiredToken):
                identity.auth.authenticate(token)


def test_end_to_end_scenario(identity: Identity) -> None:
    """register -> login -> verify -> wrong-password login."""
    public = identity.auth.register("a@x.com", "pw123", "A", "B")
    token = identity.auth.login("a@x.com", "pw123")
    assert identity.issuer.verify(token) == public.id
    with pytest.raises(InvalidCredentials):
        identity.auth.login("a@x.com", "wrong")
