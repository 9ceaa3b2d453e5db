"""
auth/hashing.py -- Password hashing (bcrypt, direct usage, no passlib wrapper).

Bcrypt is the right choice for low-entropy secrets because its cost factor
makes brute force expensive. Every hash() call draws a fresh salt from
bcrypt.gensalt(), so two hashes of the same password never match. The salt
and cost are embedded in the digest, which is what lets verify() re-derive.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

Input limit: bcrypt only consumes the first 72 bytes of its input. Longer
passwords are rejected with HashingError instead of being truncated, so two
different long passwords can never share a digest.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import bcrypt

from auth.errors import HashingError

MAX_PASSWORD_BYTES = 72
DEFAULT_ROUNDS = 12


class CredentialHasher:
    """One-way salted password hashing with a fixed work factor.

    Usage:
        hasher = CredentialHasher(rounds=12)
        digest = hasher.hash("s3cret")
        hasher.verify("s3cret", digest)   # True
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")
        self.rounds = rounds
        # Timing equalization dummy hash [C1]. Computed once at construction
        # so unknown-email logins pay the same bcrypt cost as real ones.
        self._dummy_hash = self.hash("identity_timing_dummy")

    @property
    def work_factor(self) -> int:
        return self.rounds

    def hash(self, plaintext: str) -> str:
        """Return a bcrypt digest of plaintext. Raises HashingError on unusable input."""
        if not isinstance(plaintext, str) or not plaintext:
            raise HashingError("Password must not be empty.")
        raw = plaintext.encode("utf-8")
        if len(raw) > MAX_PASSWORD_BYTES:
            raise HashingError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
        try:
            return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")
        except ValueError as exc:
            raise HashingError() from exc

    def verify(self, plaintext: str, digest: str) -> bool:
        """Return True if plaintext matches digest.

        bcrypt.checkpw re-derives with the digest's own salt and cost and
        compares in constant time. A malformed digest returns False.
        """
        if not isinstance(plaintext, str) or not isinstance(digest, str) or not plaintext:
            return False
        raw = plaintext.encode("utf-8")
        if len(raw) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(raw, digest.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    def verify_dummy(self, plaintext: str) -> None:
        """Burn one bcrypt verification against the dummy digest.

        Called on the unknown-email login path so response time does not
        reveal whether the email exists.
        """
        self.verify(plaintext or "x", self._dummy_hash)
