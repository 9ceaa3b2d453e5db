"""
auth/tokens.py -- Signed, time-bounded access tokens.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry only the subject (user id) and
       the validity window (iat, exp). Role or profile data is looked up
       fresh from the store on each request, never trusted from the token.

  Validity: a token is accepted while iat <= now < exp. Expiry is checked
       here against the injected clock rather than by jose, so the window is
       half-open and tests can move time without sleeping.

  Errors: InvalidToken (malformed, wrong key, wrong algorithm, missing
       claims, issued in the future) and ExpiredToken (signature fine, window
       closed) are distinct so the API can tell the user to log in again.
       Both deny access.

  Key: held only by the TokenIssuer instance and never changed after
       construction. The algorithm list passed to decode is pinned so an
       attacker cannot downgrade to "none" or switch to an asymmetric alg.

Layer rule: no imports from api/. Config values are passed in by
auth/wiring.py.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from jose import JWTError, jwt

from auth.errors import ExpiredToken, InvalidToken
from auth.models import TokenClaim

logger = logging.getLogger("identity.auth")

ALGORITHM = "HS256"
DEFAULT_TTL_SECONDS = 3600


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """Issue and verify HS256 access tokens.

    Usage:
        issuer = TokenIssuer(secret_key=settings.secret_key, ttl_seconds=3600)
        token = issuer.issue(user.id)
        user_id = issuer.verify(token)
    """

    def __init__(
        self,
        secret_key: str,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret_key:
            raise ValueError("secret_key is required")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._secret_key = secret_key
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def issue(self, subject: str) -> str:
        """Encode a signed token for subject, valid for ttl_seconds from now."""
        if not subject:
            raise ValueError("subject is required")
        issued_at = int(self._clock().timestamp())
        payload = {
            "sub": subject,
            "iat": issued_at,
            "exp": issued_at + self.ttl_seconds,
        }
        return jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)

    def decode_claim(self, token: str) -> TokenClaim:
        """Verify token and return its claim. Raises InvalidToken or ExpiredToken."""
        if not token or not isinstance(token, str):
            raise InvalidToken()
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[ALGORITHM],
                # jose re-enables verify_exp when require_exp is set, so claim
                # presence is checked below instead of through require_*.
                options={"verify_exp": False},
            )
        except JWTError as exc:
            logger.debug("Token rejected: %s", type(exc).__name__)
            raise InvalidToken() from exc

        subject = payload.get("sub")
        issued_at = payload.get("iat")
        expires_at = payload.get("exp")
        if not isinstance(subject, str) or not subject:
            raise InvalidToken()
        if not isinstance(issued_at, int) or not isinstance(expires_at, int) or expires_at <= issued_at:
            raise InvalidToken()

        now = self._clock().timestamp()
        if issued_at > now:
            raise InvalidToken()
        if now >= expires_at:
            raise ExpiredToken()

        return TokenClaim(
            subject=subject,
            issued_at=datetime.fromtimestamp(issued_at, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
        )

    def verify(self, token: str) -> str:
        """Return the subject (user id) of a valid token."""
        return self.decode_claim(token).subject
