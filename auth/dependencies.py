"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Credentials come from the Authorization: Bearer <token> header only. The
token is verified by TokenIssuer (through AuthenticationService.authenticate)
before any directory call in the route body runs.

get_current_user() raises HTTP 401 with a distinct error code for each
failure so clients can tell "log in" from "log in again":
  unauthorized   -- no bearer token supplied
  invalid_token  -- malformed, tampered, or for a deleted user
  token_expired  -- signature fine, validity window closed

Layer rule: auth/dependencies.py may import from fastapi (for HTTPException /
Request) because this module is part of the FastAPI dependency injection
system. No imports from api/ or core/.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.errors import AuthError
from auth.models import User
from auth.service import AuthenticationService


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_user(request: Request) -> User:
    """Require a valid bearer token. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    token = _bearer_token(request)
    if token is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    auth: AuthenticationService = request.app.state.identity.auth
    try:
        return auth.authenticate(token)
    except AuthError as exc:
        raise HTTPException(
            status_code=401,
            detail={"code": exc.code, "message": exc.message},
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
