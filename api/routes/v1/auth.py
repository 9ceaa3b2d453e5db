"""
api/routes/v1/auth.py -- Registration and login REST endpoints.

Routes:
  POST /api/v1/register   -- create an account; 201 with the public user
  POST /api/v1/login      -- email + password; 200 with a bearer token
  GET  /api/v1/me         -- current user info (requires auth)

Security:
  [C1] AuthenticationService.login() provides timing equalization -- use it,
       never inline find_by_email() + verify().
  [M5] Cache-Control: no-store on login responses.
  Wrong password and unknown email produce the same 401 body.

Handlers are plain `def` so FastAPI runs them in its thread pool; bcrypt
work never blocks the event loop.

Error mapping: IdentityError subclasses propagate to the handler registered
in api/main.py, which renders the error envelope with the error's status.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse, RegisterRequest, UserResponse
from auth.dependencies import get_current_user
from auth.directory import to_public
from auth.models import User
from auth.wiring import Identity

# Auth policy:
# - POST /api/v1/register: public -- account creation
# - POST /api/v1/login:    public -- login endpoint must be unauthenticated
# - GET  /api/v1/me:       requires auth (get_current_user)
router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> UserResponse:
    """Create a user account. The response never includes the password hash."""
    identity: Identity = request.app.state.identity
    public = identity.auth.register(
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    return UserResponse.from_public(public)


@router.post("/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return a bearer token.

    Returns the same generic error for unknown email and wrong password
    ("invalid_credentials") to avoid leaking account existence.
    """
    identity: Identity = request.app.state.identity
    token = identity.auth.login(body.email, body.password)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            access_token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=identity.issuer.ttl_seconds,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the currently authenticated user."""
    return UserResponse.from_public(to_public(current_user))
