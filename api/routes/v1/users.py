"""
api/routes/v1/users.py -- User directory REST endpoints.

Routes:
  GET    /api/v1/users        -- list all users
  GET    /api/v1/users/{id}   -- one user; 404 if absent
  PATCH  /api/v1/users/{id}   -- partial update; a new password is re-hashed
  DELETE /api/v1/users/{id}   -- hard delete; 204

Every route depends on get_current_user, so the bearer token is verified
before the handler body (and therefore any directory call) runs.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.models import UserPatch, UserResponse
from auth.dependencies import get_current_user
from auth.directory import UserDirectory, to_public
from auth.models import User

router = APIRouter()


def _directory(request: Request) -> UserDirectory:
    return request.app.state.identity.directory


@router.get("/users", response_model=list[UserResponse])
def list_users(
    request: Request,
    current_user: User = Depends(get_current_user),
) -> list[UserResponse]:
    """List all user accounts ordered by email."""
    return [UserResponse.from_public(to_public(u)) for u in _directory(request).list_all()]


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    request: Request,
    user_id: str,
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    """Return one user by id."""
    return UserResponse.from_public(to_public(_directory(request).find_by_id(user_id)))


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    request: Request,
    user_id: str,
    body: UserPatch,
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    """Update the provided fields only. An empty body is a 400."""
    changes = body.model_dump(exclude_unset=True)
    updated = _directory(request).update(user_id, **changes)
    return UserResponse.from_public(to_public(updated))


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    request: Request,
    user_id: str,
    current_user: User = Depends(get_current_user),
) -> Response:
    """Permanently delete a user."""
    _directory(request).remove(user_id)
    return Response(status_code=204)
