"""User profile endpoints: read (owner or admin), update and delete (owner only)."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.deps import get_user_service, require_roles
from app.models import Role
from app.schemas.auth import CurrentUser
from app.schemas.users import MessageResponse, UpdateUserRequest, UserResponse
from app.services.users import UserService

router = APIRouter()

AnyRole = Annotated[CurrentUser, Depends(require_roles(Role.USER, Role.ADMIN))]
UserRole = Annotated[CurrentUser, Depends(require_roles(Role.USER))]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, current_user: AnyRole, users: UserServiceDep) -> UserResponse:
    return users.get_user(user_id, current_user)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    body: UpdateUserRequest,
    current_user: UserRole,
    users: UserServiceDep,
) -> UserResponse:
    """Change the caller's own email and password."""
    return users.update_user(user_id, body.email, body.password, current_user)


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(user_id: int, current_user: UserRole, users: UserServiceDep) -> MessageResponse:
    """Delete the caller's own account and publish the deleted event."""
    return users.delete_user(user_id, current_user)
