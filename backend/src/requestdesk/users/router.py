"""User management endpoints (SUPER_ADMIN only).

Super admins can:
- Register the profile of a new account
- List profiles, optionally by role
- Get, update (names, role, designation, active flag) and delete a profile

Super admin profiles themselves are read-only here.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..auth.dependencies import require_role
from ..auth.identity import IdentityFacts
from ..auth.roles import UserRole
from ..dependencies import get_user_service
from .schemas import UserCreate, UserListResponse, UserResponse, UserUpdate
from .service import UserService

router = APIRouter(prefix="/users", tags=["User Management"])

super_admin_only = require_role(UserRole.SUPER_ADMIN)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a user profile",
)
def create_user(
    data: UserCreate,
    actor: IdentityFacts = Depends(super_admin_only),
    service: UserService = Depends(get_user_service),
):
    """Raises 409 when the id or email is already registered."""
    user = service.create_user(
        actor,
        email=data.email,
        first_name=data.first_name,
        last_name=data.last_name,
        role=data.role,
        user_id=data.id,
        admission_number=data.admission_number,
        designation=data.designation,
        phone=data.phone,
        gender=data.gender,
    )
    return UserResponse.model_validate(user)


@router.get("", response_model=UserListResponse, summary="List users")
def list_users(
    role: Optional[UserRole] = Query(None, description="ADMIN includes super admins"),
    actor: IdentityFacts = Depends(super_admin_only),
    service: UserService = Depends(get_user_service),
):
    users = service.list_users(actor, role)
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total=len(users),
    )


@router.get("/{user_id}", response_model=UserResponse, summary="Get user by id")
def get_user(
    user_id: str,
    actor: IdentityFacts = Depends(super_admin_only),
    service: UserService = Depends(get_user_service),
):
    return UserResponse.model_validate(service.get_user(actor, user_id))


@router.patch("/{user_id}", response_model=UserResponse, summary="Update user")
def update_user(
    user_id: str,
    data: UserUpdate,
    actor: IdentityFacts = Depends(super_admin_only),
    service: UserService = Depends(get_user_service),
):
    """Deactivating a user (is_active=false) blocks their tokens with 403."""
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    return UserResponse.model_validate(service.update_user(actor, user_id, changes))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete user")
def delete_user(
    user_id: str,
    actor: IdentityFacts = Depends(super_admin_only),
    service: UserService = Depends(get_user_service),
):
    service.delete_user(actor, user_id)
