"""
Inventory API — API v1: Users
Every route requires a bearer token; listing, creation and deletion are
admin-only, reads and updates are open to the user themselves or an admin.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from inventory_api.api.deps import get_current_user, require_admin
from inventory_api.core.security import CurrentUser
from inventory_api.database import get_db
from inventory_api.services.users import UserService

router = APIRouter(prefix="/usuarios", tags=["users"])

RoleName = Literal["Admin", "Employee"]


class UserSummary(BaseModel):
    """External view of a user; the password hash is never included."""

    id: int
    name: str
    email: str
    role: str
    created_at: datetime
    active: bool

    class Config:
        from_attributes = True


class CreateUserRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: RoleName = "Employee"


class UpdateUserRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    role: RoleName
    active: bool = True


class ChangePasswordRequest(BaseModel):
    current_password: Optional[str] = None
    new_password: str = Field(..., min_length=6)


class MessageResponse(BaseModel):
    message: str


@router.get("", response_model=List[UserSummary])
def list_users(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    return [UserSummary.model_validate(u) for u in UserService(db).list_active()]


@router.get("/{user_id}", response_model=UserSummary)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    user = UserService(db).get_profile(current_user, user_id)
    return UserSummary.model_validate(user)


@router.post("", response_model=UserSummary, status_code=status.HTTP_201_CREATED)
def create_user(
    req: CreateUserRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    user = UserService(db).create_user(req.name, req.email, req.password, req.role)
    return UserSummary.model_validate(user)


@router.put("/{user_id}", response_model=MessageResponse)
def update_user(
    user_id: int,
    req: UpdateUserRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    UserService(db).update_user(
        current_user, user_id, req.name, req.email, req.role, req.active
    )
    return MessageResponse(message="User updated successfully")


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    UserService(db).deactivate_user(current_user, user_id)
    return MessageResponse(message="User deleted successfully")


@router.put("/{user_id}/cambiar-password", response_model=MessageResponse)
def change_password(
    user_id: int,
    req: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    UserService(db).change_password(
        current_user, user_id, req.current_password, req.new_password
    )
    return MessageResponse(message="Password updated successfully")
