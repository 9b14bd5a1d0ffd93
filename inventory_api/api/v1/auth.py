"""
Auth router — login, registration and current-user endpoints.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from inventory_api.api.deps import get_current_user, get_token_service
from inventory_api.api.v1.users import RoleName, UserSummary
from inventory_api.core.exceptions import AuthenticationError
from inventory_api.core.security import CurrentUser, TokenService
from inventory_api.database import get_db
from inventory_api.services.users import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


# ── Request / Response schemas ────────────────────────────────────────────────


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserSummary
    expiration: datetime


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: RoleName = "Employee"


# ── Endpoints ─────────────────────────────────────────────────────────────────


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Authenticate with email + password.
    Unknown email, inactive account and wrong password all get the same 401.
    """
    user = UserService(db).authenticate(body.email, body.password)
    if not user:
        raise AuthenticationError("Invalid email or password.")

    issued = tokens.issue(user, ttl_minutes=tokens.login_expiry_minutes)
    return LoginResponse(
        token=issued.token,
        user=UserSummary.model_validate(user),
        expiration=issued.expires_at,
    )


@router.post("/register", response_model=UserSummary, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    user = UserService(db).create_user(body.name, body.email, body.password, body.role)
    return UserSummary.model_validate(user)


@router.get("/me", response_model=UserSummary)
def me(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Return the currently authenticated user's profile."""
    user = UserService(db).get_profile(current_user, current_user.user_id)
    return UserSummary.model_validate(user)
