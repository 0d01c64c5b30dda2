"""Authentication schemas."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from app.modules.users.schemas import UserResponse


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    remember: bool = False


class LoginResponse(BaseModel):
    """Login response: the bearer token is returned only once."""

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserResponse


class VerifyResponse(BaseModel):
    valid: bool = True
    user: UserResponse


class LogoutResponse(BaseModel):
    success: bool = True
