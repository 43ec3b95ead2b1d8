from pydantic import EmailStr, Field

from src.shared.schemas import BaseSchema


class LoginRequest(BaseSchema):
    """Login request schema."""

    email: EmailStr
    password: str


class TokenResponse(BaseSchema):
    """Token response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseSchema):
    """Refresh token request schema."""

    refresh_token: str


class UserResponse(BaseSchema):
    """User response schema."""

    id: int
    email: str
    full_name: str
    phone: str | None
    role: str
    is_active: bool


class LoginResponse(TokenResponse):
    user: UserResponse
    # Latest admission of a student account
    student_id: str | None = None


class ChangePasswordRequest(BaseSchema):
    current_password: str
    new_password: str = Field(..., min_length=8, max_length=128)
