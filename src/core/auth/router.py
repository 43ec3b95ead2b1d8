from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.auth.dependencies import CurrentUser
from src.core.auth.models import User
from src.core.auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    TokenResponse,
    UserResponse,
)
from src.core.auth.service import AuthService
from src.core.database import get_db
from src.modules.admissions.models import Admission
from src.shared.schemas import SuccessResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])


async def _latest_student_id(db: AsyncSession, user: User) -> str | None:
    if user.is_admin:
        return None
    result = await db.execute(
        select(Admission.student_id)
        .where(Admission.user_id == user.id)
        .order_by(Admission.created_at.desc(), Admission.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


@router.post("/login", response_model=SuccessResponse[LoginResponse])
async def login(
    request: Request,
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate user and return tokens.

    Students also get the student ID of their latest admission, which is
    what the portal shows on every fee screen.
    """
    auth_service = AuthService(db)

    ip_address = request.client.host if request.client else None

    user, access_token, refresh_token = await auth_service.authenticate(
        email=data.email,
        password=data.password,
        ip_address=ip_address,
    )

    student_id = await _latest_student_id(db, user)
    if student_id:
        message = f"Welcome, {user.full_name} ({student_id})"
    else:
        message = "Login successful"

    return SuccessResponse(
        data=LoginResponse(
            user=UserResponse.model_validate(user),
            access_token=access_token,
            refresh_token=refresh_token,
            student_id=student_id,
        ),
        message=message,
    )


@router.post("/refresh", response_model=SuccessResponse[TokenResponse])
async def refresh_tokens(
    data: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    """Refresh access token using refresh token."""
    auth_service = AuthService(db)

    access_token, refresh_token = await auth_service.refresh_tokens(data.refresh_token)

    return SuccessResponse(
        data=TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
        ),
        message="Tokens refreshed",
    )


@router.get("/me", response_model=SuccessResponse[UserResponse])
async def get_current_user_info(current_user: CurrentUser):
    """Get current authenticated user info."""
    return SuccessResponse(
        data=UserResponse.model_validate(current_user),
        message="User info retrieved",
    )


@router.post("/change-password", response_model=SuccessResponse[None])
async def change_password(
    data: ChangePasswordRequest,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    """Change the caller's password (students start with their mobile number)."""
    await AuthService(db).change_password(
        current_user, data.current_password, data.new_password
    )
    return SuccessResponse(data=None, message="Password changed")
