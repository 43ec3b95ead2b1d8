"""API endpoints for Admissions module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.auth.dependencies import AdminUser, StudentUser
from src.core.database.session import get_db
from src.modules.admissions.models import FeeStatus
from src.modules.admissions.schemas import (
    AdminAdmissionCreate,
    AdmissionCreate,
    AdmissionFilters,
    AdmissionResponse,
    AdmissionUpdate,
)
from src.modules.admissions.service import AdmissionService
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/admissions", tags=["Admissions"])


@router.post(
    "",
    response_model=ApiResponse[AdmissionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_admission(
    data: AdmissionCreate,
    db: AsyncSession = Depends(get_db),
):
    """Public admission form. No login required."""
    service = AdmissionService(db)
    admission = await service.create_admission(data)
    return ApiResponse(
        data=AdmissionResponse.model_validate(admission),
        message=f"Admission submitted. Your student ID is {admission.student_id}",
    )


@router.post(
    "/admin",
    response_model=ApiResponse[AdmissionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_admin_admission(
    data: AdminAdmissionCreate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = AdmissionService(db)
    admission = await service.create_admin_admission(data, current_user.id)
    return ApiResponse(
        data=AdmissionResponse.model_validate(admission),
        message="Admission created successfully",
    )


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[AdmissionResponse]],
)
async def list_admissions(
    current_user: AdminUser,
    search: str | None = Query(None),
    payment_status: FeeStatus | None = Query(None),
    approved: bool | None = Query(None),
    course_id: int | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List admissions with search and filters."""
    service = AdmissionService(db)
    filters = AdmissionFilters(
        search=search,
        payment_status=payment_status,
        approved=approved,
        course_id=course_id,
        page=page,
        limit=limit,
    )
    admissions, total = await service.list_admissions(filters)
    return ApiResponse(
        data=PaginatedResponse.create(
            items=[AdmissionResponse.model_validate(a) for a in admissions],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get("/me", response_model=ApiResponse[AdmissionResponse])
async def get_my_admission(
    current_user: StudentUser,
    db: AsyncSession = Depends(get_db),
):
    service = AdmissionService(db)
    admission = await service.get_my_admission(current_user)
    return ApiResponse(data=AdmissionResponse.model_validate(admission))


@router.get("/{admission_id}", response_model=ApiResponse[AdmissionResponse])
async def get_admission(
    admission_id: int,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = AdmissionService(db)
    admission = await service.get_admission_by_id(admission_id)
    return ApiResponse(data=AdmissionResponse.model_validate(admission))


@router.post("/{admission_id}/approve", response_model=ApiResponse[AdmissionResponse])
async def approve_admission(
    admission_id: int,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = AdmissionService(db)
    admission = await service.approve_admission(admission_id, current_user.id)
    return ApiResponse(
        data=AdmissionResponse.model_validate(admission),
        message="Admission approved",
    )


@router.patch("/{admission_id}", response_model=ApiResponse[AdmissionResponse])
async def update_admission(
    admission_id: int,
    data: AdmissionUpdate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = AdmissionService(db)
    admission = await service.update_admission(admission_id, data, current_user.id)
    return ApiResponse(
        data=AdmissionResponse.model_validate(admission),
        message="Admission updated successfully",
    )


@router.delete("/{admission_id}", response_model=ApiResponse[None])
async def delete_admission(
    admission_id: int,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Delete an admission that has not been approved yet."""
    service = AdmissionService(db)
    await service.delete_admission(admission_id, current_user.id)
    return ApiResponse(data=None, message="Admission deleted")
