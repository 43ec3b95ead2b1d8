"""API endpoints for the Fees module."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.auth.dependencies import AdminUser, CurrentUser, StudentUser
from src.core.database.session import get_db
from src.modules.fees.schemas import (
    DiscountApply,
    FeeDetails,
    FeeOverview,
    FeeSummary,
    PaymentPlanChange,
)
from src.modules.fees.service import FeeService
from src.shared.schemas.base import ApiResponse
from src.shared.utils.money import format_inr

router = APIRouter(prefix="/fees", tags=["Fees"])


@router.get("/overview", response_model=ApiResponse[FeeOverview])
async def get_fee_overview(
    current_user: AdminUser,
    include_unapproved: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """Institute-wide totals for the fee manager."""
    service = FeeService(db)
    return ApiResponse(data=await service.get_fee_overview(include_unapproved))


@router.get("/me", response_model=ApiResponse[FeeDetails])
async def get_my_fees(
    current_user: StudentUser,
    db: AsyncSession = Depends(get_db),
):
    """Fee dashboard of the logged-in student."""
    service = FeeService(db)
    admission = await service.get_admission_for_student(current_user)
    return ApiResponse(data=await service.build_details(admission))


@router.get("/admissions/{admission_id}/summary", response_model=ApiResponse[FeeSummary])
async def get_fee_summary(
    admission_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    service = FeeService(db)
    admission = await service.get_admission(admission_id)
    service.ensure_can_view(admission, current_user)
    return ApiResponse(data=await service.summarize_admission(admission))


@router.get("/admissions/{admission_id}", response_model=ApiResponse[FeeDetails])
async def get_fee_details(
    admission_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    """Summary, installment schedule and payments of one admission."""
    service = FeeService(db)
    admission = await service.get_admission(admission_id)
    service.ensure_can_view(admission, current_user)
    return ApiResponse(data=await service.build_details(admission))


@router.put("/admissions/{admission_id}/discount", response_model=ApiResponse[FeeSummary])
async def apply_discount(
    admission_id: int,
    data: DiscountApply,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = FeeService(db)
    summary = await service.apply_discount(admission_id, data.discount, current_user.id)
    return ApiResponse(
        data=summary,
        message=f"Discount of {format_inr(data.discount)} applied",
    )


@router.put("/admissions/{admission_id}/plan", response_model=ApiResponse[FeeDetails])
async def change_payment_plan(
    admission_id: int,
    data: PaymentPlanChange,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = FeeService(db)
    details = await service.change_payment_plan(admission_id, data, current_user.id)
    return ApiResponse(data=details, message="Payment plan updated")
