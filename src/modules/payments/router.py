"""API endpoints for Payments module."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.auth.dependencies import AdminUser, CurrentUser, StudentUser
from src.core.database.session import get_db
from src.modules.fees.schemas import FeeSummary, LedgerUpdate
from src.modules.fees.service import FeeService
from src.modules.payments.models import PaymentMethod, PaymentStatus
from src.modules.payments.schemas import (
    ManualPaymentSubmit,
    PaymentFilters,
    PaymentHistoryEntry,
    PaymentListItem,
    PaymentRecord,
    PaymentReject,
    PaymentResponse,
    PaymentUpdate,
)
from src.modules.payments.service import PaymentService
from src.shared.schemas.base import ApiResponse, PaginatedResponse
from src.shared.utils.money import format_inr

router = APIRouter(prefix="/payments", tags=["Payments"])


def _ledger_message(result: LedgerUpdate, done: str) -> str:
    if result.fee_summary is None:
        return f"{done}. Fee data unavailable for this admission"
    if result.fee_summary.excess_paid > 0:
        return f"{done}. Warning: overpaid by {format_inr(result.fee_summary.excess_paid)}"
    return done


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[PaymentListItem]],
)
async def list_payments(
    current_user: AdminUser,
    admission_id: int | None = Query(None),
    status: PaymentStatus | None = Query(None),
    payment_method: PaymentMethod | None = Query(None),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List payments with optional filters. Pending approvals: status=pending_approval."""
    service = PaymentService(db)
    filters = PaymentFilters(
        admission_id=admission_id,
        status=status,
        payment_method=payment_method,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )
    items, total = await service.list_payments(filters)
    return ApiResponse(
        data=PaginatedResponse.create(items=items, total=total, page=page, limit=limit),
    )


@router.get("/me", response_model=ApiResponse[list[PaymentResponse]])
async def list_my_payments(
    current_user: StudentUser,
    db: AsyncSession = Depends(get_db),
):
    """Payment history of the logged-in student, newest first."""
    service = PaymentService(db)
    payments = await service.list_my_payments(current_user)
    return ApiResponse(data=[PaymentResponse.model_validate(p) for p in payments])


@router.get(
    "/admissions/{admission_id}",
    response_model=ApiResponse[list[PaymentResponse]],
)
async def list_admission_payments(
    admission_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    """Ledger of one admission, newest first. Students see only their own."""
    fees = FeeService(db)
    admission = await fees.get_admission(admission_id)
    fees.ensure_can_view(admission, current_user)
    payments = await PaymentService(db).list_payments_for_admission(admission_id)
    return ApiResponse(data=[PaymentResponse.model_validate(p) for p in payments])


@router.post(
    "/record",
    response_model=ApiResponse[LedgerUpdate],
    status_code=status.HTTP_201_CREATED,
)
async def record_payment(
    data: PaymentRecord,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Record a payment received by the institute. Counts immediately."""
    service = PaymentService(db)
    result = await service.record_payment(data, current_user.id)
    return ApiResponse(data=result, message=_ledger_message(result, "Payment recorded"))


@router.post(
    "/manual",
    response_model=ApiResponse[LedgerUpdate],
    status_code=status.HTTP_201_CREATED,
)
async def submit_manual_payment(
    data: ManualPaymentSubmit,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    """Submit a UPI / bank transfer reference for admin approval."""
    service = PaymentService(db)
    result = await service.submit_manual_payment(data, current_user)
    return ApiResponse(data=result, message="Payment submitted for approval")


@router.get("/{payment_id}", response_model=ApiResponse[PaymentResponse])
async def get_payment(
    payment_id: int,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = PaymentService(db)
    payment = await service.get_payment_by_id(payment_id)
    return ApiResponse(data=PaymentResponse.model_validate(payment))


@router.post("/{payment_id}/approve", response_model=ApiResponse[LedgerUpdate])
async def approve_payment(
    payment_id: int,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = PaymentService(db)
    result = await service.approve_payment(payment_id, current_user.id)
    return ApiResponse(data=result, message=_ledger_message(result, "Payment approved"))


@router.post("/{payment_id}/reject", response_model=ApiResponse[LedgerUpdate])
async def reject_payment(
    payment_id: int,
    current_user: AdminUser,
    data: PaymentReject | None = None,
    db: AsyncSession = Depends(get_db),
):
    service = PaymentService(db)
    result = await service.reject_payment(
        payment_id, current_user.id, reason=data.reason if data else None
    )
    return ApiResponse(data=result, message="Payment rejected")


@router.patch("/{payment_id}", response_model=ApiResponse[LedgerUpdate])
async def update_payment(
    payment_id: int,
    data: PaymentUpdate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Correct a payment in place. The previous values stay in its history."""
    service = PaymentService(db)
    result = await service.edit_payment(payment_id, data, current_user.id)
    return ApiResponse(data=result, message=_ledger_message(result, "Payment updated"))


@router.delete("/{payment_id}", response_model=ApiResponse[FeeSummary | None])
async def delete_payment(
    payment_id: int,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = PaymentService(db)
    summary = await service.delete_payment(payment_id, current_user.id)
    return ApiResponse(data=summary, message="Payment deleted")


@router.get(
    "/{payment_id}/history",
    response_model=ApiResponse[list[PaymentHistoryEntry]],
)
async def get_payment_history(
    payment_id: int,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = PaymentService(db)
    return ApiResponse(data=await service.get_payment_history(payment_id))
