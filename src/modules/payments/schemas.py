"""Pydantic schemas for Payments module."""

from datetime import date, datetime

from pydantic import Field, field_validator

from src.shared.schemas.base import BaseSchema, PositiveRupees
from src.modules.payments.models import PaymentMethod, PaymentStatus


def _strip_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class PaymentRecord(BaseSchema):
    """Admin data entry: cash at the counter, cheque, bank transfer. Counts immediately."""

    admission_id: int
    amount: PositiveRupees
    payment_method: PaymentMethod = PaymentMethod.CASH
    transaction_id: str | None = Field(None, max_length=100)
    payment_date: date | None = None
    notes: str | None = None

    @field_validator("transaction_id")
    @classmethod
    def strip_reference(cls, v: str | None) -> str | None:
        return _strip_or_none(v)


class ManualPaymentSubmit(BaseSchema):
    """Student self-report of a UPI / bank transfer. Counts only after admin approval."""

    admission_id: int
    amount: PositiveRupees
    transaction_id: str = Field(..., max_length=100, description="UTR / bank reference")
    payment_method: PaymentMethod = PaymentMethod.MANUAL

    @field_validator("transaction_id")
    @classmethod
    def require_reference(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Transaction ID (UTR) is required")
        return v


class PaymentUpdate(BaseSchema):
    """Admin correction of an existing row."""

    amount: PositiveRupees | None = None
    payment_method: PaymentMethod | None = None
    transaction_id: str | None = Field(None, max_length=100)
    payment_date: date | None = None
    notes: str | None = None

    @field_validator("transaction_id")
    @classmethod
    def strip_reference(cls, v: str | None) -> str | None:
        return _strip_or_none(v)


class PaymentReject(BaseSchema):
    reason: str | None = None


class PaymentResponse(BaseSchema):
    """Schema for payment response."""

    id: int
    admission_id: int
    amount: int
    payment_method: str
    payment_date: date
    transaction_id: str | None
    status: str
    installment_number: int | None
    notes: str | None
    recorded_by_id: int | None
    created_at: datetime
    updated_at: datetime


class PaymentListItem(PaymentResponse):
    """Admin list row with the student it belongs to."""

    student_id: str | None = None
    student_name: str | None = None
    course_name: str | None = None


class PaymentFilters(BaseSchema):
    """Filters for listing payments."""

    admission_id: int | None = None
    status: PaymentStatus | None = None
    payment_method: PaymentMethod | None = None
    date_from: date | None = None
    date_to: date | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=100)


class PaymentHistoryEntry(BaseSchema):
    """One audit entry of a payment row."""

    action: str
    user_id: int | None
    user_name: str | None
    old_values: dict | None
    new_values: dict | None
    comment: str | None
    created_at: datetime
