"""Schemas for Admissions module."""

import re
from datetime import date, datetime

from pydantic import EmailStr, Field, field_validator, model_validator

from src.shared.schemas.base import BaseSchema, Rupees
from src.modules.admissions.models import (
    MAX_INSTALLMENTS,
    MIN_INSTALLMENTS,
    BatchTiming,
    FeeStatus,
    Gender,
    PaymentPlan,
)
from src.modules.courses.schemas import CourseBrief

# Indian mobile: 10 digits, optional +91 / 0 prefix stripped before the check
MOBILE_REGEX = re.compile(r"^[0-9]{10}$")


def normalize_mobile(value: str) -> str:
    normalized = value.replace(" ", "").replace("-", "")
    if normalized.startswith("+91") and len(normalized) == 13:
        normalized = normalized[3:]
    elif normalized.startswith("0") and len(normalized) == 11:
        normalized = normalized[1:]
    if not MOBILE_REGEX.match(normalized):
        raise ValueError("Mobile number must be 10 digits")
    return normalized


class AdmissionCreate(BaseSchema):
    """Public admission form."""

    name: str = Field(..., min_length=1, max_length=200)
    father_husband_name: str = Field(..., min_length=1, max_length=200)
    date_of_birth: date | None = None
    gender: Gender
    mobile: str
    email: EmailStr | None = None
    address: str = Field(..., min_length=1)
    batch_timing: BatchTiming
    course_id: int

    @field_validator("mobile")
    @classmethod
    def validate_mobile(cls, v: str) -> str:
        return normalize_mobile(v)

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class AdminAdmissionCreate(AdmissionCreate):
    """Admission taken at the front desk, with fee terms set up front."""

    discount: Rupees = 0
    payment_plan: PaymentPlan = PaymentPlan.FULL
    total_installments: int | None = Field(None, ge=MIN_INSTALLMENTS, le=MAX_INSTALLMENTS)
    # Record the first due (whole fee or installment 1) as collected in cash
    mark_paid: bool = False
    approved: bool = False

    @model_validator(mode="after")
    def require_installment_count(self):
        if self.payment_plan == PaymentPlan.INSTALLMENT and self.total_installments is None:
            raise ValueError("total_installments is required for an installment plan")
        return self


class AdmissionUpdate(BaseSchema):
    """Admin edit. Fee terms go through the fees endpoints."""

    name: str | None = Field(None, min_length=1, max_length=200)
    father_husband_name: str | None = Field(None, min_length=1, max_length=200)
    date_of_birth: date | None = None
    gender: Gender | None = None
    mobile: str | None = None
    email: EmailStr | None = None
    address: str | None = Field(None, min_length=1)
    batch_timing: BatchTiming | None = None
    course_id: int | None = None

    @field_validator("mobile")
    @classmethod
    def validate_mobile(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return normalize_mobile(v)


class AdmissionResponse(BaseSchema):
    id: int
    student_id: str
    name: str
    father_husband_name: str
    date_of_birth: date | None
    gender: str
    mobile: str
    email: str | None
    address: str
    batch_timing: str
    course_id: int | None
    course: CourseBrief | None
    fees_snapshot: int | None
    discount: int
    payment_plan: str
    total_installments: int
    payment_status: str
    approved: bool
    user_id: int | None
    created_at: datetime
    updated_at: datetime


class AdmissionFilters(BaseSchema):
    search: str | None = None
    payment_status: FeeStatus | None = None
    approved: bool | None = None
    course_id: int | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=100)
