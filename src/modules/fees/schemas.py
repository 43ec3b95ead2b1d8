"""Pydantic schemas for the Fees module."""

from enum import StrEnum

from pydantic import Field, model_validator

from src.shared.schemas.base import BaseSchema, Rupees
from src.modules.admissions.models import (
    MAX_INSTALLMENTS,
    MIN_INSTALLMENTS,
    FeeStatus,
    PaymentPlan,
)
from src.modules.courses.schemas import CourseBrief
from src.modules.payments.schemas import PaymentResponse


class InstallmentStatus(StrEnum):
    PENDING = "Pending"
    PAID = "Paid"


class FeeSummary(BaseSchema):
    """
    Derived fee position of one admission. Never stored.

    total_fees = max(0, gross_fees - discount)
    balance_due = max(0, total_fees - total_paid)
    excess_paid = max(0, total_paid - total_fees), non-zero means overpaid
    """

    gross_fees: int
    discount: int
    total_fees: int
    total_paid: int
    balance_due: int
    payment_status: FeeStatus
    excess_paid: int = 0


class Installment(BaseSchema):
    number: int
    amount: int
    status: InstallmentStatus = InstallmentStatus.PENDING
    # Part of total_paid that falls inside this installment's range
    amount_paid: int = 0


class InstallmentSchedule(BaseSchema):
    payment_plan: PaymentPlan
    total_installments: int
    installments: list[Installment]
    next_due: Installment | None


class AdmissionFeeInfo(BaseSchema):
    id: int
    student_id: str
    name: str
    email: str | None
    mobile: str
    course: CourseBrief | None
    payment_plan: str
    total_installments: int
    approved: bool


class FeeDetails(BaseSchema):
    """Everything the fee manager and student dashboard show for one admission."""

    admission: AdmissionFeeInfo
    fee_summary: FeeSummary
    schedule: InstallmentSchedule
    payments: list[PaymentResponse]


class LedgerUpdate(BaseSchema):
    """Result of a payment write: the row and the freshly derived summary."""

    payment: PaymentResponse
    # None when the admission's fee reference is missing
    fee_summary: FeeSummary | None


class DiscountApply(BaseSchema):
    # No upper bound: a discount above the gross fee zeroes the net fee
    discount: Rupees


class PaymentPlanChange(BaseSchema):
    payment_plan: PaymentPlan
    total_installments: int | None = Field(None, ge=MIN_INSTALLMENTS, le=MAX_INSTALLMENTS)

    @model_validator(mode="after")
    def require_installment_count(self):
        if self.payment_plan == PaymentPlan.INSTALLMENT and self.total_installments is None:
            raise ValueError("total_installments is required for an installment plan")
        return self


class FeeOverview(BaseSchema):
    total_students: int
    fully_paid: int
    partially_paid: int
    pending: int
    total_fees_all: int
    total_collected: int
    total_due: int
    # Admissions whose course is gone and who have no fee snapshot; not in the totals
    fee_data_unavailable: int = 0
