"""Admission model."""

from datetime import date
from enum import StrEnum

from sqlalchemy import Boolean, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import BaseModel, BigIntPK, money_column, non_negative


class PaymentPlan(StrEnum):
    """How the net fee is collected."""

    FULL = "Full"
    INSTALLMENT = "Installment"


class FeeStatus(StrEnum):
    """Admission-level payment status, derived from the ledger."""

    PENDING = "Pending"
    PARTIALLY_PAID = "Partially Paid"
    PAID = "Paid"


class Gender(StrEnum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class BatchTiming(StrEnum):
    MORNING = "Morning (9AM-12PM)"
    AFTERNOON = "Afternoon (12PM-3PM)"
    EVENING = "Evening (3PM-6PM)"
    WEEKEND = "Weekend"


MIN_INSTALLMENTS = 2
MAX_INSTALLMENTS = 4


class Admission(BaseModel):
    """
    A student's enrollment in a course.

    Money on this row:
    - ``fees_snapshot``: the course's gross fee when the admission was taken
      (or the course was last changed). Used only if the course is deleted.
    - ``discount``: flat rupee discount, may exceed the gross fee.
    - ``payment_status``: cached FeeStatus for list filters. Summaries are
      always recomputed from the payment ledger, never read from here.

    ``version`` is bumped by every fee-affecting write (discount, plan, any
    payment change) so concurrent writers on one admission conflict instead
    of silently overwriting each other.
    """

    __tablename__ = "admissions"
    __table_args__ = (
        non_negative("discount", "admissions"),
        non_negative("fees_snapshot", "admissions"),
    )

    student_id: Mapped[str] = mapped_column(
        String(30), nullable=False, unique=True, index=True
    )  # PRETECH-YYYY-NNNN

    # Personal info
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    father_husband_name: Mapped[str] = mapped_column(String(200), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str] = mapped_column(String(10), nullable=False)
    mobile: Mapped[str] = mapped_column(String(10), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    batch_timing: Mapped[str] = mapped_column(String(30), nullable=False)

    # Course & fees
    course_id: Mapped[int | None] = mapped_column(
        BigIntPK, ForeignKey("courses.id", ondelete="SET NULL"), nullable=True, index=True
    )
    fees_snapshot: Mapped[int | None] = mapped_column(Integer, nullable=True)
    discount: Mapped[int] = money_column(default=0)
    payment_plan: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentPlan.FULL.value
    )
    total_installments: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    payment_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=FeeStatus.PENDING.value, index=True
    )

    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    user_id: Mapped[int | None] = mapped_column(
        BigIntPK, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")

    __mapper_args__ = {
        "version_id_col": version,
        # Bumped explicitly by fee-affecting writes, see src.core.database.locking
        "version_id_generator": False,
    }

    # Relationships
    course: Mapped["Course | None"] = relationship("Course")
    user: Mapped["User | None"] = relationship("User")
    payments: Mapped[list["Payment"]] = relationship(
        "Payment",
        back_populates="admission",
        cascade="all, delete-orphan",
        order_by="Payment.created_at.desc()",
    )

    @property
    def is_installment_plan(self) -> bool:
        return self.payment_plan == PaymentPlan.INSTALLMENT.value


# Import for type hints
from src.core.auth.models import User
from src.modules.courses.models import Course
from src.modules.payments.models import Payment
