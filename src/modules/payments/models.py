"""Payment model."""

from datetime import date, datetime
from enum import StrEnum

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import Base, BigIntPK, money_column


class PaymentMethod(StrEnum):
    """Payment method options."""

    CASH = "Cash"
    UPI = "UPI"
    BANK_TRANSFER = "Bank Transfer"
    CHEQUE = "Cheque"
    MANUAL = "Manual"
    OTHER = "Other"


class PaymentStatus(StrEnum):
    """
    Payment row lifecycle.

    created -> pending_approval -> paid | failed. Admin-recorded payments are
    created directly as paid. Only ``paid`` rows count toward fee totals.
    """

    CREATED = "created"
    PENDING_APPROVAL = "pending_approval"
    PAID = "paid"
    FAILED = "failed"


class Payment(Base):
    """
    One entry of an admission's payment ledger.

    Student-submitted UPI/bank payments arrive as ``pending_approval`` with the
    UTR in ``transaction_id`` and only count once an admin approves them.
    """

    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        Index("ix_payments_admission_transaction", "admission_id", "transaction_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    admission_id: Mapped[int] = mapped_column(
        BigIntPK, ForeignKey("admissions.id", ondelete="CASCADE"), nullable=False, index=True
    )

    amount: Mapped[int] = money_column()
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)

    # UTR / cheque number / bank reference; free text, formats vary by bank and UPI app
    transaction_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentStatus.CREATED.value, index=True
    )

    # Installment that was next due when the payment was submitted
    installment_number: Mapped[int | None] = mapped_column(Integer, nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    recorded_by_id: Mapped[int | None] = mapped_column(
        BigIntPK, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    admission: Mapped["Admission"] = relationship("Admission", back_populates="payments")
    recorded_by: Mapped["User | None"] = relationship("User")

    @property
    def is_pending_approval(self) -> bool:
        return self.status == PaymentStatus.PENDING_APPROVAL.value


# Import for type hints
from src.core.auth.models import User
from src.modules.admissions.models import Admission
