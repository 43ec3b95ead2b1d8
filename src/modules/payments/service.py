"""Service for Payments module."""

import logging
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.audit.service import AuditAction, AuditService
from src.core.auth.models import User
from src.core.database.locking import bump_version, commit_serialized
from src.core.exceptions import (
    DuplicateError,
    InvalidStateTransitionError,
    MissingFeeReferenceError,
    NotFoundError,
)
from src.modules.admissions.models import Admission
from src.modules.courses.models import Course
from src.modules.fees.installments import build_schedule
from src.modules.fees.schemas import FeeSummary, LedgerUpdate
from src.modules.fees.service import FeeService
from src.modules.payments.models import Payment, PaymentStatus
from src.modules.payments.schemas import (
    ManualPaymentSubmit,
    PaymentFilters,
    PaymentHistoryEntry,
    PaymentListItem,
    PaymentRecord,
    PaymentResponse,
    PaymentUpdate,
)
from src.shared.utils.money import format_inr

logger = logging.getLogger(__name__)

# A reference in one of these states blocks another row with the same reference
_BLOCKING_STATUSES = (PaymentStatus.PENDING_APPROVAL.value, PaymentStatus.PAID.value)


class PaymentService:
    """Service for the admission payment ledger."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)
        self.fees = FeeService(db)

    # --- Loading ---

    async def get_payment_by_id(self, payment_id: int, *, for_update: bool = False) -> Payment:
        query = (
            select(Payment)
            .where(Payment.id == payment_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        payment = (await self.db.execute(query)).scalar_one_or_none()
        if not payment:
            raise NotFoundError("Payment", payment_id)
        return payment

    async def _ensure_unique_reference(
        self, admission_id: int, transaction_id: str | None, exclude_id: int | None = None
    ) -> None:
        """Reject a reference already pending or paid on the same admission."""
        if not transaction_id:
            return
        query = select(Payment.id).where(
            Payment.admission_id == admission_id,
            Payment.transaction_id == transaction_id,
            Payment.status.in_(_BLOCKING_STATUSES),
        )
        if exclude_id is not None:
            query = query.where(Payment.id != exclude_id)
        if (await self.db.execute(query.limit(1))).scalar_one_or_none() is not None:
            raise DuplicateError("Payment", "transaction_id", transaction_id)

    async def _next_installment_number(self, admission: Admission) -> int | None:
        """Installment a new payment goes toward; None when nothing is due or fees are unknown."""
        try:
            summary = await self.fees.summarize_admission(admission)
        except MissingFeeReferenceError:
            return None
        next_due = build_schedule(admission, summary).next_due
        return next_due.number if next_due else None

    async def _finish_write(self, admission: Admission, payment_id: int | None) -> LedgerUpdate | FeeSummary | None:
        """
        Close a ledger write: bump the admission version, refresh its cached
        status and commit. Returns the fresh LedgerUpdate, or only the summary
        when the row was deleted.
        """
        admission_id = admission.id
        bump_version(admission)
        summary = await self.fees.refresh_payment_status(admission)
        await commit_serialized(self.db, "Admission", admission_id)
        if payment_id is None:
            return summary
        payment = await self.get_payment_by_id(payment_id)
        return LedgerUpdate(payment=PaymentResponse.model_validate(payment), fee_summary=summary)

    # --- Writes ---

    async def record_payment(self, data: PaymentRecord, recorded_by_id: int) -> LedgerUpdate:
        """
        Admin-entered payment (cash at the counter, cheque, bank transfer).

        Counts toward the fee immediately. Overpayment is allowed; it shows up
        as ``excess_paid`` on the summary and is logged.
        """
        admission = await self.fees.get_admission(data.admission_id, for_update=True)
        await self._ensure_unique_reference(admission.id, data.transaction_id)

        payment = Payment(
            admission_id=admission.id,
            amount=data.amount,
            payment_method=data.payment_method.value,
            payment_date=data.payment_date or date.today(),
            transaction_id=data.transaction_id,
            status=PaymentStatus.PAID.value,
            installment_number=await self._next_installment_number(admission),
            notes=data.notes,
            recorded_by_id=recorded_by_id,
        )
        self.db.add(payment)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.RECORD_PAYMENT,
            entity_type="Payment",
            entity_id=payment.id,
            entity_identifier=admission.student_id,
            user_id=recorded_by_id,
            new_values={
                "amount": payment.amount,
                "payment_method": payment.payment_method,
                "transaction_id": payment.transaction_id,
                "status": payment.status,
            },
        )

        result = await self._finish_write(admission, payment.id)
        logger.info(
            "Recorded %s (%s) for %s",
            format_inr(data.amount),
            data.payment_method.value,
            admission.student_id,
        )
        return result

    async def submit_manual_payment(self, data: ManualPaymentSubmit, submitted_by: User) -> LedgerUpdate:
        """
        Student self-report of a UPI / bank transfer, held for admin approval.

        Students may only submit against their own admission. Submitting the
        same UTR again while the first one is pending or paid is rejected, so
        a retried request cannot double count.
        """
        admission = await self.fees.get_admission(data.admission_id, for_update=True)
        self.fees.ensure_can_view(admission, submitted_by)
        await self._ensure_unique_reference(admission.id, data.transaction_id)

        payment = Payment(
            admission_id=admission.id,
            amount=data.amount,
            payment_method=data.payment_method.value,
            payment_date=date.today(),
            transaction_id=data.transaction_id,
            status=PaymentStatus.PENDING_APPROVAL.value,
            installment_number=await self._next_installment_number(admission),
            recorded_by_id=submitted_by.id,
        )
        self.db.add(payment)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.SUBMIT_PAYMENT,
            entity_type="Payment",
            entity_id=payment.id,
            entity_identifier=admission.student_id,
            user_id=submitted_by.id,
            new_values={
                "amount": payment.amount,
                "transaction_id": payment.transaction_id,
                "installment_number": payment.installment_number,
                "status": payment.status,
            },
        )

        result = await self._finish_write(admission, payment.id)
        logger.info(
            "Manual payment %s of %s submitted for %s, awaiting approval",
            data.transaction_id,
            format_inr(data.amount),
            admission.student_id,
        )
        return result

    async def _transition(
        self,
        payment_id: int,
        target: PaymentStatus,
        action: AuditAction,
        user_id: int,
        comment: str | None = None,
    ) -> LedgerUpdate:
        payment = await self.get_payment_by_id(payment_id, for_update=True)
        if not payment.is_pending_approval:
            raise InvalidStateTransitionError("Payment", payment.status, target.value)

        admission = await self.fees.get_admission(payment.admission_id, for_update=True)
        old_status = payment.status
        payment.status = target.value

        await self.audit.log(
            action=action,
            entity_type="Payment",
            entity_id=payment.id,
            entity_identifier=admission.student_id,
            user_id=user_id,
            old_values={"status": old_status},
            new_values={"status": payment.status},
            comment=comment,
        )

        result = await self._finish_write(admission, payment.id)
        logger.info(
            "Payment %s (%s, %s) %s -> %s",
            payment.id,
            payment.transaction_id,
            admission.student_id,
            old_status,
            target.value,
        )
        return result

    async def approve_payment(self, payment_id: int, approved_by_id: int) -> LedgerUpdate:
        """pending_approval -> paid. The amount starts counting toward the fee."""
        return await self._transition(
            payment_id, PaymentStatus.PAID, AuditAction.APPROVE_PAYMENT, approved_by_id
        )

    async def reject_payment(
        self, payment_id: int, rejected_by_id: int, reason: str | None = None
    ) -> LedgerUpdate:
        """pending_approval -> failed. The row stays in history and never counts."""
        return await self._transition(
            payment_id, PaymentStatus.FAILED, AuditAction.REJECT_PAYMENT, rejected_by_id, reason
        )

    async def edit_payment(
        self, payment_id: int, data: PaymentUpdate, updated_by_id: int
    ) -> LedgerUpdate:
        """Correct a payment row in place. Old and new values go to the audit log."""
        payment = await self.get_payment_by_id(payment_id, for_update=True)
        admission = await self.fees.get_admission(payment.admission_id, for_update=True)

        old_values = {}
        new_values = {}

        if data.amount is not None and data.amount != payment.amount:
            old_values["amount"] = payment.amount
            payment.amount = data.amount
            new_values["amount"] = data.amount

        if data.payment_method is not None and data.payment_method.value != payment.payment_method:
            old_values["payment_method"] = payment.payment_method
            payment.payment_method = data.payment_method.value
            new_values["payment_method"] = data.payment_method.value

        # An explicit blank or null reference clears it
        if "transaction_id" in data.model_fields_set and data.transaction_id != payment.transaction_id:
            if data.transaction_id is not None and payment.status in _BLOCKING_STATUSES:
                await self._ensure_unique_reference(
                    payment.admission_id, data.transaction_id, exclude_id=payment.id
                )
            old_values["transaction_id"] = payment.transaction_id
            payment.transaction_id = data.transaction_id
            new_values["transaction_id"] = data.transaction_id

        if data.payment_date is not None and data.payment_date != payment.payment_date:
            old_values["payment_date"] = str(payment.payment_date)
            payment.payment_date = data.payment_date
            new_values["payment_date"] = str(data.payment_date)

        if data.notes is not None and data.notes != payment.notes:
            old_values["notes"] = payment.notes
            payment.notes = data.notes
            new_values["notes"] = data.notes

        await self.audit.log(
            action=AuditAction.EDIT_PAYMENT,
            entity_type="Payment",
            entity_id=payment.id,
            entity_identifier=admission.student_id,
            user_id=updated_by_id,
            old_values=old_values,
            new_values=new_values,
        )

        return await self._finish_write(admission, payment.id)

    async def delete_payment(self, payment_id: int, deleted_by_id: int) -> FeeSummary | None:
        """
        Remove a payment row. The audit entry keeps a full copy of it.

        Returns the admission's summary after the removal, None when its fee
        data is unavailable.
        """
        payment = await self.get_payment_by_id(payment_id, for_update=True)
        admission = await self.fees.get_admission(payment.admission_id, for_update=True)

        snapshot = PaymentResponse.model_validate(payment).model_dump(mode="json")
        await self.audit.log(
            action=AuditAction.DELETE_PAYMENT,
            entity_type="Payment",
            entity_id=payment.id,
            entity_identifier=admission.student_id,
            user_id=deleted_by_id,
            old_values=snapshot,
        )

        await self.db.delete(payment)
        await self.db.flush()

        summary = await self._finish_write(admission, None)
        logger.info(
            "Deleted payment %s (%s) of %s",
            payment_id,
            format_inr(snapshot["amount"]),
            admission.student_id,
        )
        return summary

    # --- Reads ---

    async def list_payments_for_admission(self, admission_id: int) -> list[Payment]:
        """Ledger of one admission, newest first."""
        await self.fees.get_admission(admission_id)
        return await self.fees.get_ledger(admission_id)

    async def list_my_payments(self, user: User) -> list[Payment]:
        result = await self.db.execute(
            select(Payment)
            .join(Admission, Payment.admission_id == Admission.id)
            .where(Admission.user_id == user.id)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
        )
        return list(result.scalars().all())

    async def list_payments(self, filters: PaymentFilters) -> tuple[list[PaymentListItem], int]:
        """List payments across admissions with filters."""
        query = (
            select(Payment, Admission.student_id, Admission.name, Course.name)
            .join(Admission, Payment.admission_id == Admission.id)
            .outerjoin(Course, Admission.course_id == Course.id)
        )

        if filters.admission_id:
            query = query.where(Payment.admission_id == filters.admission_id)
        if filters.status:
            query = query.where(Payment.status == filters.status.value)
        if filters.payment_method:
            query = query.where(Payment.payment_method == filters.payment_method.value)
        if filters.date_from:
            query = query.where(Payment.payment_date >= filters.date_from)
        if filters.date_to:
            query = query.where(Payment.payment_date <= filters.date_to)

        # Count total
        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        # Paginate
        query = query.order_by(Payment.created_at.desc(), Payment.id.desc())
        query = query.offset((filters.page - 1) * filters.limit).limit(filters.limit)

        rows = (await self.db.execute(query)).all()
        items = [
            PaymentListItem.model_validate(payment).model_copy(
                update={
                    "student_id": student_id,
                    "student_name": student_name,
                    "course_name": course_name,
                }
            )
            for payment, student_id, student_name, course_name in rows
        ]
        return items, total

    async def get_payment_history(self, payment_id: int) -> list[PaymentHistoryEntry]:
        """
        Audit trail of a payment, oldest first.

        Works for deleted payments too, since the trail outlives the row.
        """
        entries = await self.audit.list_for_entity("Payment", payment_id)
        if not entries:
            await self.get_payment_by_id(payment_id)
        return [
            PaymentHistoryEntry(
                action=entry.action,
                user_id=entry.user_id,
                user_name=user_name,
                old_values=entry.old_values,
                new_values=entry.new_values,
                comment=entry.comment,
                created_at=entry.created_at,
            )
            for entry, user_name in entries
        ]
