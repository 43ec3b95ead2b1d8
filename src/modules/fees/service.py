"""Service for the Fees module: summaries, discount, payment plan, overview."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.audit.service import AuditAction, AuditService
from src.core.auth.models import User
from src.core.database.locking import bump_version, commit_serialized, flush_serialized
from src.core.exceptions import (
    AuthorizationError,
    MissingFeeReferenceError,
    NotFoundError,
    ValidationError,
)
from src.modules.admissions.models import Admission, FeeStatus, PaymentPlan
from src.modules.courses.schemas import CourseBrief
from src.modules.fees.calculator import compute_fee_summary, resolve_gross_fees, summarize
from src.modules.fees.installments import build_schedule
from src.modules.fees.schemas import (
    AdmissionFeeInfo,
    FeeDetails,
    FeeOverview,
    FeeSummary,
    PaymentPlanChange,
)
from src.modules.payments.models import Payment, PaymentStatus
from src.modules.payments.schemas import PaymentResponse
from src.shared.utils.money import format_inr

logger = logging.getLogger(__name__)


class FeeService:
    """Derives fee positions from the ledger and applies fee-affecting admin edits."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    # --- Loading ---

    async def get_admission(self, admission_id: int, *, for_update: bool = False) -> Admission:
        """
        Load an admission with its course.

        ``for_update`` takes the row lock that serializes fee-affecting writes
        on one admission.
        """
        query = (
            select(Admission)
            .where(Admission.id == admission_id)
            .options(selectinload(Admission.course))
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        admission = result.scalar_one_or_none()
        if not admission:
            raise NotFoundError("Admission", admission_id)
        return admission

    async def get_ledger(self, admission_id: int) -> list[Payment]:
        """All payment rows of an admission, newest first, whatever their status."""
        result = await self.db.execute(
            select(Payment)
            .where(Payment.admission_id == admission_id)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    @staticmethod
    def ensure_can_view(admission: Admission, user: User) -> None:
        """Admins see every admission, students only their own."""
        if user.is_admin:
            return
        if admission.user_id is None or admission.user_id != user.id:
            raise AuthorizationError("You can only view your own fees")

    async def get_admission_for_student(self, user: User) -> Admission:
        result = await self.db.execute(
            select(Admission.id)
            .where(Admission.user_id == user.id)
            .order_by(Admission.created_at.desc(), Admission.id.desc())
            .limit(1)
        )
        admission_id = result.scalar_one_or_none()
        if admission_id is None:
            raise NotFoundError("Admission for current user")
        return await self.get_admission(admission_id)

    # --- Summaries ---

    async def summarize_admission(self, admission: Admission) -> FeeSummary:
        await flush_serialized(self.db, "Admission", admission.id)
        return compute_fee_summary(admission, await self.get_ledger(admission.id))

    async def get_fee_summary(self, admission_id: int) -> FeeSummary:
        admission = await self.get_admission(admission_id)
        return await self.summarize_admission(admission)

    async def get_fee_details(self, admission_id: int) -> FeeDetails:
        """Summary, installment schedule and ledger of one admission."""
        admission = await self.get_admission(admission_id)
        return await self.build_details(admission)

    async def build_details(self, admission: Admission) -> FeeDetails:
        ledger = await self.get_ledger(admission.id)
        summary = compute_fee_summary(admission, ledger)
        return FeeDetails(
            admission=AdmissionFeeInfo(
                id=admission.id,
                student_id=admission.student_id,
                name=admission.name,
                email=admission.email,
                mobile=admission.mobile,
                course=CourseBrief.model_validate(admission.course) if admission.course else None,
                payment_plan=admission.payment_plan,
                total_installments=admission.total_installments,
                approved=admission.approved,
            ),
            fee_summary=summary,
            schedule=build_schedule(admission, summary),
            payments=[PaymentResponse.model_validate(p) for p in ledger],
        )

    async def refresh_payment_status(self, admission: Admission) -> FeeSummary | None:
        """
        Re-derive the summary after a fee-affecting write and cache its status.

        Returns None when the admission has no fee reference left; the write
        itself still stands, only the summary is unavailable.
        """
        try:
            summary = await self.summarize_admission(admission)
        except MissingFeeReferenceError:
            logger.warning("Fee data unavailable for admission %s, status not refreshed", admission.id)
            return None
        admission.payment_status = summary.payment_status.value
        if summary.excess_paid > 0:
            logger.warning(
                "Admission %s is overpaid by %s (paid %s against net fee %s)",
                admission.student_id,
                format_inr(summary.excess_paid),
                format_inr(summary.total_paid),
                format_inr(summary.total_fees),
            )
        return summary

    # --- Admin edits ---

    async def apply_discount(
        self, admission_id: int, discount: int, applied_by_id: int
    ) -> FeeSummary:
        """
        Set the admission's flat discount.

        Any non-negative value is accepted; one larger than the gross fee just
        brings the net fee to zero. Recorded payments are not touched.
        """
        if discount < 0:
            raise ValidationError("Discount cannot be negative", field="discount")

        admission = await self.get_admission(admission_id, for_update=True)
        old_discount = admission.discount

        admission.discount = discount
        bump_version(admission)
        summary = await self.summarize_admission(admission)
        admission.payment_status = summary.payment_status.value

        await self.audit.log(
            action=AuditAction.APPLY_DISCOUNT,
            entity_type="Admission",
            entity_id=admission.id,
            entity_identifier=admission.student_id,
            user_id=applied_by_id,
            old_values={"discount": old_discount},
            new_values={"discount": discount, "total_fees": summary.total_fees},
        )

        await commit_serialized(self.db, "Admission", admission_id)
        logger.info(
            "Discount on %s changed %s -> %s",
            admission.student_id,
            format_inr(old_discount),
            format_inr(discount),
        )
        return summary

    async def change_payment_plan(
        self, admission_id: int, data: PaymentPlanChange, changed_by_id: int
    ) -> FeeDetails:
        """Switch between Full and Installment (2-4) collection."""
        admission = await self.get_admission(admission_id, for_update=True)
        # Raises MissingFeeReferenceError before anything is written
        resolve_gross_fees(admission)

        old_values = {
            "payment_plan": admission.payment_plan,
            "total_installments": admission.total_installments,
        }

        if data.payment_plan == PaymentPlan.INSTALLMENT:
            admission.payment_plan = PaymentPlan.INSTALLMENT.value
            admission.total_installments = data.total_installments
        else:
            admission.payment_plan = PaymentPlan.FULL.value
            admission.total_installments = 1
        bump_version(admission)

        await self.audit.log(
            action=AuditAction.CHANGE_PLAN,
            entity_type="Admission",
            entity_id=admission.id,
            entity_identifier=admission.student_id,
            user_id=changed_by_id,
            old_values=old_values,
            new_values={
                "payment_plan": admission.payment_plan,
                "total_installments": admission.total_installments,
            },
        )

        await commit_serialized(self.db, "Admission", admission_id)
        return await self.get_fee_details(admission_id)

    # --- Overview ---

    async def get_fee_overview(self, include_unapproved: bool = False) -> FeeOverview:
        """
        Institute-wide fee position, computed from the ledger.

        Counts approved admissions unless ``include_unapproved`` is set.
        Admissions without any fee reference are counted separately and kept
        out of the money totals.
        """
        query = select(Admission).options(selectinload(Admission.course))
        if not include_unapproved:
            query = query.where(Admission.approved.is_(True))
        admissions = list((await self.db.execute(query)).scalars().all())

        paid_rows = await self.db.execute(
            select(Payment.admission_id, func.coalesce(func.sum(Payment.amount), 0))
            .where(Payment.status == PaymentStatus.PAID.value)
            .group_by(Payment.admission_id)
        )
        paid_by_admission = {row[0]: int(row[1]) for row in paid_rows.all()}

        counts = {status: 0 for status in FeeStatus}
        total_fees_all = total_collected = total_due = unavailable = 0

        for admission in admissions:
            try:
                gross = resolve_gross_fees(admission)
            except MissingFeeReferenceError:
                unavailable += 1
                continue
            summary = summarize(gross, admission.discount, paid_by_admission.get(admission.id, 0))
            counts[summary.payment_status] += 1
            total_fees_all += summary.total_fees
            total_collected += summary.total_paid
            total_due += summary.balance_due

        return FeeOverview(
            total_students=len(admissions),
            fully_paid=counts[FeeStatus.PAID],
            partially_paid=counts[FeeStatus.PARTIALLY_PAID],
            pending=counts[FeeStatus.PENDING],
            total_fees_all=total_fees_all,
            total_collected=total_collected,
            total_due=total_due,
            fee_data_unavailable=unavailable,
        )
