"""Service for Admissions module."""

import logging
from datetime import date

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.audit.service import AuditAction, AuditService
from src.core.auth.models import User
from src.core.auth.service import AuthService
from src.core.database.locking import bump_version, commit_serialized
from src.core.documents.number_generator import generate_student_id
from src.core.exceptions import InvalidStateTransitionError, NotFoundError, ValidationError
from src.modules.admissions.models import Admission, FeeStatus, PaymentPlan
from src.modules.admissions.schemas import (
    AdminAdmissionCreate,
    AdmissionCreate,
    AdmissionFilters,
    AdmissionUpdate,
)
from src.modules.courses.models import Course
from src.modules.courses.service import CourseService
from src.modules.fees.calculator import summarize
from src.modules.fees.installments import plan_installments
from src.modules.fees.service import FeeService
from src.modules.payments.models import Payment, PaymentMethod, PaymentStatus

logger = logging.getLogger(__name__)


class AdmissionService:
    """Service for managing admissions."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def _get_open_course(self, course_id: int) -> Course:
        course = await CourseService(self.db).get_course_by_id(course_id)
        if not course.is_active:
            raise ValidationError("Course is not open for admission", field="course_id")
        return course

    async def _build_admission(self, data: AdmissionCreate, course: Course) -> Admission:
        student_id = await generate_student_id(self.db)

        user_id = None
        if data.email:
            user = await AuthService(self.db).get_or_create_student(
                email=data.email, full_name=data.name, mobile=data.mobile
            )
            user_id = user.id

        admission = Admission(
            student_id=student_id,
            name=data.name,
            father_husband_name=data.father_husband_name,
            date_of_birth=data.date_of_birth,
            gender=data.gender.value,
            mobile=data.mobile,
            email=data.email.lower() if data.email else None,
            address=data.address,
            batch_timing=data.batch_timing.value,
            course_id=course.id,
            course=course,
            fees_snapshot=course.fees,
            discount=0,
            payment_plan=PaymentPlan.FULL.value,
            total_installments=1,
            payment_status=FeeStatus.PENDING.value,
            approved=False,
            user_id=user_id,
            version=1,
        )
        return admission

    async def create_admission(self, data: AdmissionCreate) -> Admission:
        """
        Public admission form.

        Fee terms are not the applicant's to choose: no discount, Full plan.
        """
        course = await self._get_open_course(data.course_id)
        admission = await self._build_admission(data, course)
        self.db.add(admission)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="Admission",
            entity_id=admission.id,
            entity_identifier=admission.student_id,
            new_values={"course_id": course.id, "fees_snapshot": course.fees},
            comment="Public admission form",
        )

        await self.db.commit()
        logger.info("New admission %s for course %s", admission.student_id, course.name)
        return await self.get_admission_by_id(admission.id)

    async def create_admin_admission(
        self, data: AdminAdmissionCreate, created_by_id: int
    ) -> Admission:
        """
        Admission entered by an admin with discount and plan set.

        With ``mark_paid`` the first due (the whole net fee on a Full plan,
        installment 1 otherwise) is recorded as a Cash payment.
        """
        course = await self._get_open_course(data.course_id)
        admission = await self._build_admission(data, course)
        admission.discount = data.discount
        admission.approved = data.approved
        if data.payment_plan == PaymentPlan.INSTALLMENT:
            admission.payment_plan = PaymentPlan.INSTALLMENT.value
            admission.total_installments = data.total_installments
        self.db.add(admission)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="Admission",
            entity_id=admission.id,
            entity_identifier=admission.student_id,
            user_id=created_by_id,
            new_values={
                "course_id": course.id,
                "fees_snapshot": course.fees,
                "discount": admission.discount,
                "payment_plan": admission.payment_plan,
                "total_installments": admission.total_installments,
                "mark_paid": data.mark_paid,
            },
        )

        if data.mark_paid:
            await self._record_admission_payment(admission, created_by_id)

        await self.db.commit()
        logger.info("Admin admission %s for course %s", admission.student_id, course.name)
        return await self.get_admission_by_id(admission.id)

    async def _record_admission_payment(self, admission: Admission, recorded_by_id: int) -> None:
        total_fees = summarize(admission.fees_snapshot or 0, admission.discount, 0).total_fees
        if admission.is_installment_plan:
            amount = plan_installments(total_fees, admission.total_installments)[0].amount
            reference = f"ADM-{admission.student_id}-INST1"
        else:
            amount = total_fees
            reference = f"ADM-{admission.student_id}-FULL"
        if amount <= 0:
            return

        payment = Payment(
            admission_id=admission.id,
            amount=amount,
            payment_method=PaymentMethod.CASH.value,
            payment_date=date.today(),
            transaction_id=reference,
            status=PaymentStatus.PAID.value,
            installment_number=1,
            notes="Collected at admission",
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
            new_values={"amount": amount, "transaction_id": reference, "status": payment.status},
        )
        await FeeService(self.db).refresh_payment_status(admission)

    async def get_admission_by_id(self, admission_id: int) -> Admission:
        result = await self.db.execute(
            select(Admission)
            .where(Admission.id == admission_id)
            .options(selectinload(Admission.course))
            .execution_options(populate_existing=True)
        )
        admission = result.scalar_one_or_none()
        if not admission:
            raise NotFoundError("Admission", admission_id)
        return admission

    async def get_my_admission(self, user: User) -> Admission:
        return await FeeService(self.db).get_admission_for_student(user)

    async def list_admissions(self, filters: AdmissionFilters) -> tuple[list[Admission], int]:
        """List admissions with search and filters, newest first."""
        query = select(Admission)

        if filters.search:
            term = f"%{filters.search.strip()}%"
            query = query.where(
                or_(
                    Admission.name.ilike(term),
                    Admission.student_id.ilike(term),
                    Admission.email.ilike(term),
                    Admission.mobile.ilike(term),
                )
            )
        if filters.payment_status:
            query = query.where(Admission.payment_status == filters.payment_status.value)
        if filters.approved is not None:
            query = query.where(Admission.approved.is_(filters.approved))
        if filters.course_id:
            query = query.where(Admission.course_id == filters.course_id)

        # Count total
        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        # Paginate
        query = query.options(selectinload(Admission.course))
        query = query.order_by(Admission.created_at.desc(), Admission.id.desc())
        query = query.offset((filters.page - 1) * filters.limit).limit(filters.limit)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def approve_admission(self, admission_id: int, approved_by_id: int) -> Admission:
        admission = await self.get_admission_by_id(admission_id)
        if admission.approved:
            raise InvalidStateTransitionError("Admission", "approved", "approved")

        admission.approved = True
        bump_version(admission)

        await self.audit.log(
            action=AuditAction.APPROVE,
            entity_type="Admission",
            entity_id=admission.id,
            entity_identifier=admission.student_id,
            user_id=approved_by_id,
            old_values={"approved": False},
            new_values={"approved": True},
        )

        await commit_serialized(self.db, "Admission", admission_id)
        logger.info("Admission %s approved", admission.student_id)
        return await self.get_admission_by_id(admission_id)

    async def update_admission(
        self, admission_id: int, data: AdmissionUpdate, updated_by_id: int
    ) -> Admission:
        """
        Update admission details.

        Moving to another course refreshes the fee snapshot to that course's
        fee and re-derives the payment status.
        """
        fees = FeeService(self.db)
        admission = await fees.get_admission(admission_id, for_update=True)
        old_values = {}
        new_values = {}

        changes = data.model_dump(exclude_unset=True)
        course_id = changes.pop("course_id", None)

        for field, value in changes.items():
            if value is None:
                continue
            value = getattr(value, "value", value)
            if field == "email":
                value = value.lower()
            if getattr(admission, field) != value:
                old_values[field] = str(getattr(admission, field))
                setattr(admission, field, value)
                new_values[field] = str(value)

        if course_id is not None and course_id != admission.course_id:
            course = await self._get_open_course(course_id)
            old_values["course_id"] = admission.course_id
            old_values["fees_snapshot"] = admission.fees_snapshot
            admission.course_id = course.id
            admission.course = course
            admission.fees_snapshot = course.fees
            new_values["course_id"] = course.id
            new_values["fees_snapshot"] = course.fees
            bump_version(admission)
            await fees.refresh_payment_status(admission)

        if new_values:
            await self.audit.log(
                action=AuditAction.UPDATE,
                entity_type="Admission",
                entity_id=admission_id,
                entity_identifier=admission.student_id,
                user_id=updated_by_id,
                old_values=old_values,
                new_values=new_values,
            )

        await commit_serialized(self.db, "Admission", admission_id)
        return await self.get_admission_by_id(admission_id)

    async def delete_admission(self, admission_id: int, deleted_by_id: int) -> None:
        """Delete a not-yet-approved admission together with its payments."""
        result = await self.db.execute(
            select(Admission)
            .where(Admission.id == admission_id)
            .options(selectinload(Admission.payments))
        )
        admission = result.scalar_one_or_none()
        if not admission:
            raise NotFoundError("Admission", admission_id)
        if admission.approved:
            raise ValidationError("Approved admissions cannot be deleted")

        await self.audit.log(
            action=AuditAction.DELETE,
            entity_type="Admission",
            entity_id=admission_id,
            entity_identifier=admission.student_id,
            user_id=deleted_by_id,
            old_values={
                "name": admission.name,
                "course_id": admission.course_id,
                "payments": len(admission.payments),
            },
        )

        student_id = admission.student_id
        await self.db.delete(admission)
        await self.db.commit()
        logger.info("Deleted admission %s", student_id)
