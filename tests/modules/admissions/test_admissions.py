"""Tests for Admissions module."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.auth.models import User
from src.core.exceptions import InvalidStateTransitionError, ValidationError
from src.modules.admissions.models import FeeStatus, PaymentPlan
from src.modules.admissions.schemas import (
    AdminAdmissionCreate,
    AdmissionCreate,
    AdmissionFilters,
    AdmissionUpdate,
)
from src.modules.admissions.service import AdmissionService
from src.modules.courses.models import Course
from src.modules.fees.service import FeeService
from src.modules.payments.models import Payment


def _form(course_id: int, **overrides) -> dict:
    data = {
        "name": "Priya Sharma",
        "father_husband_name": "Rakesh Sharma",
        "gender": "Female",
        "mobile": "+91 98765 43210",
        "email": "priya.sharma@gmail.com",
        "address": "12 MG Road, Bhopal",
        "batch_timing": "Evening (3PM-6PM)",
        "course_id": course_id,
    }
    data.update(overrides)
    return data


class TestAdmissionService:
    """Tests for AdmissionService."""

    async def test_public_admission(self, db_session: AsyncSession, course: Course):
        service = AdmissionService(db_session)

        admission = await service.create_admission(AdmissionCreate(**_form(course.id)))

        assert admission.student_id.startswith("PRETECH-")
        assert admission.student_id.endswith("-0001")
        assert admission.mobile == "9876543210"
        assert admission.fees_snapshot == 20000
        assert admission.discount == 0
        assert admission.payment_plan == PaymentPlan.FULL.value
        assert admission.approved is False
        assert admission.course.name == "Full Stack Development"

        user = await db_session.get(User, admission.user_id)
        assert user.email == "priya.sharma@gmail.com"
        assert user.role == "student"

    async def test_public_admission_without_email_has_no_login(
        self, db_session: AsyncSession, course: Course
    ):
        admission = await AdmissionService(db_session).create_admission(
            AdmissionCreate(**_form(course.id, email=""))
        )

        assert admission.email is None
        assert admission.user_id is None

    async def test_inactive_course_is_closed(self, db_session: AsyncSession, course: Course):
        course.status = "Inactive"
        await db_session.commit()

        with pytest.raises(ValidationError):
            await AdmissionService(db_session).create_admission(AdmissionCreate(**_form(course.id)))

    def test_mobile_must_be_ten_digits(self):
        with pytest.raises(ValueError):
            AdmissionCreate(**_form(1, mobile="12345"))

    async def test_admin_admission_with_installments_marked_paid(
        self, db_session: AsyncSession, course: Course, admin
    ):
        service = AdmissionService(db_session)

        admission = await service.create_admin_admission(
            AdminAdmissionCreate(
                **_form(course.id),
                discount=2000,
                payment_plan=PaymentPlan.INSTALLMENT,
                total_installments=3,
                mark_paid=True,
                approved=True,
            ),
            admin.id,
        )

        payments = (
            await db_session.execute(select(Payment).where(Payment.admission_id == admission.id))
        ).scalars().all()
        assert len(payments) == 1
        assert payments[0].amount == 6000  # 18,000 over 3
        assert payments[0].transaction_id == f"ADM-{admission.student_id}-INST1"
        assert admission.payment_status == FeeStatus.PARTIALLY_PAID.value

        details = await FeeService(db_session).get_fee_details(admission.id)
        assert details.schedule.installments[0].status == "Paid"
        assert details.schedule.next_due.number == 2

    async def test_admin_admission_full_marked_paid(
        self, db_session: AsyncSession, course: Course, admin
    ):
        admission = await AdmissionService(db_session).create_admin_admission(
            AdminAdmissionCreate(**_form(course.id, email=None), mark_paid=True),
            admin.id,
        )

        summary = await FeeService(db_session).get_fee_summary(admission.id)
        assert summary.total_paid == 20000
        assert admission.payment_status == FeeStatus.PAID.value

    def test_installment_plan_needs_count(self):
        with pytest.raises(ValueError):
            AdminAdmissionCreate(**_form(1), payment_plan=PaymentPlan.INSTALLMENT)

    async def test_list_search_and_status_filter(
        self, db_session: AsyncSession, course: Course, make_admission
    ):
        first = await make_admission()
        await make_admission()
        service = AdmissionService(db_session)

        items, total = await service.list_admissions(AdmissionFilters(search=first.student_id))
        assert total == 1
        assert items[0].id == first.id

        items, total = await service.list_admissions(
            AdmissionFilters(payment_status=FeeStatus.PENDING)
        )
        assert total == 2

    async def test_approve_once(self, db_session: AsyncSession, make_admission, admin):
        admission = await make_admission(approved=False)
        service = AdmissionService(db_session)

        approved = await service.approve_admission(admission.id, admin.id)
        assert approved.approved is True

        with pytest.raises(InvalidStateTransitionError):
            await service.approve_admission(admission.id, admin.id)

    async def test_course_change_refreshes_snapshot(
        self, db_session: AsyncSession, make_admission, admin
    ):
        admission = await make_admission()
        other = Course(name="Tally Prime", duration="3 Months", fees=8000, category="Office Tools")
        db_session.add(other)
        await db_session.commit()

        updated = await AdmissionService(db_session).update_admission(
            admission.id, AdmissionUpdate(course_id=other.id, address="New address"), admin.id
        )

        assert updated.course_id == other.id
        assert updated.fees_snapshot == 8000
        assert updated.address == "New address"

    async def test_delete_only_unapproved(self, db_session: AsyncSession, make_admission, admin):
        approved = await make_admission(approved=True)
        pending = await make_admission(approved=False)
        service = AdmissionService(db_session)

        with pytest.raises(ValidationError):
            await service.delete_admission(approved.id, admin.id)

        await service.delete_admission(pending.id, admin.id)
        items, total = await service.list_admissions(AdmissionFilters())
        assert total == 1


class TestAdmissionEndpoints:
    """Tests for admission API endpoints."""

    async def test_public_form_ignores_fee_terms(self, client: AsyncClient, course: Course):
        response = await client.post(
            "/api/v1/admissions",
            json=_form(course.id, discount=5000, payment_plan="Installment"),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["discount"] == 0
        assert data["payment_plan"] == "Full"
        assert data["student_id"] in response.json()["message"]

    async def test_student_logs_in_with_mobile(self, client: AsyncClient, course: Course):
        await client.post("/api/v1/admissions", json=_form(course.id))

        login = await client.post(
            "/api/v1/auth/login",
            json={"email": "priya.sharma@gmail.com", "password": "9876543210"},
        )
        assert login.status_code == 200
        token = login.json()["data"]["access_token"]

        response = await client.get(
            "/api/v1/admissions/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Priya Sharma"

    async def test_admin_list_requires_admin(self, client: AsyncClient, student_headers):
        response = await client.get("/api/v1/admissions", headers=student_headers)
        assert response.status_code == 403

    async def test_admin_create_and_approve(
        self, client: AsyncClient, admin_headers, course: Course
    ):
        created = await client.post(
            "/api/v1/admissions/admin",
            headers=admin_headers,
            json={**_form(course.id), "discount": 1000, "mark_paid": True},
        )
        assert created.status_code == 201
        admission = created.json()["data"]
        assert admission["payment_status"] == "Paid"

        approved = await client.post(
            f"/api/v1/admissions/{admission['id']}/approve", headers=admin_headers
        )
        assert approved.status_code == 200
        assert approved.json()["data"]["approved"] is True

        listed = await client.get(
            "/api/v1/admissions", headers=admin_headers, params={"payment_status": "Paid"}
        )
        assert listed.json()["data"]["total"] == 1
