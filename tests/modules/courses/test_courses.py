"""Tests for Courses module."""

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.modules.courses.models import Course
from src.modules.fees.service import FeeService
from src.modules.payments.schemas import PaymentRecord
from src.modules.payments.service import PaymentService


class TestCourseEndpoints:
    """Tests for course API endpoints."""

    async def test_create_course(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/v1/courses",
            headers=admin_headers,
            json={
                "name": "Python Programming",
                "duration": "3 Months",
                "fees": 12000,
                "category": "Programming",
            },
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["fees"] == 12000
        assert data["status"] == "Active"

    async def test_create_requires_admin(self, client: AsyncClient, student_headers):
        response = await client.post(
            "/api/v1/courses",
            headers=student_headers,
            json={"name": "X", "duration": "1 Month", "fees": 100},
        )
        assert response.status_code == 403

    async def test_negative_fee_rejected(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/v1/courses",
            headers=admin_headers,
            json={"name": "X", "duration": "1 Month", "fees": -1},
        )
        assert response.status_code == 422

    async def test_public_list_filters_by_status(
        self, client: AsyncClient, db_session: AsyncSession, course: Course
    ):
        db_session.add(Course(name="Old Course", duration="1 Month", fees=500, status="Inactive"))
        await db_session.commit()

        response = await client.get("/api/v1/courses", params={"status": "Active"})

        assert response.status_code == 200
        assert [c["name"] for c in response.json()["data"]] == ["Full Stack Development"]

    async def test_update_course_fee(self, client: AsyncClient, admin_headers, course: Course):
        response = await client.patch(
            f"/api/v1/courses/{course.id}", headers=admin_headers, json={"fees": 22000}
        )

        assert response.status_code == 200
        assert response.json()["data"]["fees"] == 22000

    async def test_fee_change_reprices_admissions(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        admin_headers,
        admin,
        course: Course,
        make_admission,
    ):
        admission = await make_admission()
        snapshot_only = await make_admission(with_course=False, fees_snapshot=20000)
        for target in (admission, snapshot_only):
            await PaymentService(db_session).record_payment(
                PaymentRecord(admission_id=target.id, amount=20000), admin.id
            )

        response = await client.patch(
            f"/api/v1/courses/{course.id}", headers=admin_headers, json={"fees": 25000}
        )
        assert response.status_code == 200

        summary = await client.get(
            f"/api/v1/fees/admissions/{admission.id}/summary", headers=admin_headers
        )
        assert summary.json()["data"]["payment_status"] == "Partially Paid"
        assert summary.json()["data"]["balance_due"] == 5000

        row = await client.get(f"/api/v1/admissions/{admission.id}", headers=admin_headers)
        assert row.json()["data"]["payment_status"] == "Partially Paid"

        paid = await client.get(
            "/api/v1/admissions", headers=admin_headers, params={"payment_status": "Paid"}
        )
        assert [a["id"] for a in paid.json()["data"]["items"]] == [snapshot_only.id]

        partial = await client.get(
            "/api/v1/admissions",
            headers=admin_headers,
            params={"payment_status": "Partially Paid"},
        )
        assert [a["id"] for a in partial.json()["data"]["items"]] == [admission.id]

    async def test_delete_course_keeps_admission_fees(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        admin_headers,
        course: Course,
        make_admission,
    ):
        admission = await make_admission()

        response = await client.delete(f"/api/v1/courses/{course.id}", headers=admin_headers)
        assert response.status_code == 200

        fees = FeeService(db_session)
        loaded = await fees.get_admission(admission.id)
        assert loaded.course_id is None
        summary = await fees.summarize_admission(loaded)
        assert summary.gross_fees == 20000

    async def test_get_missing_course(self, client: AsyncClient):
        response = await client.get("/api/v1/courses/404")
        assert response.status_code == 404
