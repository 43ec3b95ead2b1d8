import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.auth.models import UserRole
from src.core.auth.password import verify_password
from src.core.auth.service import AuthService
from src.core.exceptions import AuthenticationError, DuplicateError, ValidationError


class TestAuthService:
    """Tests for AuthService."""

    async def test_create_user(self, db_session: AsyncSession):
        """Test creating a new user."""
        auth_service = AuthService(db_session)

        user = await auth_service.create_user(
            email="Office@Pretech.in",
            password="Password123",
            full_name="Office Admin",
            role=UserRole.ADMIN,
        )

        assert user.id is not None
        assert user.email == "office@pretech.in"
        assert user.role == "admin"
        assert user.is_active is True
        assert user.password_hash != "Password123"
        assert verify_password("Password123", user.password_hash)

    async def test_create_user_duplicate_email(self, db_session: AsyncSession):
        """Test that duplicate email raises error."""
        auth_service = AuthService(db_session)

        await auth_service.create_user(
            email="office@pretech.in",
            password="Password123",
            full_name="Office Admin",
            role=UserRole.ADMIN,
        )

        with pytest.raises(DuplicateError) as exc_info:
            await auth_service.create_user(
                email="office@pretech.in",
                password="AnotherPass123",
                full_name="Another User",
                role=UserRole.STUDENT,
            )

        assert "already exists" in str(exc_info.value)

    async def test_student_account_uses_mobile_as_password(self, db_session: AsyncSession):
        auth_service = AuthService(db_session)

        user = await auth_service.get_or_create_student(
            email="ravi@gmail.com", full_name="Ravi Kumar", mobile="9000000001"
        )

        assert user.role == UserRole.STUDENT.value
        assert user.phone == "9000000001"
        logged_in, _, _ = await auth_service.authenticate("ravi@gmail.com", "9000000001")
        assert logged_in.id == user.id

    async def test_student_account_is_reused_for_same_email(self, db_session: AsyncSession):
        auth_service = AuthService(db_session)

        first = await auth_service.get_or_create_student(
            email="ravi@gmail.com", full_name="Ravi Kumar", mobile="9000000001"
        )
        second = await auth_service.get_or_create_student(
            email="RAVI@gmail.com", full_name="Ravi K", mobile="9000000002"
        )

        assert second.id == first.id

    async def test_authenticate_wrong_password(self, db_session: AsyncSession):
        """Test authentication with wrong password."""
        auth_service = AuthService(db_session)

        await auth_service.create_user(
            email="office@pretech.in",
            password="Password123",
            full_name="Office Admin",
            role=UserRole.ADMIN,
        )

        with pytest.raises(AuthenticationError):
            await auth_service.authenticate(
                email="office@pretech.in",
                password="WrongPassword",
            )

    async def test_authenticate_inactive_user(self, db_session: AsyncSession):
        """Test authentication with inactive user."""
        auth_service = AuthService(db_session)

        user = await auth_service.create_user(
            email="office@pretech.in",
            password="Password123",
            full_name="Office Admin",
            role=UserRole.ADMIN,
        )
        user.is_active = False
        await db_session.flush()

        with pytest.raises(AuthenticationError) as exc_info:
            await auth_service.authenticate(
                email="office@pretech.in",
                password="Password123",
            )

        assert "deactivated" in str(exc_info.value)

    async def test_refresh_tokens_rejects_access_token(self, db_session: AsyncSession):
        auth_service = AuthService(db_session)
        await auth_service.create_user(
            email="office@pretech.in",
            password="Password123",
            full_name="Office Admin",
            role=UserRole.ADMIN,
        )
        _, access_token, refresh_token = await auth_service.authenticate(
            "office@pretech.in", "Password123"
        )

        new_access, new_refresh = await auth_service.refresh_tokens(refresh_token)
        assert new_access and new_refresh

        with pytest.raises(AuthenticationError):
            await auth_service.refresh_tokens(access_token)

    async def test_change_password(self, db_session: AsyncSession, student_user):
        auth_service = AuthService(db_session)

        await auth_service.change_password(student_user, "9123456780", "NewSecret99")

        assert verify_password("NewSecret99", student_user.password_hash)
        with pytest.raises(AuthenticationError):
            await auth_service.authenticate("asha.verma@gmail.com", "9123456780")

    async def test_change_password_checks_current(self, db_session: AsyncSession, student_user):
        with pytest.raises(AuthenticationError):
            await AuthService(db_session).change_password(student_user, "wrong", "NewSecret99")

    async def test_change_password_must_differ(self, db_session: AsyncSession, student_user):
        with pytest.raises(ValidationError):
            await AuthService(db_session).change_password(
                student_user, "9123456780", "9123456780"
            )


class TestAuthEndpoints:
    """Tests for auth API endpoints."""

    async def test_login_success(self, client: AsyncClient, admin):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "admin@pretech.in", "password": "Admin12345"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert "access_token" in data["data"]
        assert "refresh_token" in data["data"]
        assert data["data"]["user"]["role"] == "admin"

    async def test_login_wrong_credentials(self, client: AsyncClient):
        """Test login with wrong credentials."""
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@pretech.in", "password": "WrongPass"},
        )

        assert response.status_code == 401
        assert response.json()["success"] is False

    async def test_get_me_unauthorized(self, client: AsyncClient):
        """Test /me endpoint without token."""
        response = await client.get("/api/v1/auth/me")
        assert response.status_code == 401

    async def test_get_me_with_garbage_token(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401

    async def test_get_me_authorized(self, client: AsyncClient, student_headers):
        response = await client.get("/api/v1/auth/me", headers=student_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["data"]["email"] == "asha.verma@gmail.com"
        assert data["data"]["role"] == "student"

    async def test_student_cannot_use_admin_endpoint(
        self, client: AsyncClient, student_headers
    ):
        response = await client.get("/api/v1/fees/overview", headers=student_headers)
        assert response.status_code == 403

    async def test_student_login_carries_student_id(
        self, client: AsyncClient, student_user, make_admission
    ):
        admission = await make_admission(user=student_user)

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "asha.verma@gmail.com", "password": "9123456780"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["data"]["student_id"] == admission.student_id
        assert body["message"] == f"Welcome, Asha Verma ({admission.student_id})"

    async def test_admin_login_has_no_student_id(self, client: AsyncClient, admin):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "admin@pretech.in", "password": "Admin12345"},
        )

        assert response.json()["data"]["student_id"] is None
        assert response.json()["message"] == "Login successful"

    async def test_change_password_api(self, client: AsyncClient, student_headers):
        response = await client.post(
            "/api/v1/auth/change-password",
            headers=student_headers,
            json={"current_password": "9123456780", "new_password": "NewSecret99"},
        )
        assert response.status_code == 200

        login = await client.post(
            "/api/v1/auth/login",
            json={"email": "asha.verma@gmail.com", "password": "NewSecret99"},
        )
        assert login.status_code == 200

    async def test_change_password_too_short(self, client: AsyncClient, student_headers):
        response = await client.post(
            "/api/v1/auth/change-password",
            headers=student_headers,
            json={"current_password": "9123456780", "new_password": "short"},
        )
        assert response.status_code == 422
