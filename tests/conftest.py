from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.core.auth.models import User, UserRole
from src.core.auth.service import AuthService
from src.core.database.base import Base
from src.core.database import get_db
from src.main import app
from src.modules.admissions.models import Admission, FeeStatus, PaymentPlan
from src.modules.courses.models import Course, CourseStatus

# Test database URL (in-memory SQLite shared by every connection of the pool)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
test_async_session = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

ADMIN_EMAIL = "admin@pretech.in"
ADMIN_PASSWORD = "Admin12345"


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get test database session."""
    async with test_async_session() as session:
        yield session


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Get test HTTP client with overridden database dependency."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def admin(db_session: AsyncSession) -> User:
    auth_service = AuthService(db_session)
    user = await auth_service.create_user(
        email=ADMIN_EMAIL,
        password=ADMIN_PASSWORD,
        full_name="Office Admin",
        role=UserRole.ADMIN,
    )
    await db_session.commit()
    return user


@pytest.fixture
async def admin_headers(db_session: AsyncSession, admin: User) -> dict[str, str]:
    _, access_token, _ = await AuthService(db_session).authenticate(ADMIN_EMAIL, ADMIN_PASSWORD)
    await db_session.commit()
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
async def course(db_session: AsyncSession) -> Course:
    course = Course(
        name="Full Stack Development",
        description="HTML, CSS, JavaScript, Python",
        duration="6 Months",
        fees=20000,
        category="Web Development",
        status=CourseStatus.ACTIVE.value,
    )
    db_session.add(course)
    await db_session.commit()
    await db_session.refresh(course)
    return course


@pytest.fixture
def make_admission(db_session: AsyncSession, course: Course):
    """Factory for admissions inserted directly, bypassing the admission form."""
    counter = {"n": 0}

    async def _make(
        *,
        discount: int = 0,
        payment_plan: PaymentPlan = PaymentPlan.FULL,
        total_installments: int = 1,
        approved: bool = True,
        user: User | None = None,
        fees_snapshot: int | None = None,
        with_course: bool = True,
    ) -> Admission:
        counter["n"] += 1
        admission = Admission(
            student_id=f"PRETECH-2026-{counter['n']:04d}",
            name=f"Student {counter['n']}",
            father_husband_name="Parent",
            gender="Male",
            mobile="9876543210",
            email=user.email if user else None,
            address="Main Road",
            batch_timing="Morning (9AM-12PM)",
            course_id=course.id if with_course else None,
            fees_snapshot=fees_snapshot if fees_snapshot is not None or not with_course else course.fees,
            discount=discount,
            payment_plan=payment_plan.value,
            total_installments=total_installments,
            payment_status=FeeStatus.PENDING.value,
            approved=approved,
            user_id=user.id if user else None,
            version=1,
        )
        db_session.add(admission)
        await db_session.commit()
        return admission

    return _make


@pytest.fixture
async def student_user(db_session: AsyncSession) -> User:
    user = await AuthService(db_session).get_or_create_student(
        email="asha.verma@gmail.com", full_name="Asha Verma", mobile="9123456780"
    )
    await db_session.commit()
    return user


@pytest.fixture
async def student_headers(db_session: AsyncSession, student_user: User) -> dict[str, str]:
    _, access_token, _ = await AuthService(db_session).authenticate(
        "asha.verma@gmail.com", "9123456780"
    )
    await db_session.commit()
    return {"Authorization": f"Bearer {access_token}"}
