"""API endpoints for Courses module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.auth.dependencies import AdminUser
from src.core.database.session import get_db
from src.modules.courses.models import CourseCategory, CourseStatus
from src.modules.courses.schemas import CourseCreate, CourseResponse, CourseUpdate
from src.modules.courses.service import CourseService
from src.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/courses", tags=["Courses"])


@router.get("", response_model=ApiResponse[list[CourseResponse]])
async def list_courses(
    status: CourseStatus | None = Query(None),
    category: CourseCategory | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """List courses. Public: the admission form needs the course list."""
    service = CourseService(db)
    courses = await service.list_courses(
        status=status, category=category.value if category else None
    )
    return ApiResponse(data=[CourseResponse.model_validate(c) for c in courses])


@router.get("/{course_id}", response_model=ApiResponse[CourseResponse])
async def get_course(course_id: int, db: AsyncSession = Depends(get_db)):
    service = CourseService(db)
    course = await service.get_course_by_id(course_id)
    return ApiResponse(data=CourseResponse.model_validate(course))


@router.post(
    "",
    response_model=ApiResponse[CourseResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_course(
    data: CourseCreate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = CourseService(db)
    course = await service.create_course(data, current_user.id)
    return ApiResponse(
        data=CourseResponse.model_validate(course),
        message="Course created successfully",
    )


@router.patch("/{course_id}", response_model=ApiResponse[CourseResponse])
async def update_course(
    course_id: int,
    data: CourseUpdate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = CourseService(db)
    course = await service.update_course(course_id, data, current_user.id)
    return ApiResponse(
        data=CourseResponse.model_validate(course),
        message="Course updated successfully",
    )


@router.delete("/{course_id}", response_model=ApiResponse[None])
async def delete_course(
    course_id: int,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Delete a course. Admissions on it keep their fee snapshot."""
    service = CourseService(db)
    await service.delete_course(course_id, current_user.id)
    return ApiResponse(data=None, message="Course deleted")
