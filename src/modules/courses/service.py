"""Service for Courses module."""

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.audit.service import AuditAction, AuditService
from src.core.database.locking import bump_version, commit_serialized
from src.core.exceptions import NotFoundError
from src.modules.admissions.models import Admission
from src.modules.courses.models import Course, CourseStatus
from src.modules.courses.schemas import CourseCreate, CourseUpdate
from src.modules.fees.service import FeeService

logger = logging.getLogger(__name__)


class CourseService:
    """Service for managing courses."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def create_course(self, data: CourseCreate, created_by_id: int) -> Course:
        course = Course(
            name=data.name,
            description=data.description,
            duration=data.duration,
            fees=data.fees,
            category=data.category.value,
            eligibility=data.eligibility,
            status=data.status.value,
        )
        self.db.add(course)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="Course",
            entity_id=course.id,
            user_id=created_by_id,
            entity_identifier=course.name,
            new_values={"name": course.name, "fees": course.fees},
        )

        await self.db.commit()
        await self.db.refresh(course)
        return course

    async def get_course_by_id(self, course_id: int) -> Course:
        result = await self.db.execute(select(Course).where(Course.id == course_id))
        course = result.scalar_one_or_none()
        if not course:
            raise NotFoundError("Course", course_id)
        return course

    async def list_courses(
        self, status: CourseStatus | None = None, category: str | None = None
    ) -> list[Course]:
        query = select(Course).order_by(Course.created_at.desc(), Course.id.desc())
        if status:
            query = query.where(Course.status == status.value)
        if category:
            query = query.where(Course.category == category)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update_course(
        self, course_id: int, data: CourseUpdate, updated_by_id: int
    ) -> Course:
        """
        Update a course.

        A fee change reprices every admission that still references the course;
        admission fee snapshots are left alone.
        """
        course = await self.get_course_by_id(course_id)
        old_values = {}
        new_values = {}

        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            value = getattr(value, "value", value)
            if getattr(course, field) != value:
                old_values[field] = getattr(course, field)
                setattr(course, field, value)
                new_values[field] = value

        if new_values:
            await self.audit.log(
                action=AuditAction.UPDATE,
                entity_type="Course",
                entity_id=course_id,
                user_id=updated_by_id,
                entity_identifier=course.name,
                old_values=old_values,
                new_values=new_values,
            )

        if "fees" in new_values:
            await self._reprice_admissions(course)

        await commit_serialized(self.db, "Course", course_id)
        await self.db.refresh(course)
        return course

    async def _reprice_admissions(self, course: Course) -> None:
        """Re-derive the cached status of every admission still on ``course``."""
        # Write the new fee first; the eager load below repopulates the course
        await self.db.flush()
        result = await self.db.execute(
            select(Admission)
            .where(Admission.course_id == course.id)
            .options(selectinload(Admission.course))
            .order_by(Admission.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        admissions = list(result.scalars().all())

        fees = FeeService(self.db)
        for admission in admissions:
            bump_version(admission)
            await fees.refresh_payment_status(admission)

        logger.info(
            "Course %s fee changed to %s; repriced %s admissions",
            course.id,
            course.fees,
            len(admissions),
        )

    async def delete_course(self, course_id: int, deleted_by_id: int) -> None:
        """Delete a course; its admissions fall back to their fee snapshot."""
        course = await self.get_course_by_id(course_id)

        detached = await self.db.execute(
            update(Admission)
            .where(Admission.course_id == course_id)
            .values(course_id=None)
        )

        await self.audit.log(
            action=AuditAction.DELETE,
            entity_type="Course",
            entity_id=course_id,
            user_id=deleted_by_id,
            entity_identifier=course.name,
            old_values={"name": course.name, "fees": course.fees},
        )

        await self.db.delete(course)
        await self.db.commit()
        logger.info(
            "Deleted course %s (%s); %s admissions detached",
            course_id,
            course.name,
            detached.rowcount,
        )
