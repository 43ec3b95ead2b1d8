"""Course model."""

from enum import StrEnum

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import BaseModel, money_column, non_negative


class CourseStatus(StrEnum):
    """Course status options."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"


class CourseCategory(StrEnum):
    PROGRAMMING = "Programming"
    WEB_DEVELOPMENT = "Web Development"
    DATA_SCIENCE = "Data Science"
    NETWORKING = "Networking"
    OFFICE_TOOLS = "Office Tools"
    GRAPHIC_DESIGN = "Graphic Design"
    CERTIFICATION = "Certification"
    OTHER = "Other"


class Course(BaseModel):
    """
    A course offered by the institute.

    ``fees`` is the gross list price. Admissions reference a course but never
    own it; deleting a course leaves admissions on their fee snapshot.
    """

    __tablename__ = "courses"
    __table_args__ = (non_negative("fees", "courses"),)

    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    duration: Mapped[str] = mapped_column(String(50), nullable=False)  # "6 Months"
    fees: Mapped[int] = money_column()
    category: Mapped[str] = mapped_column(
        String(50), nullable=False, default=CourseCategory.OTHER.value
    )
    eligibility: Mapped[str] = mapped_column(String(200), nullable=False, default="Open for all")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CourseStatus.ACTIVE.value, index=True
    )

    @property
    def is_active(self) -> bool:
        return self.status == CourseStatus.ACTIVE.value
