"""Pydantic schemas for Courses module."""

from datetime import datetime

from pydantic import Field

from src.shared.schemas.base import BaseSchema, Rupees
from src.modules.courses.models import CourseCategory, CourseStatus


class CourseCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    duration: str = Field(..., min_length=1, max_length=50)
    fees: Rupees
    category: CourseCategory = CourseCategory.OTHER
    eligibility: str = "Open for all"
    status: CourseStatus = CourseStatus.ACTIVE


class CourseUpdate(BaseSchema):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    duration: str | None = Field(None, min_length=1, max_length=50)
    fees: Rupees | None = None
    category: CourseCategory | None = None
    eligibility: str | None = None
    status: CourseStatus | None = None


class CourseResponse(BaseSchema):
    id: int
    name: str
    description: str
    duration: str
    fees: int
    category: str
    eligibility: str
    status: str
    created_at: datetime
    updated_at: datetime


class CourseBrief(BaseSchema):
    """Embedded in admission responses."""

    id: int
    name: str
    fees: int
    duration: str
