from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime

from app.core.constants import CourseLevelEnum, CourseStatusEnum, EnrollmentTypeEnum
from app.schemas.form import FormModel
from app.utils.text import SLUG_PATTERN


class CourseFilters(FormModel):
    category_id: Optional[int] = None
    difficulty: Optional[CourseLevelEnum] = None
    search: Optional[str] = None
    enrollment_type: Optional[EnrollmentTypeEnum] = EnrollmentTypeEnum.OPEN


class CourseForm(FormModel):
    title: str = Field(..., min_length=3, max_length=255)
    slug: str = Field(..., max_length=255)
    description: Optional[str] = None
    image: Optional[str] = None
    difficulty: CourseLevelEnum = CourseLevelEnum.BEGINNER
    status: CourseStatusEnum = CourseStatusEnum.DRAFT
    sort_order: int = 0
    category_id: Optional[int] = None
    instructor_id: Optional[int] = None
    parent_course_id: Optional[int] = None
    enrollment_type: EnrollmentTypeEnum = EnrollmentTypeEnum.OPEN
    capacity: Optional[int] = Field(None, ge=1)
    is_free: bool = False
    is_self_paced: bool = False
    syllabus: Optional[str] = None
    tags: Optional[str] = None

    @field_validator("title")
    def strip_title(cls, v):
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Title must be at least 3 characters long.")
        return v

    @field_validator("slug")
    def validate_slug(cls, v):
        v = v.strip().lower()
        if not SLUG_PATTERN.match(v):
            raise ValueError("Slug may only contain lowercase letters, numbers and hyphens.")
        return v


class Course(BaseModel):
    id: int
    title: str
    slug: str
    description: Optional[str] = None
    image: Optional[str] = None
    difficulty: CourseLevelEnum
    status: CourseStatusEnum
    enrollment_type: EnrollmentTypeEnum
    capacity: Optional[int] = None
    parent_course_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
