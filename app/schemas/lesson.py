from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator
from typing import List, Optional

from app.core.constants import ContentBlockTypeEnum, LessonStatusEnum, LessonTypeEnum
from app.schemas.form import FormModel


class ContentBlock(BaseModel):
    block_type: ContentBlockTypeEnum = ContentBlockTypeEnum.TEXT
    content: str
    code_language: Optional[str] = None


class LessonForm(FormModel):
    module_id: int
    title: str = Field(..., min_length=3, max_length=255)
    content: Optional[str] = None
    code_examples: Optional[str] = None
    sort_order: int = 0
    status: LessonStatusEnum = LessonStatusEnum.DRAFT
    content_type: LessonTypeEnum = LessonTypeEnum.TEXT
    featured_image: Optional[str] = None
    estimated_time: Optional[int] = Field(None, ge=0)
    objectives: Optional[str] = None
    content_blocks: List[ContentBlock] = Field(default_factory=list)

    @field_validator("title")
    def strip_title(cls, v):
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Title must be at least 3 characters long.")
        return v


class LessonLink(BaseModel):
    id: int
    title: str
    module_id: int
    course_id: int

    model_config = ConfigDict(from_attributes=True)

    @property
    def url(self) -> str:
        return f"/courses/{self.course_id}/modules/{self.module_id}/lessons/{self.id}"


class LessonNavigation(BaseModel):
    previous: Optional[LessonLink] = None
    next: Optional[LessonLink] = None


class TimeTrackRequest(BaseModel):
    seconds: PositiveInt
