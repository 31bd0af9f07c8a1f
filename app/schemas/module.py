from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional

from app.schemas.form import FormModel


class ModuleForm(FormModel):
    course_id: int
    title: str = Field(..., min_length=3, max_length=255)
    description: Optional[str] = None
    sort_order: int = 0

    @field_validator("title")
    def strip_title(cls, v):
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Title must be at least 3 characters long.")
        return v


class ModuleSummary(BaseModel):
    id: int
    course_id: int
    title: str
    description: Optional[str] = None
    sort_order: int

    model_config = ConfigDict(from_attributes=True)
