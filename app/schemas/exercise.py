from pydantic import BaseModel, Field, field_validator
from typing import Optional

from app.core.constants import SubmissionStatusEnum
from app.schemas.form import FormModel


class ExerciseForm(FormModel):
    lesson_id: int
    title: str = Field(..., min_length=3, max_length=255)
    description: Optional[str] = None
    starter_code: Optional[str] = None
    solution_code: Optional[str] = None
    test_cases: Optional[str] = None
    hints: Optional[str] = None
    sort_order: int = 0

    @field_validator("title")
    def strip_title(cls, v):
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Title must be at least 3 characters long.")
        return v


class SubmissionForm(FormModel):
    code: str


class SubmissionResult(BaseModel):
    submission_id: int
    status: SubmissionStatusEnum
    output: str

    @property
    def passed(self) -> bool:
        return self.status == SubmissionStatusEnum.PASSED
