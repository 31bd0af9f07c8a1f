from pydantic import BaseModel


class OverallProgress(BaseModel):
    total_courses: int = 0
    completed_courses: int = 0
    total_lessons: int = 0
    completed_lessons: int = 0
    percentage: float = 0.0


class LessonCompletion(BaseModel):
    lesson_id: int
    course_id: int
    progress_percentage: float
    course_completed: bool = False


class TimeTracked(BaseModel):
    lesson_id: int
    time_spent: int


class BookmarkState(BaseModel):
    lesson_id: int
    bookmarked: bool


class CourseStats(BaseModel):
    """Per-course figures shown on the instructor dashboard."""
    course_id: int
    title: str
    status: str
    enrollments: int = 0
    completed: int = 0
    modules: int = 0
    published_lessons: int = 0
