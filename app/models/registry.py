"""Imports every mapped class so string relationships resolve and metadata is complete."""

from app.models.user import User
from app.models.course import Course, CourseCategory
from app.models.module import Module
from app.models.lesson import Lesson, LessonContent
from app.models.exercise import Exercise, CodeSubmission
from app.models.enrollment import Enrollment
from app.models.user_progress import UserProgress
from app.models.bookmark import Bookmark

__all__ = [
    "User",
    "Course",
    "CourseCategory",
    "Module",
    "Lesson",
    "LessonContent",
    "Exercise",
    "CodeSubmission",
    "Enrollment",
    "UserProgress",
    "Bookmark",
]
