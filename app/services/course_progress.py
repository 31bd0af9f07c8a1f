import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.constants import EnrollmentStatusEnum, ProgressStatusEnum
from app.core.exceptions import NotFoundError
from app.crud.enrollment import enrollment as crud_enrollment
from app.crud.lesson import lesson as crud_lesson
from app.crud.user_progress import user_progress as crud_progress
from app.models.lesson import Lesson
from app.models.user_progress import UserProgress
from app.schemas.progress import LessonCompletion, OverallProgress, TimeTracked
from app.schemas.user import UserContext

logger = logging.getLogger(__name__)


class CourseProgressService:

    def compute_course_progress(self, db: Session, *, user_id: int, course_id: int) -> float:
        """Completed published lessons over all published lessons, as a 0-100 percentage."""
        total = crud_lesson.count_published_by_course(db, course_id=course_id)
        if total == 0:
            return 0.0
        completed = crud_progress.count_completed_published(db, user_id=user_id, course_id=course_id)
        return round(completed / total * 100, 2)

    def _get_lesson(self, db: Session, lesson_id: int) -> Lesson:
        lesson = crud_lesson.get(db, id=lesson_id)
        if not lesson:
            raise NotFoundError("Lesson not found.")
        return lesson

    def _get_or_create_progress(self, db: Session, *, user_id: int, lesson: Lesson) -> UserProgress:
        progress = crud_progress.get_by_user_and_lesson(db, user_id=user_id, lesson_id=lesson.id)
        if progress:
            return progress

        progress = UserProgress(
            user_id=user_id,
            lesson_id=lesson.id,
            course_id=lesson.course_id,
            module_id=lesson.module_id,
            status=ProgressStatusEnum.IN_PROGRESS,
            time_spent=0,
        )
        db.add(progress)
        try:
            db.flush()
        except IntegrityError:
            # A concurrent request created the row first
            db.rollback()
            progress = crud_progress.get_by_user_and_lesson(db, user_id=user_id, lesson_id=lesson.id)
        return progress

    def _refresh_enrollment(self, db: Session, *, user_id: int, course_id: int, now: datetime) -> float:
        percentage = self.compute_course_progress(db, user_id=user_id, course_id=course_id)
        enrollment = crud_enrollment.get_by_user_and_course(db, user_id=user_id, course_id=course_id)
        if enrollment and enrollment.is_active:
            enrollment.progress_percentage = percentage
            enrollment.last_accessed_at = now
            if percentage >= 100 and enrollment.status != EnrollmentStatusEnum.COMPLETED:
                enrollment.status = EnrollmentStatusEnum.COMPLETED
                enrollment.completed_at = now
                logger.info(f"User {user_id} completed course {course_id}")
        return percentage

    def mark_lesson_complete(self, db: Session, *, lesson_id: int, current_user_context: UserContext) -> LessonCompletion:
        lesson = self._get_lesson(db, lesson_id)
        user_id = current_user_context.id
        now = datetime.utcnow()

        progress = self._get_or_create_progress(db, user_id=user_id, lesson=lesson)
        if progress.status != ProgressStatusEnum.COMPLETED:
            progress.status = ProgressStatusEnum.COMPLETED
            progress.completed_at = now
        progress.last_accessed_at = now
        db.flush()

        percentage = self._refresh_enrollment(db, user_id=user_id, course_id=lesson.course_id, now=now)
        db.commit()

        enrollment = crud_enrollment.get_by_user_and_course(db, user_id=user_id, course_id=lesson.course_id)
        return LessonCompletion(
            lesson_id=lesson.id,
            course_id=lesson.course_id,
            progress_percentage=percentage,
            course_completed=bool(enrollment and enrollment.status == EnrollmentStatusEnum.COMPLETED),
        )

    def track_time(self, db: Session, *, lesson_id: int, seconds: int, current_user_context: UserContext) -> TimeTracked:
        if seconds <= 0:
            raise ValueError("seconds must be positive")
        lesson = self._get_lesson(db, lesson_id)
        progress = self._get_or_create_progress(db, user_id=current_user_context.id, lesson=lesson)
        progress.time_spent = (progress.time_spent or 0) + seconds
        progress.last_accessed_at = datetime.utcnow()
        db.commit()
        return TimeTracked(lesson_id=lesson.id, time_spent=progress.time_spent)

    def record_access(self, db: Session, *, lesson: Lesson, user_id: int) -> UserProgress:
        now = datetime.utcnow()
        progress = self._get_or_create_progress(db, user_id=user_id, lesson=lesson)
        progress.last_accessed_at = now
        enrollment = crud_enrollment.get_by_user_and_course(db, user_id=user_id, course_id=lesson.course_id)
        if enrollment and enrollment.is_active:
            enrollment.last_accessed_at = now
        db.commit()
        return progress

    def completed_lesson_ids(self, db: Session, *, user_id: int, course_id: int) -> set:
        return {
            p.lesson_id
            for p in crud_progress.get_by_user_and_course(db, user_id=user_id, course_id=course_id)
            if p.is_completed
        }

    def get_overall_progress(self, db: Session, *, user_id: int) -> OverallProgress:
        enrollments = crud_enrollment.get_active_by_user(db, user_id=user_id)
        overall = OverallProgress(total_courses=len(enrollments))
        for enrollment in enrollments:
            if enrollment.status == EnrollmentStatusEnum.COMPLETED:
                overall.completed_courses += 1
            overall.total_lessons += crud_lesson.count_published_by_course(db, course_id=enrollment.course_id)
            overall.completed_lessons += crud_progress.count_completed_published(
                db, user_id=user_id, course_id=enrollment.course_id
            )
        if overall.total_lessons:
            overall.percentage = round(overall.completed_lessons / overall.total_lessons * 100, 2)
        return overall


course_progress_service = CourseProgressService()
