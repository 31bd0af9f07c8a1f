from sqlalchemy.orm import Session

from app.core.constants import CourseStatusEnum
from app.crud.course import course as crud_course
from app.crud.enrollment import enrollment as crud_enrollment
from app.crud.exercise import exercise as crud_exercise
from app.crud.lesson import lesson as crud_lesson
from app.crud.module import module as crud_module
from app.crud.user import user as crud_user
from app.crud.user_progress import user_progress as crud_progress
from app.schemas.user import UserContext
from app.services.bookmark import bookmark_service
from app.services.course import course_service
from app.services.course_progress import course_progress_service


class DashboardService:
    def student_dashboard(self, db: Session, *, current_user_context: UserContext) -> dict:
        user_id = current_user_context.id
        return {
            "enrollments": crud_enrollment.get_active_by_user(db, user_id=user_id),
            "overall": course_progress_service.get_overall_progress(db, user_id=user_id),
            "bookmarks": bookmark_service.list_for_user(db, user_id=user_id),
            "time_spent": crud_progress.total_time_by_user(db, user_id=user_id),
        }

    def instructor_dashboard(self, db: Session, *, current_user_context: UserContext) -> dict:
        return {
            "course_stats": course_service.course_stats(db, current_user_context=current_user_context),
        }

    def admin_dashboard(self, db: Session) -> dict:
        return {
            "counts": {
                "users": crud_user.count(db),
                "courses": crud_course.count(db),
                "published_courses": crud_course.count_by_status(db, status=CourseStatusEnum.PUBLISHED),
                "modules": crud_module.count(db),
                "lessons": crud_lesson.count(db),
                "exercises": crud_exercise.count(db),
                "enrollments": crud_enrollment.count_active(db),
            },
            "role_counts": crud_user.count_by_role(db),
        }


dashboard_service = DashboardService()
