from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.constants import LessonStatusEnum, ProgressStatusEnum
from app.crud.base import CRUDBase
from app.models.lesson import Lesson
from app.models.module import Module
from app.models.user_progress import UserProgress


class CRUDUserProgress(CRUDBase[UserProgress, object, object]):
    def get_by_user_and_lesson(self, db: Session, *, user_id: int, lesson_id: int) -> Optional[UserProgress]:
        return (
            db.query(UserProgress)
            .filter(UserProgress.user_id == user_id, UserProgress.lesson_id == lesson_id)
            .first()
        )

    def get_by_user(self, db: Session, *, user_id: int) -> List[UserProgress]:
        return db.query(UserProgress).filter(UserProgress.user_id == user_id).all()

    def get_by_user_and_course(self, db: Session, *, user_id: int, course_id: int) -> List[UserProgress]:
        return (
            db.query(UserProgress)
            .join(Lesson, UserProgress.lesson_id == Lesson.id)
            .join(Module, Lesson.module_id == Module.id)
            .filter(UserProgress.user_id == user_id, Module.course_id == course_id)
            .all()
        )

    def count_completed_published(self, db: Session, *, user_id: int, course_id: int) -> int:
        return (
            db.query(func.count(UserProgress.id))
            .join(Lesson, UserProgress.lesson_id == Lesson.id)
            .join(Module, Lesson.module_id == Module.id)
            .filter(
                UserProgress.user_id == user_id,
                UserProgress.status == ProgressStatusEnum.COMPLETED,
                Module.course_id == course_id,
                Lesson.status == LessonStatusEnum.PUBLISHED,
            )
            .scalar()
        ) or 0

    def count_completed_by_user(self, db: Session, *, user_id: int) -> int:
        return (
            db.query(UserProgress)
            .filter(UserProgress.user_id == user_id, UserProgress.status == ProgressStatusEnum.COMPLETED)
            .count()
        )

    def total_time_by_user(self, db: Session, *, user_id: int) -> int:
        total = (
            db.query(func.coalesce(func.sum(UserProgress.time_spent), 0))
            .filter(UserProgress.user_id == user_id)
            .scalar()
        )
        return int(total or 0)

    def reassign_lessons(self, db: Session, *, lesson_ids: List[int], course_id: int, module_id: Optional[int] = None) -> int:
        """Point progress rows of moved lessons at their new course (and module)."""
        if not lesson_ids:
            return 0
        values = {UserProgress.course_id: course_id}
        if module_id is not None:
            values[UserProgress.module_id] = module_id
        return (
            db.query(UserProgress)
            .filter(UserProgress.lesson_id.in_(lesson_ids))
            .update(values, synchronize_session="fetch")
        )


user_progress = CRUDUserProgress(UserProgress)
