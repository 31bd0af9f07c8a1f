from typing import List, Optional
from sqlalchemy.orm import Session, selectinload

from app.core.constants import LessonStatusEnum
from app.crud.base import CRUDBase
from app.models.lesson import Lesson, LessonContent
from app.models.module import Module


class CRUDLesson(CRUDBase[Lesson, object, object]):
    def get_with_exercises(self, db: Session, *, lesson_id: int) -> Optional[Lesson]:
        return (
            db.query(Lesson)
            .options(selectinload(Lesson.exercises), selectinload(Lesson.content_blocks))
            .filter(Lesson.id == lesson_id)
            .first()
        )

    def get_published_by_module(self, db: Session, *, module_id: int) -> List[Lesson]:
        return (
            db.query(Lesson)
            .filter(Lesson.module_id == module_id, Lesson.status == LessonStatusEnum.PUBLISHED)
            .order_by(Lesson.sort_order.asc(), Lesson.id.asc())
            .all()
        )

    def get_published_sequence(self, db: Session, *, course_id: int) -> List[Lesson]:
        """Published lessons of a course flattened in (module order, lesson order)."""
        return (
            db.query(Lesson)
            .join(Module, Lesson.module_id == Module.id)
            .filter(Module.course_id == course_id, Lesson.status == LessonStatusEnum.PUBLISHED)
            .order_by(Module.sort_order.asc(), Module.id.asc(), Lesson.sort_order.asc(), Lesson.id.asc())
            .all()
        )

    def count_published_by_course(self, db: Session, *, course_id: int) -> int:
        return (
            db.query(Lesson)
            .join(Module, Lesson.module_id == Module.id)
            .filter(Module.course_id == course_id, Lesson.status == LessonStatusEnum.PUBLISHED)
            .count()
        )

    def get_all_ordered(self, db: Session) -> List[Lesson]:
        return db.query(Lesson).order_by(Lesson.created_at.desc(), Lesson.id.desc()).all()


class CRUDLessonContent(CRUDBase[LessonContent, object, object]):
    def replace_for_lesson(self, db: Session, *, lesson: Lesson, blocks: List[dict]) -> None:
        lesson.content_blocks.clear()
        db.flush()
        for index, block in enumerate(blocks):
            lesson.content_blocks.append(LessonContent(sort_order=index, **block))
        db.flush()


lesson = CRUDLesson(Lesson)
lesson_content = CRUDLessonContent(LessonContent)
