import logging
from typing import List

from sqlalchemy.orm import Session

from app.core.constants import ContentBlockTypeEnum, LessonTypeEnum
from app.core.exceptions import NotFoundError, ValidationFailed
from app.crud.lesson import lesson as crud_lesson, lesson_content as crud_lesson_content
from app.crud.module import module as crud_module
from app.crud.user_progress import user_progress as crud_progress
from app.models.lesson import Lesson
from app.schemas.lesson import LessonForm, LessonLink, LessonNavigation
from app.schemas.user import UserContext
from app.services.bookmark import bookmark_service
from app.services.course import course_service
from app.services.course_progress import course_progress_service
from app.services.rendering import markdown_renderer
from app.utils.text import slugify

logger = logging.getLogger(__name__)


class LessonService:

    def get_navigation(self, db: Session, *, course_id: int, lesson_id: int) -> LessonNavigation:
        """Neighbours of a lesson in the course-wide published sequence."""
        sequence = crud_lesson.get_published_sequence(db, course_id=course_id)
        ids = [lesson.id for lesson in sequence]
        if lesson_id not in ids:
            return LessonNavigation()

        index = ids.index(lesson_id)
        previous = sequence[index - 1] if index > 0 else None
        following = sequence[index + 1] if index + 1 < len(sequence) else None
        return LessonNavigation(
            previous=LessonLink.model_validate(previous) if previous else None,
            next=LessonLink.model_validate(following) if following else None,
        )

    def get_course_lesson(
        self, db: Session, *, course_id: int, module_id: int, lesson_id: int, current_user_context: UserContext
    ) -> Lesson:
        lesson = crud_lesson.get_with_exercises(db, lesson_id=lesson_id)
        if not lesson or lesson.module_id != module_id or lesson.module.course_id != course_id:
            raise NotFoundError("Lesson not found.")
        if not lesson.is_published and not current_user_context.is_staff:
            raise NotFoundError("Lesson not found.")
        return lesson

    def render_content(self, lesson: Lesson):
        if lesson.content_type == LessonTypeEnum.MARKDOWN:
            return markdown_renderer.render(lesson.content)
        return None

    def render_blocks(self, lesson: Lesson) -> List[dict]:
        blocks = []
        for block in lesson.content_blocks:
            entry = {
                "type": block.block_type.value,
                "content": block.content,
                "code_language": block.code_language,
                "html": None,
            }
            if block.block_type == ContentBlockTypeEnum.TEXT:
                entry["html"] = markdown_renderer.render(block.content)
            blocks.append(entry)
        return blocks

    def view_lesson(
        self, db: Session, *, course_id: int, module_id: int, lesson_id: int, current_user_context: UserContext
    ) -> dict:
        course = course_service.get_visible_course(db, course_id=course_id, current_user_context=current_user_context)
        lesson = self.get_course_lesson(
            db,
            course_id=course.id,
            module_id=module_id,
            lesson_id=lesson_id,
            current_user_context=current_user_context,
        )
        progress = course_progress_service.record_access(db, lesson=lesson, user_id=current_user_context.id)
        return {
            "course": course,
            "module": lesson.module,
            "lesson": lesson,
            "content_html": self.render_content(lesson),
            "blocks": self.render_blocks(lesson),
            "exercises": list(lesson.exercises),
            "progress": progress,
            "is_completed": progress.is_completed,
            "is_bookmarked": bookmark_service.is_bookmarked(db, lesson_id=lesson.id, user_id=current_user_context.id),
            "navigation": self.get_navigation(db, course_id=course.id, lesson_id=lesson.id),
            "course_progress": course_progress_service.compute_course_progress(
                db, user_id=current_user_context.id, course_id=course.id
            ),
        }

    # Administration

    def list_lessons(self, db: Session) -> List[Lesson]:
        return crud_lesson.get_all_ordered(db)

    def get_lesson(self, db: Session, *, lesson_id: int) -> Lesson:
        lesson = crud_lesson.get_with_exercises(db, lesson_id=lesson_id)
        if not lesson:
            raise NotFoundError("Lesson not found.")
        return lesson

    def _fields(self, db: Session, form: LessonForm) -> dict:
        module = crud_module.get(db, id=form.module_id)
        if not module:
            raise ValidationFailed({"module_id": "Please choose a module."})
        data = form.model_dump(exclude={"content_blocks"})
        data["course_id"] = module.course_id
        data["slug"] = slugify(form.title)
        return data

    def _blocks(self, form: LessonForm) -> List[dict]:
        return [
            block.model_dump()
            for block in form.content_blocks
            if block.content and block.content.strip()
        ]

    def create_lesson(self, db: Session, *, form: LessonForm) -> Lesson:
        lesson = crud_lesson.create(db, obj_in=self._fields(db, form), commit=False)
        crud_lesson_content.replace_for_lesson(db, lesson=lesson, blocks=self._blocks(form))
        db.commit()
        db.refresh(lesson)
        logger.info(f"Created lesson {lesson.id} in module {lesson.module_id}")
        return lesson

    def update_lesson(self, db: Session, *, lesson_id: int, form: LessonForm) -> Lesson:
        lesson = self.get_lesson(db, lesson_id=lesson_id)
        lesson = crud_lesson.update(db, db_obj=lesson, obj_in=self._fields(db, form), commit=False)
        crud_progress.reassign_lessons(
            db, lesson_ids=[lesson.id], course_id=lesson.course_id, module_id=lesson.module_id
        )
        crud_lesson_content.replace_for_lesson(db, lesson=lesson, blocks=self._blocks(form))
        db.commit()
        db.refresh(lesson)
        return lesson

    def delete_lesson(self, db: Session, *, lesson_id: int) -> None:
        if not crud_lesson.delete(db, id=lesson_id):
            raise NotFoundError("Lesson not found.")
        logger.info(f"Deleted lesson {lesson_id}")


lesson_service = LessonService()
