import logging
from typing import List

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationFailed
from app.crud.course import course as crud_course
from app.crud.lesson import lesson as crud_lesson
from app.crud.module import module as crud_module
from app.crud.user_progress import user_progress as crud_progress
from app.models.module import Module
from app.schemas.module import ModuleForm

logger = logging.getLogger(__name__)


class ModuleService:
    def get_module(self, db: Session, *, module_id: int) -> Module:
        module = crud_module.get(db, id=module_id)
        if not module:
            raise NotFoundError("Module not found.")
        return module

    def get_course_module(self, db: Session, *, course_id: int, module_id: int) -> Module:
        """Module that must belong to the given course."""
        module = crud_module.get_with_lessons(db, module_id=module_id)
        if not module or module.course_id != course_id:
            raise NotFoundError("Module not found.")
        return module

    def list_by_course(self, db: Session, *, course_id: int) -> List[Module]:
        if not crud_course.get(db, id=course_id):
            raise NotFoundError("Course not found.")
        return crud_module.get_by_course(db, course_id=course_id)

    def list_modules(self, db: Session) -> List[Module]:
        return crud_module.get_all_ordered(db)

    def _check_course(self, db: Session, course_id: int) -> None:
        if not crud_course.get(db, id=course_id):
            raise ValidationFailed({"course_id": "Please choose a course."})

    def create_module(self, db: Session, *, form: ModuleForm) -> Module:
        self._check_course(db, form.course_id)
        module = crud_module.create(db, obj_in=form.model_dump())
        logger.info(f"Created module {module.id} in course {module.course_id}")
        return module

    def update_module(self, db: Session, *, module_id: int, form: ModuleForm) -> Module:
        module = self.get_module(db, module_id=module_id)
        self._check_course(db, form.course_id)
        moved = module.course_id != form.course_id
        module = crud_module.update(db, db_obj=module, obj_in=form.model_dump(), commit=False)
        if moved:
            # Lessons carry their module's course id
            for lesson in module.lessons:
                lesson.course_id = module.course_id
            crud_progress.reassign_lessons(
                db, lesson_ids=[lesson.id for lesson in module.lessons], course_id=module.course_id
            )
        db.commit()
        db.refresh(module)
        return module

    def delete_module(self, db: Session, *, module_id: int) -> None:
        if not crud_module.delete(db, id=module_id):
            raise NotFoundError("Module not found.")
        logger.info(f"Deleted module {module_id}")

    def published_lessons(self, db: Session, *, module_id: int):
        return crud_lesson.get_published_by_module(db, module_id=module_id)


module_service = ModuleService()
