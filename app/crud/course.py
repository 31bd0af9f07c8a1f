from typing import List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from app.core.constants import CourseStatusEnum, CourseLevelEnum, EnrollmentTypeEnum
from app.crud.base import CRUDBase
from app.models.course import Course, CourseCategory
from app.models.module import Module


class CRUDCourse(CRUDBase[Course, object, object]):
    def get_by_slug(self, db: Session, *, slug: str) -> Optional[Course]:
        return db.query(Course).filter(Course.slug == slug).first()

    def get_with_modules(self, db: Session, *, course_id: int) -> Optional[Course]:
        return (
            db.query(Course)
            .options(selectinload(Course.modules).selectinload(Module.lessons))
            .filter(Course.id == course_id)
            .first()
        )

    def get_published(
        self,
        db: Session,
        *,
        category_id: Optional[int] = None,
        difficulty: Optional[CourseLevelEnum] = None,
        search: Optional[str] = None,
        enrollment_type: Optional[EnrollmentTypeEnum] = EnrollmentTypeEnum.OPEN,
    ) -> List[Course]:
        query = db.query(Course).filter(Course.status == CourseStatusEnum.PUBLISHED)
        if category_id:
            query = query.filter(Course.category_id == category_id)
        if difficulty:
            query = query.filter(Course.difficulty == difficulty)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Course.title.ilike(pattern),
                Course.description.ilike(pattern),
                Course.tags.ilike(pattern),
            ))
        if enrollment_type is not None:
            query = query.filter(Course.enrollment_type == enrollment_type)
        return query.order_by(Course.sort_order.asc(), Course.created_at.desc()).all()

    def get_all_ordered(self, db: Session) -> List[Course]:
        return db.query(Course).order_by(Course.sort_order.asc(), Course.title.asc()).all()

    def get_by_instructor(self, db: Session, *, instructor_id: int) -> List[Course]:
        return (
            db.query(Course)
            .filter(Course.instructor_id == instructor_id)
            .order_by(Course.created_at.desc())
            .all()
        )

    def count_by_status(self, db: Session, *, status: CourseStatusEnum) -> int:
        return db.query(Course).filter(Course.status == status).count()

    def get_ancestor_ids(self, db: Session, *, course_id: int) -> List[int]:
        """Walk parent links upward from ``course_id`` (inclusive)."""
        chain = []
        current_id = course_id
        while current_id is not None and current_id not in chain:
            chain.append(current_id)
            row = db.query(Course.parent_course_id).filter(Course.id == current_id).first()
            current_id = row[0] if row else None
        return chain


class CRUDCourseCategory(CRUDBase[CourseCategory, object, object]):
    def get_all(self, db: Session) -> List[CourseCategory]:
        return db.query(CourseCategory).order_by(CourseCategory.sort_order.asc(), CourseCategory.name.asc()).all()

    def get_by_slug(self, db: Session, *, slug: str) -> Optional[CourseCategory]:
        return db.query(CourseCategory).filter(CourseCategory.slug == slug).first()


course = CRUDCourse(Course)
course_category = CRUDCourseCategory(CourseCategory)
