import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.constants import EnrollmentStatusEnum, RoleEnum
from app.core.exceptions import NotFoundError, ValidationFailed
from app.crud.course import course as crud_course, course_category as crud_category
from app.crud.enrollment import enrollment as crud_enrollment
from app.crud.lesson import lesson as crud_lesson
from app.crud.module import module as crud_module
from app.crud.user import user as crud_user
from app.models.course import Course, CourseCategory
from app.schemas.course import CourseFilters, CourseForm
from app.schemas.progress import CourseStats
from app.schemas.user import UserContext

logger = logging.getLogger(__name__)


class CourseService:

    # Catalog

    def list_published_courses(self, db: Session, *, filters: Optional[CourseFilters] = None) -> List[Course]:
        filters = filters or CourseFilters()
        return crud_course.get_published(
            db,
            category_id=filters.category_id,
            difficulty=filters.difficulty,
            search=filters.search.strip() if filters.search else None,
            enrollment_type=filters.enrollment_type,
        )

    def list_categories(self, db: Session) -> List[CourseCategory]:
        return crud_category.get_all(db)

    def get_course(self, db: Session, *, course_id: int) -> Course:
        course = crud_course.get(db, id=course_id)
        if not course:
            raise NotFoundError("Course not found.")
        return course

    def get_visible_course(self, db: Session, *, course_id: int, current_user_context: Optional[UserContext]) -> Course:
        """Course with modules loaded; drafts are only visible to staff."""
        course = crud_course.get_with_modules(db, course_id=course_id)
        if not course:
            raise NotFoundError("Course not found.")
        is_staff = current_user_context is not None and current_user_context.is_staff
        if not course.is_published and not is_staff:
            raise NotFoundError("Course not found.")
        return course

    def published_subcourses(self, course: Course) -> List[Course]:
        return [c for c in course.subcourses if c.is_published]

    # Administration

    def list_all_courses(self, db: Session) -> List[Course]:
        return crud_course.get_all_ordered(db)

    def _validate(self, db: Session, *, form: CourseForm, course: Optional[Course] = None) -> None:
        errors = {}
        if course is None or course.slug != form.slug:
            if crud_course.get_by_slug(db, slug=form.slug):
                errors["slug"] = "This slug is already in use."

        if form.parent_course_id is not None:
            if course is not None and form.parent_course_id == course.id:
                errors["parent_course_id"] = "A course cannot be its own parent."
            elif not crud_course.get(db, id=form.parent_course_id):
                errors["parent_course_id"] = "Parent course not found."
            elif course is not None and course.id in crud_course.get_ancestor_ids(db, course_id=form.parent_course_id):
                errors["parent_course_id"] = "This parent would create a cycle in the course hierarchy."

        if form.category_id is not None and not crud_category.get(db, id=form.category_id):
            errors["category_id"] = "Category not found."

        if form.instructor_id is not None:
            instructor = crud_user.get(db, id=form.instructor_id)
            if not instructor or instructor.role not in (RoleEnum.INSTRUCTOR, RoleEnum.ADMIN):
                errors["instructor_id"] = "Please choose an instructor."

        if errors:
            raise ValidationFailed(errors)

    def create_course(self, db: Session, *, form: CourseForm, current_user_context: UserContext) -> Course:
        self._validate(db, form=form)
        data = form.model_dump()
        if data["instructor_id"] is None and current_user_context.role == RoleEnum.INSTRUCTOR:
            data["instructor_id"] = current_user_context.id
        course = crud_course.create(db, obj_in=data)
        logger.info(f"Course {course.id} created by user {current_user_context.id}")
        return course

    def update_course(self, db: Session, *, course_id: int, form: CourseForm) -> Course:
        course = self.get_course(db, course_id=course_id)
        self._validate(db, form=form, course=course)
        return crud_course.update(db, db_obj=course, obj_in=form.model_dump())

    def delete_course(self, db: Session, *, course_id: int) -> None:
        course = self.get_course(db, course_id=course_id)
        for child in list(course.subcourses):
            child.parent_course_id = None
        db.flush()
        crud_course.delete(db, id=course.id)
        logger.info(f"Deleted course {course_id}")

    def parent_choices(self, db: Session, *, course: Optional[Course] = None) -> List[Course]:
        """Courses that may be assigned as parent without creating a cycle."""
        courses = crud_course.get_all_ordered(db)
        if course is None:
            return courses
        return [
            c for c in courses
            if course.id not in crud_course.get_ancestor_ids(db, course_id=c.id)
        ]

    def course_stats(self, db: Session, *, current_user_context: UserContext) -> List[CourseStats]:
        if current_user_context.is_admin:
            courses = crud_course.get_all_ordered(db)
        else:
            courses = crud_course.get_by_instructor(db, instructor_id=current_user_context.id)

        stats = []
        for course in courses:
            enrollments = [e for e in crud_enrollment.get_by_course(db, course_id=course.id) if e.is_active]
            stats.append(CourseStats(
                course_id=course.id,
                title=course.title,
                status=course.status.value,
                enrollments=len(enrollments),
                completed=sum(1 for e in enrollments if e.status == EnrollmentStatusEnum.COMPLETED),
                modules=crud_module.count_by_course(db, course_id=course.id),
                published_lessons=crud_lesson.count_published_by_course(db, course_id=course.id),
            ))
        return stats


course_service = CourseService()
