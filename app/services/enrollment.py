import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.constants import EnrollmentStatusEnum, EnrollmentTypeEnum
from app.core.exceptions import EnrollError, EnrollErrorReason
from app.crud.course import course as crud_course
from app.crud.enrollment import enrollment as crud_enrollment
from app.models.enrollment import Enrollment
from app.schemas.user import UserContext

logger = logging.getLogger(__name__)


class EnrollmentService:

    def _reject(self, reason: EnrollErrorReason, user_id: int, course_id: int):
        logger.info(f"Enrollment of user {user_id} in course {course_id} rejected: {reason.value}")
        raise EnrollError(reason)

    def enroll(self, db: Session, *, course_id: int, current_user_context: UserContext) -> Enrollment:
        user_id = current_user_context.id
        course = crud_course.get(db, id=course_id)
        if not course:
            self._reject(EnrollErrorReason.NOT_FOUND, user_id, course_id)
        if not course.is_published:
            self._reject(EnrollErrorReason.NOT_PUBLISHED, user_id, course_id)
        if course.enrollment_type == EnrollmentTypeEnum.CLOSED:
            self._reject(EnrollErrorReason.CLOSED, user_id, course_id)

        now = datetime.utcnow()
        existing = crud_enrollment.get_by_user_and_course(db, user_id=user_id, course_id=course_id)
        if existing and existing.is_active:
            self._reject(EnrollErrorReason.ALREADY_ENROLLED, user_id, course_id)

        if existing:
            written = crud_enrollment.reactivate_if_capacity(db, enrollment_id=existing.id, course=course, now=now)
        else:
            try:
                written = crud_enrollment.insert_if_capacity(db, user_id=user_id, course=course, now=now)
            except IntegrityError:
                db.rollback()
                self._reject(EnrollErrorReason.ALREADY_ENROLLED, user_id, course_id)

        if not written:
            db.rollback()
            self._reject(EnrollErrorReason.CAPACITY_REACHED, user_id, course_id)

        db.commit()
        enrollment = crud_enrollment.get_by_user_and_course(db, user_id=user_id, course_id=course_id)
        db.refresh(enrollment)
        logger.info(f"User {user_id} enrolled in course {course_id}")
        return enrollment

    def unenroll(self, db: Session, *, course_id: int, current_user_context: UserContext) -> Enrollment:
        enrollment = crud_enrollment.get_by_user_and_course(
            db, user_id=current_user_context.id, course_id=course_id
        )
        if not enrollment or not enrollment.is_active:
            raise EnrollError(EnrollErrorReason.NOT_ENROLLED)

        enrollment.status = EnrollmentStatusEnum.DROPPED
        db.commit()
        logger.info(f"User {current_user_context.id} dropped course {course_id}")
        return enrollment

    def get_enrollment(self, db: Session, *, course_id: int, user_id: int):
        """Active enrollment of the user in the course, or None."""
        enrollment = crud_enrollment.get_by_user_and_course(db, user_id=user_id, course_id=course_id)
        if enrollment and enrollment.is_active:
            return enrollment
        return None


enrollment_service = EnrollmentService()
