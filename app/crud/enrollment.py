from datetime import datetime
from typing import List, Optional
from sqlalchemy import and_, func, insert, literal, select, update
from sqlalchemy.orm import Session, selectinload

from app.core.constants import EnrollmentStatusEnum
from app.crud.base import CRUDBase
from app.models.course import Course
from app.models.enrollment import Enrollment


class CRUDEnrollment(CRUDBase[Enrollment, object, object]):

    def get_by_user_and_course(self, db: Session, *, user_id: int, course_id: int) -> Optional[Enrollment]:
        return (
            db.query(Enrollment)
            .filter(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
            .first()
        )

    def get_active_by_user(self, db: Session, *, user_id: int) -> List[Enrollment]:
        return (
            db.query(Enrollment)
            .options(selectinload(Enrollment.course))
            .filter(
                Enrollment.user_id == user_id,
                Enrollment.status != EnrollmentStatusEnum.DROPPED
            )
            .order_by(Enrollment.last_accessed_at.desc(), Enrollment.enrolled_at.desc())
            .all()
        )

    def get_by_course(self, db: Session, *, course_id: int) -> List[Enrollment]:
        return (
            db.query(Enrollment)
            .options(selectinload(Enrollment.user))
            .filter(Enrollment.course_id == course_id)
            .order_by(Enrollment.enrolled_at.desc())
            .all()
        )

    def count_enrolled(self, db: Session, *, course_id: int) -> int:
        return (
            db.query(Enrollment)
            .filter(
                Enrollment.course_id == course_id,
                Enrollment.status == EnrollmentStatusEnum.ENROLLED
            )
            .count()
        )

    def count_active(self, db: Session) -> int:
        return db.query(Enrollment).filter(Enrollment.status != EnrollmentStatusEnum.DROPPED).count()

    def _seat_available(self, course: Course):
        """SQL condition that is true while the course still has a free seat."""
        enrolled = (
            select(func.count(Enrollment.id))
            .where(
                Enrollment.course_id == course.id,
                Enrollment.status == EnrollmentStatusEnum.ENROLLED
            )
            .scalar_subquery()
        )
        return enrolled < course.capacity

    def insert_if_capacity(self, db: Session, *, user_id: int, course: Course, now: datetime) -> bool:
        """Insert an enrolled row in one statement, guarded by the seat count.

        Returns False when no row was written because the course is full.
        Raises IntegrityError if the (user, course) pair already exists.
        """
        if course.capacity is None:
            db.execute(insert(Enrollment).values(
                user_id=user_id,
                course_id=course.id,
                status=EnrollmentStatusEnum.ENROLLED,
                progress_percentage=0,
                enrolled_at=now,
                last_accessed_at=now,
            ))
            return True

        source = select(
            literal(user_id, type_=Enrollment.user_id.type),
            literal(course.id, type_=Enrollment.course_id.type),
            literal(EnrollmentStatusEnum.ENROLLED, type_=Enrollment.status.type),
            literal(0, type_=Enrollment.progress_percentage.type),
            literal(now, type_=Enrollment.enrolled_at.type),
            literal(now, type_=Enrollment.last_accessed_at.type),
        ).where(self._seat_available(course))

        stmt = insert(Enrollment).from_select(
            ["user_id", "course_id", "status", "progress_percentage", "enrolled_at", "last_accessed_at"],
            source,
        )
        result = db.execute(stmt)
        return result.rowcount == 1

    def reactivate_if_capacity(self, db: Session, *, enrollment_id: int, course: Course, now: datetime) -> bool:
        """Flip a dropped row back to enrolled, guarded by the seat count."""
        conditions = [
            Enrollment.id == enrollment_id,
            Enrollment.status == EnrollmentStatusEnum.DROPPED,
        ]
        if course.capacity is not None:
            conditions.append(self._seat_available(course))

        stmt = (
            update(Enrollment)
            .where(and_(*conditions))
            .values(
                status=EnrollmentStatusEnum.ENROLLED,
                progress_percentage=0,
                completed_at=None,
                enrolled_at=now,
                last_accessed_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = db.execute(stmt)
        return result.rowcount == 1


enrollment = CRUDEnrollment(Enrollment)
