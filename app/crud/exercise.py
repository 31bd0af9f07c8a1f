from typing import List
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.exercise import Exercise, CodeSubmission


class CRUDExercise(CRUDBase[Exercise, object, object]):
    def get_by_lesson(self, db: Session, *, lesson_id: int) -> List[Exercise]:
        return (
            db.query(Exercise)
            .filter(Exercise.lesson_id == lesson_id)
            .order_by(Exercise.sort_order.asc(), Exercise.id.asc())
            .all()
        )

    def get_all_ordered(self, db: Session) -> List[Exercise]:
        return db.query(Exercise).order_by(Exercise.created_at.desc(), Exercise.id.desc()).all()


class CRUDCodeSubmission(CRUDBase[CodeSubmission, object, object]):
    def get_by_user_and_exercise(self, db: Session, *, user_id: int, exercise_id: int) -> List[CodeSubmission]:
        return (
            db.query(CodeSubmission)
            .filter(CodeSubmission.user_id == user_id, CodeSubmission.exercise_id == exercise_id)
            .order_by(CodeSubmission.id.desc())
            .all()
        )


exercise = CRUDExercise(Exercise)
code_submission = CRUDCodeSubmission(CodeSubmission)
