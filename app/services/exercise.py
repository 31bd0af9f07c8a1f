import logging
from typing import List

from sqlalchemy.orm import Session

from app.core.constants import SubmissionStatusEnum
from app.core.exceptions import NotFoundError, ValidationFailed
from app.crud.exercise import code_submission as crud_submission, exercise as crud_exercise
from app.crud.lesson import lesson as crud_lesson
from app.models.exercise import CodeSubmission, Exercise
from app.schemas.exercise import ExerciseForm, SubmissionResult
from app.schemas.user import UserContext
from app.services.course_progress import course_progress_service

logger = logging.getLogger(__name__)

PASSED_OUTPUT = "Correct!"
FAILED_OUTPUT = "Please check your code"


class ExerciseService:

    def grade(self, code: str, solution: str) -> SubmissionStatusEnum:
        # Literal comparison; test_cases are not evaluated
        expected = (solution or "").strip()
        if expected and (code or "").strip() == expected:
            return SubmissionStatusEnum.PASSED
        return SubmissionStatusEnum.FAILED

    def submit(
        self, db: Session, *, lesson_id: int, exercise_id: int, code: str, current_user_context: UserContext
    ) -> SubmissionResult:
        if not code or not code.strip():
            raise ValidationFailed({"code": "Please enter your code before submitting."})

        exercise = crud_exercise.get(db, id=exercise_id)
        if not exercise or exercise.lesson_id != lesson_id:
            raise NotFoundError("Exercise not found.")

        verdict = self.grade(code, exercise.solution_code)
        submission = CodeSubmission(
            user_id=current_user_context.id,
            exercise_id=exercise.id,
            code=code,
            status=verdict,
            output=PASSED_OUTPUT if verdict == SubmissionStatusEnum.PASSED else FAILED_OUTPUT,
        )
        db.add(submission)
        db.commit()
        db.refresh(submission)
        logger.info(f"Submission {submission.id} for exercise {exercise.id} by user {current_user_context.id}: {verdict.value}")

        if verdict == SubmissionStatusEnum.PASSED:
            course_progress_service.mark_lesson_complete(
                db, lesson_id=exercise.lesson_id, current_user_context=current_user_context
            )

        return SubmissionResult(submission_id=submission.id, status=verdict, output=submission.output)

    # Administration

    def list_exercises(self, db: Session) -> List[Exercise]:
        return crud_exercise.get_all_ordered(db)

    def get_exercise(self, db: Session, *, exercise_id: int) -> Exercise:
        exercise = crud_exercise.get(db, id=exercise_id)
        if not exercise:
            raise NotFoundError("Exercise not found.")
        return exercise

    def _check_lesson(self, db: Session, lesson_id: int) -> None:
        if not crud_lesson.get(db, id=lesson_id):
            raise ValidationFailed({"lesson_id": "Please choose a lesson."})

    def create_exercise(self, db: Session, *, form: ExerciseForm) -> Exercise:
        self._check_lesson(db, form.lesson_id)
        exercise = crud_exercise.create(db, obj_in=form.model_dump())
        logger.info(f"Created exercise {exercise.id} in lesson {exercise.lesson_id}")
        return exercise

    def update_exercise(self, db: Session, *, exercise_id: int, form: ExerciseForm) -> Exercise:
        exercise = self.get_exercise(db, exercise_id=exercise_id)
        self._check_lesson(db, form.lesson_id)
        return crud_exercise.update(db, db_obj=exercise, obj_in=form.model_dump())

    def delete_exercise(self, db: Session, *, exercise_id: int) -> None:
        if not crud_exercise.delete(db, id=exercise_id):
            raise NotFoundError("Exercise not found.")
        logger.info(f"Deleted exercise {exercise_id}")


exercise_service = ExerciseService()
