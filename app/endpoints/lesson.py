from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.exceptions import ValidationFailed
from app.schemas.user import UserContext
from app.services.course import course_service
from app.services.course_progress import course_progress_service
from app.services.exercise import exercise_service
from app.services.lesson import lesson_service
from app.services.module import module_service
from app.utils import deps
from app.utils.templating import redirect, render

router = APIRouter(dependencies=[Depends(deps.get_current_context)])


@router.get("/{course_id}/modules/{module_id}")
def view_module(
    course_id: int,
    module_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_user),
):
    course = course_service.get_visible_course(db, course_id=course_id, current_user_context=context)
    module = module_service.get_course_module(db, course_id=course.id, module_id=module_id)
    lessons = module.lessons if context.is_staff else module_service.published_lessons(db, module_id=module.id)
    return render(request, "courses/module.html", {
        "course": course,
        "module": module,
        "lessons": lessons,
        "completed_ids": course_progress_service.completed_lesson_ids(db, user_id=context.id, course_id=course.id),
    })


@router.get("/{course_id}/modules/{module_id}/lessons/{lesson_id}")
def view_lesson(
    course_id: int,
    module_id: int,
    lesson_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_user),
):
    view = lesson_service.view_lesson(
        db,
        course_id=course_id,
        module_id=module_id,
        lesson_id=lesson_id,
        current_user_context=context,
    )
    return render(request, "lessons/view.html", view)


@router.post("/{course_id}/modules/{module_id}/lessons/{lesson_id}/exercises/{exercise_id}/submit")
def submit_exercise(
    course_id: int,
    module_id: int,
    lesson_id: int,
    exercise_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_user),
    form=Depends(deps.get_form),
):
    lesson = lesson_service.get_course_lesson(
        db,
        course_id=course_id,
        module_id=module_id,
        lesson_id=lesson_id,
        current_user_context=context,
    )
    lesson_url = f"/courses/{course_id}/modules/{module_id}/lessons/{lesson.id}"
    try:
        result = exercise_service.submit(
            db,
            lesson_id=lesson.id,
            exercise_id=exercise_id,
            code=form.get("code", ""),
            current_user_context=context,
        )
    except ValidationFailed as e:
        return redirect(request, f"{lesson_url}#exercise-{exercise_id}", e.errors.get("code", e.message), "error")

    category = "success" if result.passed else "error"
    return redirect(request, f"{lesson_url}#exercise-{exercise_id}", result.output, category)
