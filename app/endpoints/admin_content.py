from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.constants import (
    ContentBlockTypeEnum,
    CourseLevelEnum,
    CourseStatusEnum,
    EnrollmentTypeEnum,
    LessonStatusEnum,
    LessonTypeEnum,
    RoleEnum,
)
from app.core.exceptions import ValidationFailed
from app.crud.user import user as crud_user
from app.schemas.course import CourseForm
from app.schemas.exercise import ExerciseForm
from app.schemas.lesson import LessonForm
from app.schemas.module import ModuleForm
from app.schemas.user import UserContext
from app.services.course import course_service
from app.services.exercise import exercise_service
from app.services.lesson import lesson_service
from app.services.module import module_service
from app.utils import deps
from app.utils.forms import validation_errors
from app.utils.templating import redirect, render

router = APIRouter(dependencies=[Depends(deps.get_current_context)])


def _course_choices(db: Session, course=None) -> dict:
    return {
        "parents": course_service.parent_choices(db, course=course),
        "categories": course_service.list_categories(db),
        "instructors": [u for u in crud_user.get_multi_by_role(db) if u.role in (RoleEnum.INSTRUCTOR, RoleEnum.ADMIN)],
        "difficulties": list(CourseLevelEnum),
        "statuses": list(CourseStatusEnum),
        "enrollment_types": list(EnrollmentTypeEnum),
    }


def _lesson_form_data(form) -> dict:
    data = {k: v for k, v in form.items() if not k.startswith("block_")}
    types = form.getlist("block_type")
    contents = form.getlist("block_content")
    languages = form.getlist("block_language")
    data["content_blocks"] = [
        {
            "block_type": block_type or ContentBlockTypeEnum.TEXT.value,
            "content": content,
            "code_language": (languages[i] if i < len(languages) else "") or None,
        }
        for i, (block_type, content) in enumerate(zip(types, contents))
    ]
    return data


# Courses

@router.get("/courses")
def list_courses(
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    return render(request, "admin/courses/index.html", {"courses": course_service.list_all_courses(db)})


@router.get("/courses/new")
def new_course(
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    return render(request, "admin/courses/form.html", {"course": None, **_course_choices(db)})


@router.post("/courses")
def create_course(
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
    form=Depends(deps.get_form),
):
    try:
        data = CourseForm.model_validate(dict(form))
        course_service.create_course(db, form=data, current_user_context=context)
    except ValidationError as e:
        errors = validation_errors(e)
    except ValidationFailed as e:
        errors = e.errors
    else:
        return redirect(request, "/admin/courses", "Course created successfully.", "success")
    return render(request, "admin/courses/form.html", {
        "course": None, "form": dict(form), "errors": errors, **_course_choices(db)
    }, status_code=400)


@router.get("/courses/{course_id}/edit")
def edit_course(
    course_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    course = course_service.get_course(db, course_id=course_id)
    return render(request, "admin/courses/form.html", {"course": course, **_course_choices(db, course)})


@router.post("/courses/{course_id}")
def update_course(
    course_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
    form=Depends(deps.get_form),
):
    course = course_service.get_course(db, course_id=course_id)
    try:
        data = CourseForm.model_validate(dict(form))
        course_service.update_course(db, course_id=course.id, form=data)
    except ValidationError as e:
        errors = validation_errors(e)
    except ValidationFailed as e:
        errors = e.errors
    else:
        return redirect(request, "/admin/courses", "Course updated successfully.", "success")
    return render(request, "admin/courses/form.html", {
        "course": course, "form": dict(form), "errors": errors, **_course_choices(db, course)
    }, status_code=400)


@router.post("/courses/{course_id}/delete")
def delete_course(
    course_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    course_service.delete_course(db, course_id=course_id)
    return redirect(request, "/admin/courses", "Course deleted successfully.", "success")


# Modules

@router.get("/modules")
def list_modules(
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    return render(request, "admin/modules/index.html", {"modules": module_service.list_modules(db)})


@router.get("/modules/new")
def new_module(
    request: Request,
    course_id: int = None,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    return render(request, "admin/modules/form.html", {
        "module": None,
        "form": {"course_id": course_id} if course_id else {},
        "courses": course_service.list_all_courses(db),
    })


@router.post("/modules")
def create_module(
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
    form=Depends(deps.get_form),
):
    try:
        data = ModuleForm.model_validate(dict(form))
        module_service.create_module(db, form=data)
    except ValidationError as e:
        errors = validation_errors(e)
    except ValidationFailed as e:
        errors = e.errors
    else:
        return redirect(request, "/admin/modules", "Module created successfully.", "success")
    return render(request, "admin/modules/form.html", {
        "module": None, "form": dict(form), "errors": errors, "courses": course_service.list_all_courses(db)
    }, status_code=400)


@router.get("/modules/{module_id}/edit")
def edit_module(
    module_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    module = module_service.get_module(db, module_id=module_id)
    return render(request, "admin/modules/form.html", {
        "module": module, "courses": course_service.list_all_courses(db)
    })


@router.post("/modules/{module_id}")
def update_module(
    module_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
    form=Depends(deps.get_form),
):
    module = module_service.get_module(db, module_id=module_id)
    try:
        data = ModuleForm.model_validate(dict(form))
        module_service.update_module(db, module_id=module.id, form=data)
    except ValidationError as e:
        errors = validation_errors(e)
    except ValidationFailed as e:
        errors = e.errors
    else:
        return redirect(request, "/admin/modules", "Module updated successfully.", "success")
    return render(request, "admin/modules/form.html", {
        "module": module, "form": dict(form), "errors": errors, "courses": course_service.list_all_courses(db)
    }, status_code=400)


@router.post("/modules/{module_id}/delete")
def delete_module(
    module_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    module_service.delete_module(db, module_id=module_id)
    return redirect(request, "/admin/modules", "Module deleted successfully.", "success")


# Lessons

def _lesson_choices(db: Session) -> dict:
    return {
        "modules": module_service.list_modules(db),
        "statuses": list(LessonStatusEnum),
        "content_types": list(LessonTypeEnum),
        "block_types": list(ContentBlockTypeEnum),
    }


@router.get("/lessons")
def list_lessons(
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    return render(request, "admin/lessons/index.html", {"lessons": lesson_service.list_lessons(db)})


@router.get("/lessons/new")
def new_lesson(
    request: Request,
    module_id: int = None,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    return render(request, "admin/lessons/form.html", {
        "lesson": None,
        "form": {"module_id": module_id} if module_id else {},
        "blocks": [],
        **_lesson_choices(db),
    })


@router.post("/lessons")
def create_lesson(
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
    form=Depends(deps.get_form),
):
    raw = _lesson_form_data(form)
    try:
        data = LessonForm.model_validate(raw)
        lesson_service.create_lesson(db, form=data)
    except ValidationError as e:
        errors = validation_errors(e)
    except ValidationFailed as e:
        errors = e.errors
    else:
        return redirect(request, "/admin/lessons", "Lesson created successfully.", "success")
    return render(request, "admin/lessons/form.html", {
        "lesson": None, "form": raw, "blocks": raw["content_blocks"], "errors": errors, **_lesson_choices(db)
    }, status_code=400)


@router.get("/lessons/{lesson_id}/edit")
def edit_lesson(
    lesson_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    lesson = lesson_service.get_lesson(db, lesson_id=lesson_id)
    blocks = [
        {"block_type": b.block_type.value, "content": b.content, "code_language": b.code_language}
        for b in lesson.content_blocks
    ]
    return render(request, "admin/lessons/form.html", {"lesson": lesson, "blocks": blocks, **_lesson_choices(db)})


@router.post("/lessons/{lesson_id}")
def update_lesson(
    lesson_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
    form=Depends(deps.get_form),
):
    lesson = lesson_service.get_lesson(db, lesson_id=lesson_id)
    raw = _lesson_form_data(form)
    try:
        data = LessonForm.model_validate(raw)
        lesson_service.update_lesson(db, lesson_id=lesson.id, form=data)
    except ValidationError as e:
        errors = validation_errors(e)
    except ValidationFailed as e:
        errors = e.errors
    else:
        return redirect(request, "/admin/lessons", "Lesson updated successfully.", "success")
    return render(request, "admin/lessons/form.html", {
        "lesson": lesson, "form": raw, "blocks": raw["content_blocks"], "errors": errors, **_lesson_choices(db)
    }, status_code=400)


@router.post("/lessons/{lesson_id}/delete")
def delete_lesson(
    lesson_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    lesson_service.delete_lesson(db, lesson_id=lesson_id)
    return redirect(request, "/admin/lessons", "Lesson deleted successfully.", "success")


# Exercises

@router.get("/exercises")
def list_exercises(
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    return render(request, "admin/exercises/index.html", {"exercises": exercise_service.list_exercises(db)})


@router.get("/exercises/new")
def new_exercise(
    request: Request,
    lesson_id: int = None,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    return render(request, "admin/exercises/form.html", {
        "exercise": None,
        "form": {"lesson_id": lesson_id} if lesson_id else {},
        "lessons": lesson_service.list_lessons(db),
    })


@router.post("/exercises")
def create_exercise(
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
    form=Depends(deps.get_form),
):
    try:
        data = ExerciseForm.model_validate(dict(form))
        exercise_service.create_exercise(db, form=data)
    except ValidationError as e:
        errors = validation_errors(e)
    except ValidationFailed as e:
        errors = e.errors
    else:
        return redirect(request, "/admin/exercises", "Exercise created successfully.", "success")
    return render(request, "admin/exercises/form.html", {
        "exercise": None, "form": dict(form), "errors": errors, "lessons": lesson_service.list_lessons(db)
    }, status_code=400)


@router.get("/exercises/{exercise_id}/edit")
def edit_exercise(
    exercise_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    exercise = exercise_service.get_exercise(db, exercise_id=exercise_id)
    return render(request, "admin/exercises/form.html", {
        "exercise": exercise, "lessons": lesson_service.list_lessons(db)
    })


@router.post("/exercises/{exercise_id}")
def update_exercise(
    exercise_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
    form=Depends(deps.get_form),
):
    exercise = exercise_service.get_exercise(db, exercise_id=exercise_id)
    try:
        data = ExerciseForm.model_validate(dict(form))
        exercise_service.update_exercise(db, exercise_id=exercise.id, form=data)
    except ValidationError as e:
        errors = validation_errors(e)
    except ValidationFailed as e:
        errors = e.errors
    else:
        return redirect(request, "/admin/exercises", "Exercise updated successfully.", "success")
    return render(request, "admin/exercises/form.html", {
        "exercise": exercise, "form": dict(form), "errors": errors, "lessons": lesson_service.list_lessons(db)
    }, status_code=400)


@router.post("/exercises/{exercise_id}/delete")
def delete_exercise(
    exercise_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    exercise_service.delete_exercise(db, exercise_id=exercise_id)
    return redirect(request, "/admin/exercises", "Exercise deleted successfully.", "success")
