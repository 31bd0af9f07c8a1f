from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.schemas.course import CourseFilters
from app.schemas.user import UserContext
from app.services.course import course_service
from app.services.course_progress import course_progress_service
from app.services.enrollment import enrollment_service
from app.utils import deps
from app.utils.templating import render

router = APIRouter(dependencies=[Depends(deps.get_current_context)])


@router.get("/")
def home(request: Request, db: Session = Depends(deps.get_db)):
    courses = course_service.list_published_courses(db)
    return render(request, "home.html", {"courses": courses[:6]})


@router.get("/courses")
def list_courses(request: Request, db: Session = Depends(deps.get_db)):
    try:
        filters = CourseFilters.model_validate(dict(request.query_params))
    except ValidationError:
        filters = CourseFilters()
    return render(request, "courses/index.html", {
        "courses": course_service.list_published_courses(db, filters=filters),
        "categories": course_service.list_categories(db),
        "filters": filters,
    })


@router.get("/courses/{course_id}")
def view_course(
    course_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: Optional[UserContext] = Depends(deps.get_current_context),
):
    course = course_service.get_visible_course(db, course_id=course_id, current_user_context=context)
    enrollment = None
    completed_ids = set()
    progress = 0.0
    if context:
        enrollment = enrollment_service.get_enrollment(db, course_id=course.id, user_id=context.id)
        completed_ids = course_progress_service.completed_lesson_ids(db, user_id=context.id, course_id=course.id)
        progress = course_progress_service.compute_course_progress(db, user_id=context.id, course_id=course.id)
    return render(request, "courses/view.html", {
        "course": course,
        "modules": course.modules,
        "subcourses": course_service.published_subcourses(course),
        "enrollment": enrollment,
        "completed_ids": completed_ids,
        "progress": progress,
        "show_drafts": bool(context and context.is_staff),
    })
