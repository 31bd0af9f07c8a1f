from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.exceptions import EnrollError
from app.schemas.user import UserContext
from app.services.enrollment import enrollment_service
from app.utils import deps
from app.utils.templating import redirect

router = APIRouter(dependencies=[Depends(deps.get_current_context)])


@router.post("/{course_id}/enroll")
def enroll(
    course_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_user),
):
    try:
        enrollment_service.enroll(db, course_id=course_id, current_user_context=context)
    except EnrollError as e:
        return redirect(request, f"/courses/{course_id}", e.message, "error")
    return redirect(request, f"/courses/{course_id}", "You have been enrolled in this course.", "success")


@router.post("/{course_id}/unenroll")
def unenroll(
    course_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_user),
):
    try:
        enrollment_service.unenroll(db, course_id=course_id, current_user_context=context)
    except EnrollError as e:
        return redirect(request, f"/courses/{course_id}", e.message, "error")
    return redirect(request, "/dashboard", "You have left the course.", "info")
