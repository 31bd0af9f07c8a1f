from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.schemas.user import UserContext
from app.services.dashboard import dashboard_service
from app.utils import deps
from app.utils.templating import render

router = APIRouter(dependencies=[Depends(deps.get_current_context)])


@router.get("/dashboard")
def student_dashboard(
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_user),
):
    data = dashboard_service.student_dashboard(db, current_user_context=context)
    return render(request, "dashboard/index.html", data)


@router.get("/instructor")
def instructor_dashboard(
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    data = dashboard_service.instructor_dashboard(db, current_user_context=context)
    return render(request, "instructor/dashboard.html", data)
