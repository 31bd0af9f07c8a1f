from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.schemas.lesson import TimeTrackRequest
from app.schemas.module import ModuleSummary
from app.schemas.progress import BookmarkState, LessonCompletion, TimeTracked
from app.schemas.response import APIResponse
from app.schemas.token import Token, TokenRequest
from app.schemas.user import UserContext
from app.services.auth import auth_service
from app.services.bookmark import bookmark_service
from app.services.course_progress import course_progress_service
from app.services.module import module_service
from app.utils import deps

router = APIRouter()


@router.post("/auth/token", response_model=APIResponse[Token])
def issue_token(
    token_in: TokenRequest,
    db: Session = Depends(deps.get_db),
):
    token = auth_service.issue_access_token(db, email=token_in.email, password=token_in.password)
    return APIResponse(message="Token issued successfully", data=token)


@router.get("/courses/{course_id}/modules", response_model=APIResponse[List[ModuleSummary]])
def list_course_modules(
    course_id: int,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_instructor),
):
    modules = module_service.list_by_course(db, course_id=course_id)
    return APIResponse(
        message="Modules retrieved successfully",
        data=[ModuleSummary.model_validate(m) for m in modules]
    )


@router.post("/lessons/{lesson_id}/bookmark", response_model=APIResponse[BookmarkState])
def toggle_bookmark(
    lesson_id: int,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_user),
):
    state = bookmark_service.toggle(db, lesson_id=lesson_id, current_user_context=context)
    message = "Lesson bookmarked" if state.bookmarked else "Bookmark removed"
    return APIResponse(message=message, data=state)


@router.post("/lessons/{lesson_id}/complete", response_model=APIResponse[LessonCompletion])
def complete_lesson(
    lesson_id: int,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_user),
):
    completion = course_progress_service.mark_lesson_complete(db, lesson_id=lesson_id, current_user_context=context)
    return APIResponse(message="Lesson marked as complete", data=completion)


@router.post("/lessons/{lesson_id}/time", response_model=APIResponse[TimeTracked])
def track_time(
    lesson_id: int,
    time_in: TimeTrackRequest,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_user),
):
    tracked = course_progress_service.track_time(
        db, lesson_id=lesson_id, seconds=time_in.seconds, current_user_context=context
    )
    return APIResponse(message="Time recorded", data=tracked)
