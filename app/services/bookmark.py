import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.crud.bookmark import bookmark as crud_bookmark
from app.crud.lesson import lesson as crud_lesson
from app.models.bookmark import Bookmark
from app.schemas.progress import BookmarkState
from app.schemas.user import UserContext

logger = logging.getLogger(__name__)


class BookmarkService:
    def toggle(self, db: Session, *, lesson_id: int, current_user_context: UserContext) -> BookmarkState:
        if not crud_lesson.get(db, id=lesson_id):
            raise NotFoundError("Lesson not found.")

        existing = crud_bookmark.get_by_user_and_lesson(db, user_id=current_user_context.id, lesson_id=lesson_id)
        if existing:
            db.delete(existing)
            db.commit()
            return BookmarkState(lesson_id=lesson_id, bookmarked=False)

        db.add(Bookmark(user_id=current_user_context.id, lesson_id=lesson_id))
        try:
            db.commit()
        except IntegrityError:
            # Already bookmarked by a concurrent request
            db.rollback()
        return BookmarkState(lesson_id=lesson_id, bookmarked=True)

    def is_bookmarked(self, db: Session, *, lesson_id: int, user_id: int) -> bool:
        return crud_bookmark.get_by_user_and_lesson(db, user_id=user_id, lesson_id=lesson_id) is not None

    def list_for_user(self, db: Session, *, user_id: int) -> List[Bookmark]:
        return crud_bookmark.get_by_user(db, user_id=user_id)


bookmark_service = BookmarkService()
