from typing import List, Optional
from sqlalchemy.orm import Session, selectinload

from app.crud.base import CRUDBase
from app.models.bookmark import Bookmark
from app.models.lesson import Lesson


class CRUDBookmark(CRUDBase[Bookmark, object, object]):
    def get_by_user_and_lesson(self, db: Session, *, user_id: int, lesson_id: int) -> Optional[Bookmark]:
        return (
            db.query(Bookmark)
            .filter(Bookmark.user_id == user_id, Bookmark.lesson_id == lesson_id)
            .first()
        )

    def get_by_user(self, db: Session, *, user_id: int) -> List[Bookmark]:
        return (
            db.query(Bookmark)
            .options(selectinload(Bookmark.lesson).selectinload(Lesson.module))
            .filter(Bookmark.user_id == user_id)
            .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
            .all()
        )


bookmark = CRUDBookmark(Bookmark)
