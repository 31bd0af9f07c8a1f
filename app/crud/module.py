from typing import List, Optional
from sqlalchemy.orm import Session, selectinload

from app.crud.base import CRUDBase
from app.models.module import Module


class CRUDModule(CRUDBase[Module, object, object]):
    def get_by_course(self, db: Session, *, course_id: int) -> List[Module]:
        return (
            db.query(Module)
            .filter(Module.course_id == course_id)
            .order_by(Module.sort_order.asc(), Module.id.asc())
            .all()
        )

    def get_with_lessons(self, db: Session, *, module_id: int) -> Optional[Module]:
        return (
            db.query(Module)
            .options(selectinload(Module.lessons))
            .filter(Module.id == module_id)
            .first()
        )

    def get_all_ordered(self, db: Session) -> List[Module]:
        return db.query(Module).order_by(Module.course_id.asc(), Module.sort_order.asc()).all()

    def count_by_course(self, db: Session, *, course_id: int) -> int:
        return db.query(Module).filter(Module.course_id == course_id).count()


module = CRUDModule(Module)
