import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.constants import RoleEnum
from app.core.exceptions import NotFoundError, PermissionDeniedError, ValidationFailed
from app.core.security import get_password_hash
from app.crud.user import user as crud_user
from app.models.user import User
from app.schemas.user import UserAdminUpdate, UserContext

logger = logging.getLogger(__name__)


class UserService:
    def list_users(self, db: Session, *, role: Optional[RoleEnum] = None) -> List[User]:
        return crud_user.get_multi_by_role(db, role=role)

    def role_counts(self, db: Session) -> dict:
        return crud_user.count_by_role(db)

    def get_user(self, db: Session, *, user_id: int) -> User:
        user = crud_user.get(db, id=user_id)
        if not user:
            raise NotFoundError("User not found.")
        return user

    def update_user(self, db: Session, *, user_id: int, form: UserAdminUpdate) -> User:
        user = self.get_user(db, user_id=user_id)

        if form.email != user.email:
            other = crud_user.get_by_email(db, email=form.email)
            if other and other.id != user.id:
                raise ValidationFailed({"email": "An account with this email already exists."})

        user.email = form.email
        user.role = form.role
        user.first_name = form.first_name
        user.last_name = form.last_name
        if form.password:
            user.password_hash = get_password_hash(form.password)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ValidationFailed({"email": "An account with this email already exists."})
        db.refresh(user)
        logger.info(f"Updated user {user.id}")
        return user

    def delete_user(self, db: Session, *, user_id: int, current_user_context: UserContext) -> None:
        if user_id == current_user_context.id:
            raise PermissionDeniedError("You cannot delete your own account.")
        user = self.get_user(db, user_id=user_id)
        db.delete(user)
        db.commit()
        logger.info(f"User {current_user_context.id} deleted user {user_id}")


user_service = UserService()
