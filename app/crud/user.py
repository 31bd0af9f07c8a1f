from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.constants import OAuthProviderEnum, RoleEnum
from app.crud.base import CRUDBase
from app.models.user import User


class CRUDUser(CRUDBase[User, object, object]):
    def get_by_email(self, db: Session, *, email: str) -> Optional[User]:
        return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()

    def get_by_username(self, db: Session, *, username: str) -> Optional[User]:
        return db.query(User).filter(User.username == username).first()

    def get_by_oauth_identity(self, db: Session, *, provider: OAuthProviderEnum, provider_id: str) -> Optional[User]:
        return db.query(User).filter(
            User.oauth_provider == provider,
            User.oauth_provider_id == provider_id
        ).first()

    def get_by_verification_token(self, db: Session, *, token: str, now: Optional[datetime] = None) -> Optional[User]:
        now = now or datetime.utcnow()
        return db.query(User).filter(
            User.email_verification_token == token,
            User.email_verification_expires_at > now
        ).first()

    def get_by_reset_token(self, db: Session, *, token: str, now: Optional[datetime] = None) -> Optional[User]:
        now = now or datetime.utcnow()
        return db.query(User).filter(
            User.password_reset_token == token,
            User.password_reset_expires_at > now
        ).first()

    def get_multi_by_role(self, db: Session, *, role: Optional[RoleEnum] = None) -> List[User]:
        query = db.query(User)
        if role is not None:
            query = query.filter(User.role == role)
        return query.order_by(User.created_at.desc(), User.id.desc()).all()

    def count_by_role(self, db: Session) -> Dict[RoleEnum, int]:
        rows = db.query(User.role, func.count(User.id)).group_by(User.role).all()
        counts = {role: 0 for role in RoleEnum}
        for role, total in rows:
            counts[role] = total
        return counts

    def username_taken(self, db: Session, *, username: str) -> bool:
        return db.query(User.id).filter(User.username == username).first() is not None


user = CRUDUser(User)
