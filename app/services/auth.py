import logging
from datetime import datetime, timedelta
from typing import MutableMapping

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import RoleEnum
from app.core.exceptions import AuthError, AuthErrorReason, ValidationFailed
from app.core.security import create_access_token, generate_token, get_password_hash, verify_password
from app.crud.user import user as crud_user
from app.models.user import User
from app.schemas.token import Token
from app.schemas.user import RegisterForm, UserContext
from app.services.email import EmailService

logger = logging.getLogger(__name__)

SESSION_KEYS = ("user_id", "username", "email", "role", "first_name")


class AuthService:
    def authenticate(self, db: Session, *, email: str, password: str) -> User:
        user = crud_user.get_by_email(db, email=email)
        if not user:
            logger.info("Login failed: unknown email")
            raise AuthError(AuthErrorReason.INVALID_CREDENTIALS)

        if not user.password_hash and user.oauth_provider:
            logger.info(f"Login failed for user {user.id}: social-only account")
            raise AuthError(AuthErrorReason.OAUTH_ONLY_ACCOUNT)

        if not verify_password(password, user.password_hash):
            logger.info(f"Login failed for user {user.id}: bad password")
            raise AuthError(AuthErrorReason.INVALID_CREDENTIALS)

        # Social accounts are verified by their provider at creation
        if not user.email_verified and not user.oauth_provider:
            logger.info(f"Login failed for user {user.id}: email not verified")
            raise AuthError(AuthErrorReason.UNVERIFIED_EMAIL)

        return user

    def login(self, db: Session, session: MutableMapping, *, email: str, password: str) -> UserContext:
        user = self.authenticate(db, email=email, password=password)
        return self.start_session(session, user)

    def start_session(self, session: MutableMapping, user: User) -> UserContext:
        session.clear()
        session["user_id"] = user.id
        session["username"] = user.username
        session["email"] = user.email
        session["role"] = user.role.value
        session["first_name"] = user.first_name
        logger.info(f"User {user.id} logged in")
        return UserContext.model_validate(user)

    def logout(self, session: MutableMapping) -> None:
        user_id = session.get("user_id")
        session.clear()
        if user_id:
            logger.info(f"User {user_id} logged out")

    def issue_access_token(self, db: Session, *, email: str, password: str) -> Token:
        user = self.authenticate(db, email=email, password=password)
        access_token = create_access_token(user_id=user.id, role=user.role.value)
        return Token(
            access_token=access_token,
            token_type="bearer",
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        )

    def register(self, db: Session, *, form: RegisterForm) -> User:
        errors = {}
        if crud_user.username_taken(db, username=form.username):
            errors["username"] = "This username is already taken."
        if crud_user.get_by_email(db, email=form.email):
            errors["email"] = "An account with this email already exists."
        if errors:
            raise ValidationFailed(errors)

        token = generate_token()
        user = User(
            username=form.username,
            email=form.email,
            password_hash=get_password_hash(form.password),
            first_name=form.first_name,
            last_name=form.last_name,
            role=RoleEnum.STUDENT,
            email_verified=False,
            email_verification_token=token,
            email_verification_expires_at=datetime.utcnow() + timedelta(hours=settings.VERIFICATION_TOKEN_EXPIRE_HOURS),
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ValidationFailed({"email": "An account with this username or email already exists."})
        db.refresh(user)
        logger.info(f"Registered user {user.id}")

        if not EmailService.send_verification_email(to_email=user.email, name=user.full_name, token=token):
            logger.error(f"Verification email for user {user.id} could not be sent")
        return user

    def verify_email(self, db: Session, *, token: str) -> User:
        user = crud_user.get_by_verification_token(db, token=token) if token else None
        if not user:
            raise AuthError(AuthErrorReason.INVALID_OR_EXPIRED_TOKEN)

        user.email_verified = True
        user.email_verification_token = None
        user.email_verification_expires_at = None
        db.commit()
        logger.info(f"User {user.id} verified their email")
        return user

    def resend_verification(self, db: Session, *, email: str) -> None:
        user = crud_user.get_by_email(db, email=email)
        if not user or user.email_verified or not user.password_hash:
            return

        token = generate_token()
        user.email_verification_token = token
        user.email_verification_expires_at = datetime.utcnow() + timedelta(hours=settings.VERIFICATION_TOKEN_EXPIRE_HOURS)
        db.commit()
        EmailService.send_verification_email(to_email=user.email, name=user.full_name, token=token)

    def request_password_reset(self, db: Session, *, email: str) -> None:
        user = crud_user.get_by_email(db, email=email)
        if not user or not user.password_hash:
            return

        token = generate_token()
        user.password_reset_token = token
        user.password_reset_expires_at = datetime.utcnow() + timedelta(minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES)
        db.commit()

        if not EmailService.send_password_reset_email(to_email=user.email, name=user.full_name, token=token):
            logger.error(f"Password reset email for user {user.id} could not be sent")

    def check_reset_token(self, db: Session, *, token: str) -> User:
        user = crud_user.get_by_reset_token(db, token=token) if token else None
        if not user:
            raise AuthError(AuthErrorReason.INVALID_OR_EXPIRED_TOKEN)
        return user

    def reset_password(self, db: Session, *, token: str, new_password: str) -> User:
        user = self.check_reset_token(db, token=token)
        user.password_hash = get_password_hash(new_password)
        user.password_reset_token = None
        user.password_reset_expires_at = None
        db.commit()
        logger.info(f"User {user.id} reset their password")
        return user


auth_service = AuthService()
