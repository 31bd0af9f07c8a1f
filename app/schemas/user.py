from pydantic import BaseModel, EmailStr, field_validator, ConfigDict, model_validator
from typing import Optional
from datetime import datetime

from app.core.constants import RoleEnum, ROLE_GRANTS
from app.schemas.form import FormModel


class UserContext(BaseModel):
    """Identity and role of the caller, resolved once per request."""
    id: int
    username: str
    email: str
    role: RoleEnum
    first_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    def has_role(self, required: RoleEnum) -> bool:
        return self.role in ROLE_GRANTS[required]

    @property
    def is_admin(self) -> bool:
        return self.role == RoleEnum.ADMIN

    @property
    def is_staff(self) -> bool:
        return self.has_role(RoleEnum.INSTRUCTOR)

    @property
    def home_url(self) -> str:
        return "/admin" if self.is_admin else "/dashboard"

    @property
    def display_name(self) -> str:
        return self.first_name or self.username


class RegisterForm(FormModel):
    username: str
    email: EmailStr
    password: str
    password_confirm: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @field_validator("username")
    def validate_username(cls, v):
        v = v.strip()
        if len(v) < 3 or len(v) > 100:
            raise ValueError("Username must be between 3 and 100 characters.")
        return v

    @field_validator("email")
    def normalize_email(cls, v):
        return v.lower()

    @field_validator("password")
    def validate_password(cls, v):
        if not v or not v.strip():
            raise ValueError("Password cannot be empty or contain only whitespace.")
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters long.")
        return v

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirm:
            raise ValueError("Passwords do not match.")
        return self


class UserAdminUpdate(FormModel):
    """Fields an administrator may change on an account."""
    email: EmailStr
    role: RoleEnum
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    password: Optional[str] = None

    @field_validator("email")
    def normalize_email(cls, v):
        return v.lower()

    @field_validator("password")
    def validate_password(cls, v):
        if v is not None and len(v) < 8:
            raise ValueError("Password must be at least 8 characters long.")
        return v


class User(BaseModel):
    id: int
    username: str
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: RoleEnum
    email_verified: bool
    oauth_provider: Optional[str] = None
    avatar: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
