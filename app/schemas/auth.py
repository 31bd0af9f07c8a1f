from pydantic import BaseModel, EmailStr, field_validator, model_validator

from app.schemas.form import FormModel


class LoginForm(FormModel):
    email: EmailStr
    password: str


class EmailForm(FormModel):
    email: EmailStr


class ResetPasswordForm(FormModel):
    password: str
    password_confirm: str

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


class OAuthProfile(BaseModel):
    """Normalised identity returned by a social provider."""
    provider_id: str
    email: EmailStr
    first_name: str = ""
    last_name: str = ""
    avatar: str = ""
