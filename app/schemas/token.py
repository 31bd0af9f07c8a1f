from pydantic import BaseModel, EmailStr


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenPayload(BaseModel):
    sub: str
    role: str | None = None
    jti: str | None = None
    exp: int | None = None


class TokenRequest(BaseModel):
    email: EmailStr
    password: str
