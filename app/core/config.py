from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "LearnHub"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    SECRET_KEY: str
    BASE_URL: str = "http://localhost:8000"
    ALLOWED_ORIGINS: List[str] = ["http://localhost:8000"]

    # Sessions and bearer tokens
    SESSION_COOKIE_NAME: str = "learnhub_session"
    SESSION_MAX_AGE: int = 60 * 60 * 24 * 14  # 14 days
    SESSION_HTTPS_ONLY: bool = False
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./learnhub.db"
    TEST_DATABASE_URL: Optional[str] = None

    VERIFICATION_TOKEN_EXPIRE_HOURS: int = 24
    PASSWORD_RESET_TOKEN_EXPIRE_MINUTES: int = 60

    # Email
    SENDGRID_API_KEY: Optional[str] = None
    EMAILS_FROM_EMAIL: str = "noreply@learnhub.local"
    EMAILS_FROM_NAME: str = "LearnHub"

    # OAuth2
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_REDIRECT_URI: str = ""
    FACEBOOK_APP_ID: str = ""
    FACEBOOK_APP_SECRET: str = ""
    FACEBOOK_REDIRECT_URI: str = ""
    OAUTH_HTTP_TIMEOUT: float = 10.0
    OAUTH_ACCOUNT_RETRIES: int = 3

    # Uploads
    UPLOAD_DIR: str = "uploads/images"
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024  # 5MB

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True
    LOG_DIR: str = "logs"

    @property
    def google_redirect_uri(self) -> str:
        return self.GOOGLE_REDIRECT_URI or f"{self.BASE_URL.rstrip('/')}/auth/google/callback"

    @property
    def facebook_redirect_uri(self) -> str:
        return self.FACEBOOK_REDIRECT_URI or f"{self.BASE_URL.rstrip('/')}/auth/facebook/callback"

    class Config:
        env_file = ".env"

settings = Settings()
