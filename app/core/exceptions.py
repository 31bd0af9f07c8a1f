from enum import Enum
from typing import Dict, Optional


class AppError(Exception):
    """Base class for errors raised by the service layer."""
    status_code: int = 400
    code: str = "BAD_REQUEST"

    def __init__(self, message: str, *, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class NotAuthenticatedError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Please log in to continue."):
        super().__init__(message)


class PermissionDeniedError(AppError):
    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str = "You do not have permission to access that page."):
        super().__init__(message)


class ValidationFailed(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, errors: Dict[str, str], message: str = "Please correct the errors below."):
        super().__init__(message)
        self.errors = errors


class AuthErrorReason(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    UNVERIFIED_EMAIL = "unverified_email"
    OAUTH_ONLY_ACCOUNT = "oauth_only_account"
    INVALID_OR_EXPIRED_TOKEN = "invalid_or_expired_token"
    STATE_MISMATCH = "state_mismatch"
    PROVIDER_ERROR = "provider_error"
    NO_EMAIL_SCOPE = "no_email_scope"
    PROVIDER_NOT_CONFIGURED = "provider_not_configured"


AUTH_ERROR_MESSAGES = {
    AuthErrorReason.INVALID_CREDENTIALS: "Invalid email or password",
    AuthErrorReason.UNVERIFIED_EMAIL: "Please verify your email address before logging in.",
    AuthErrorReason.OAUTH_ONLY_ACCOUNT: "This account uses social login. Please sign in with your provider.",
    AuthErrorReason.INVALID_OR_EXPIRED_TOKEN: "This link is invalid or has expired.",
    AuthErrorReason.STATE_MISMATCH: "Login session expired or was tampered with. Please try again.",
    AuthErrorReason.PROVIDER_ERROR: "Could not complete sign in with the provider. Please try again.",
    AuthErrorReason.NO_EMAIL_SCOPE: "Your account did not share an email address. Please allow email access.",
    AuthErrorReason.PROVIDER_NOT_CONFIGURED: "This sign in method is not available.",
}


class AuthError(AppError):
    status_code = 401
    code = "AUTH_ERROR"

    def __init__(self, reason: AuthErrorReason, message: Optional[str] = None):
        super().__init__(message or AUTH_ERROR_MESSAGES[reason], code=reason.value.upper())
        self.reason = reason


class EnrollErrorReason(str, Enum):
    NOT_FOUND = "not_found"
    NOT_PUBLISHED = "not_published"
    CLOSED = "closed"
    ALREADY_ENROLLED = "already_enrolled"
    CAPACITY_REACHED = "capacity_reached"
    NOT_ENROLLED = "not_enrolled"


ENROLL_ERROR_MESSAGES = {
    EnrollErrorReason.NOT_FOUND: "Course not found.",
    EnrollErrorReason.NOT_PUBLISHED: "This course is not available for enrollment.",
    EnrollErrorReason.CLOSED: "This course is closed for enrollment.",
    EnrollErrorReason.ALREADY_ENROLLED: "You are already enrolled in this course.",
    EnrollErrorReason.CAPACITY_REACHED: "This course has reached its enrollment capacity.",
    EnrollErrorReason.NOT_ENROLLED: "You are not enrolled in this course.",
}

_ENROLL_STATUS = {
    EnrollErrorReason.NOT_FOUND: 404,
    EnrollErrorReason.ALREADY_ENROLLED: 409,
    EnrollErrorReason.CAPACITY_REACHED: 409,
}


class EnrollError(AppError):
    code = "ENROLL_ERROR"

    def __init__(self, reason: EnrollErrorReason):
        super().__init__(
            ENROLL_ERROR_MESSAGES[reason],
            code=reason.value.upper(),
            status_code=_ENROLL_STATUS.get(reason, 400),
        )
        self.reason = reason
