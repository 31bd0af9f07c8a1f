from enum import Enum


class RoleEnum(str, Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"

# Roles admitted by a route that requires the key role
ROLE_GRANTS = {
    RoleEnum.STUDENT: {RoleEnum.STUDENT, RoleEnum.INSTRUCTOR, RoleEnum.ADMIN},
    RoleEnum.INSTRUCTOR: {RoleEnum.INSTRUCTOR, RoleEnum.ADMIN},
    RoleEnum.ADMIN: {RoleEnum.ADMIN},
}

class OAuthProviderEnum(str, Enum):
    GOOGLE = "google"
    FACEBOOK = "facebook"

class CourseStatusEnum(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"

class CourseLevelEnum(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

class EnrollmentTypeEnum(str, Enum):
    OPEN = "open"
    APPROVAL_REQUIRED = "approval_required"
    CLOSED = "closed"

class LessonStatusEnum(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"

class LessonTypeEnum(str, Enum):
    TEXT = "text"
    VIDEO = "video"
    MIXED = "mixed"
    MARKDOWN = "markdown"

class ContentBlockTypeEnum(str, Enum):
    TEXT = "text"
    CODE = "code"
    IMAGE = "image"
    VIDEO = "video"
    EXERCISE = "exercise"

class EnrollmentStatusEnum(str, Enum):
    ENROLLED = "enrolled"
    COMPLETED = "completed"
    DROPPED = "dropped"

class ProgressStatusEnum(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    PASSED = "passed"
    FAILED = "failed"

class SubmissionStatusEnum(str, Enum):
    SUBMITTED = "submitted"
    PASSED = "passed"
    FAILED = "failed"

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
