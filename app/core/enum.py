from enum import Enum


class UserRole(str, Enum):
    """Roles stored on User.role."""
    USER = "USER"              # student
    TEACHER = "TEACHER"
    ADMIN = "ADMIN"
    SUPERVISOR = "SUPERVISOR"
    PARENT = "PARENT"


class PurchaseStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class SubscriptionStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    DENIED = "DENIED"


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DENIED = "DENIED"


class PromoCodeStatus(str, Enum):
    REQUESTED = "requested"
    APPROVED = "approved"


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"
    SHORT_ANSWER = "SHORT_ANSWER"


class VideoType(str, Enum):
    UPLOAD = "UPLOAD"
    YOUTUBE = "YOUTUBE"


class MeetingType(str, Enum):
    ZOOM = "zoom"
    GOOGLE_MEET = "google_meet"


class BalanceTransactionType(str, Enum):
    DEPOSIT = "DEPOSIT"
    PURCHASE = "PURCHASE"
    ADJUSTMENT = "ADJUSTMENT"


STAFF_ROLES = [UserRole.ADMIN.value, UserRole.SUPERVISOR.value]
CONTENT_ROLES = [UserRole.TEACHER.value, UserRole.ADMIN.value, UserRole.SUPERVISOR.value]
TEACHING_ROLES = [UserRole.TEACHER.value, UserRole.ADMIN.value]
