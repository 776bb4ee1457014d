"""Enumerations stored as TEXT status/type columns."""

from enum import Enum


class TenantType(str, Enum):
    STUDIO = "STUDIO"
    TALENT = "TALENT"


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class ExternalActorStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INVITED = "INVITED"
    CONVERTED = "CONVERTED"


class InvitationStatus(str, Enum):
    """Questionnaire invitation lifecycle."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    COMPLETED = "COMPLETED"
    EXPIRED = "EXPIRED"


class ResponseStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class QuestionType(str, Enum):
    SHORT_TEXT = "SHORT_TEXT"
    LONG_TEXT = "LONG_TEXT"
    SINGLE_CHOICE = "SINGLE_CHOICE"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    RATING = "RATING"
    DATE = "DATE"
    FILE_UPLOAD = "FILE_UPLOAD"
    YES_NO = "YES_NO"


CHOICE_QUESTION_TYPES = frozenset({QuestionType.SINGLE_CHOICE, QuestionType.MULTIPLE_CHOICE})


class FieldType(str, Enum):
    TEXT = "TEXT"
    TEXTAREA = "TEXTAREA"
    NUMBER = "NUMBER"
    DROPDOWN = "DROPDOWN"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    EMAIL = "EMAIL"
    URL = "URL"
    PHONE = "PHONE"


class ProfileType(str, Enum):
    TALENT = "TALENT"
    STUDIO = "STUDIO"
    BOTH = "BOTH"


class SubscriptionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAST_DUE = "PAST_DUE"
    CANCELED = "CANCELED"
    INCOMPLETE = "INCOMPLETE"
    INCOMPLETE_EXPIRED = "INCOMPLETE_EXPIRED"
    TRIALING = "TRIALING"
    UNPAID = "UNPAID"


# Statuses that grant access to paid features.
ENTITLED_SUBSCRIPTION_STATUSES = frozenset({SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIALING.value})


class ApplicationStatus(str, Enum):
    PENDING = "PENDING"
    REVIEWED = "REVIEWED"
    SHORTLISTED = "SHORTLISTED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class CastingCallStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    FILLED = "FILLED"
    CANCELLED = "CANCELLED"


class ProjectStatus(str, Enum):
    PLANNING = "PLANNING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    ARCHIVED = "ARCHIVED"


class SceneStatus(str, Enum):
    PLANNING = "PLANNING"
    SCHEDULED = "SCHEDULED"
    SHOOTING = "SHOOTING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ProjectInvitationStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    EXPIRED = "EXPIRED"


class SubmissionStatus(str, Enum):
    PENDING = "PENDING"
    REVIEWED = "REVIEWED"
    CONTACTED = "CONTACTED"
    REJECTED = "REJECTED"
    CONVERTED = "CONVERTED"


class AssignmentStatus(str, Enum):
    """Scene talent / scene external actor confirmation state."""

    CONFIRMED = "CONFIRMED"
    TENTATIVE = "TENTATIVE"
    RELEASED = "RELEASED"


# ── Casting call search filters ───────────────────────────────────────────────


class CompensationType(str, Enum):
    PAID = "PAID"
    UNPAID = "UNPAID"
    DEFERRED = "DEFERRED"
    UNSPECIFIED = "UNSPECIFIED"


class ExperienceLevel(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    PROFESSIONAL = "PROFESSIONAL"
    ANY = "ANY"


class GenderRequirement(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    NON_BINARY = "NON_BINARY"
    ANY = "ANY"


class RoleType(str, Enum):
    LEAD = "LEAD"
    SUPPORTING = "SUPPORTING"
    BACKGROUND = "BACKGROUND"
    EXTRA = "EXTRA"
    UNSPECIFIED = "UNSPECIFIED"
