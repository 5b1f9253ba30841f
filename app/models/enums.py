from enum import Enum


class UserRole(Enum):
    STUDENT = "student"
    CLUB = "club"
    ADMIN = "admin"


class AccountStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EventStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class EventType(Enum):
    FREE = "free"
    PAID = "paid"


class OrganizerType(Enum):
    CLUB = "club"
    ADMIN = "admin"


class RegistrationStatus(Enum):
    REGISTERED = "registered"
    ATTENDED = "attended"


class PaymentStatus(Enum):
    PENDING = "pending"
    VERIFIED = "verified"


class NotificationType(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class OutboxKind(Enum):
    PAYMENT_VERIFIED = "payment_verified"
    PAYMENT_REJECTED = "payment_rejected"
    EVENT_ANNOUNCEMENT = "event_announcement"
    ACCOUNT_STATUS = "account_status"


class OutboxStatus(Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
