from app.models.club import Club, ClubMembership
from app.models.user import User
from app.models.event import Event
from app.models.event_registration import EventRegistration
from app.models.notification import Notification
from app.models.notification_outbox import OutboxMessage
from app.models.enums import (
    AccountStatus,
    EventStatus,
    EventType,
    NotificationType,
    OrganizerType,
    OutboxKind,
    OutboxStatus,
    PaymentStatus,
    RegistrationStatus,
    UserRole,
)
