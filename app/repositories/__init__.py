from app.repositories.user_repository import UserRepository
from app.repositories.club_repository import ClubRepository
from app.repositories.event_repository import EventRepository
from app.repositories.event_registration_repository import EventRegistrationRepository
from app.repositories.notification_repository import NotificationRepository, OutboxRepository
