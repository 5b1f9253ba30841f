from app.services.user_service import UserService
from app.services.event_service import EventService
from app.services.registration_service import RegistrationService
from app.services.payment_service import PaymentService
from app.services.attendance_service import AttendanceService
from app.services.club_service import ClubService
from app.services.notification_service import NotificationService
from app.services.outbox_service import OutboxService
from app.services.leaderboard_service import LeaderboardService
