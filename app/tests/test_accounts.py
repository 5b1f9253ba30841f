"""
Accounts, clubs, in-app notifications and leaderboards.
"""
import pytest

from app.exceptions import NotFoundError, UnauthorizedError, ValidationError
from app.extensions import db
from app.models import Club, EventRegistration, User
from app.models.enums import AccountStatus, UserRole
from app.services import (
    AttendanceService,
    ClubService,
    LeaderboardService,
    NotificationService,
    PaymentService,
    RegistrationService,
    UserService,
)
from app.utils.email import mail


def member_count(club_id):
    db.session.expire_all()
    return db.session.get(Club, club_id).member_count


@pytest.mark.usefixtures("app")
class TestUserService:
    def test_student_sign_up_returns_token(self):
        result = UserService.sign_up(
            {"name": "Asha", "email": "asha@campus.test", "password": "pw12345", "department": "ECE"}
        )

        assert result["user"]["role"] == "student"
        assert result["user"]["status"] == "approved"
        assert result["token"]

    def test_club_sign_up_waits_for_approval(self):
        result = UserService.sign_up(
            {"name": "Robotics", "email": "robo@campus.test", "password": "pw12345", "role": "club"}
        )

        assert "token" not in result
        assert result["user"]["status"] == "pending"
        with pytest.raises(UnauthorizedError, match="pending"):
            UserService.sign_in("robo@campus.test", "pw12345")

    def test_admin_role_cannot_be_self_assigned(self):
        with pytest.raises(ValueError, match="Invalid role"):
            UserService.sign_up(
                {"name": "Mallory", "email": "m@campus.test", "password": "pw", "role": "admin"}
            )

    def test_duplicate_email(self, student):
        with pytest.raises(ValueError, match="already exists"):
            UserService.sign_up({"name": "Copy", "email": student.email, "password": "pw"})

    def test_sign_in_wrong_password(self, student):
        with pytest.raises(ValueError):
            UserService.sign_in(student.email, "wrong")

    def test_approve_account_emails_user(self, make_user, admin):
        club = make_user(role=UserRole.CLUB, status=AccountStatus.PENDING)

        with mail.record_messages() as outbox:
            user, delivery = UserService.set_account_status(club.id, True, admin.id)

        assert user.status == AccountStatus.APPROVED
        assert delivery[0]["delivered"] is True
        assert outbox[0].recipients == [club.email]
        assert UserService.sign_in(club.email, "secret123")["token"]

    def test_only_admin_lists_users(self, student, admin):
        with pytest.raises(UnauthorizedError):
            UserService.get_users(student.id)

        students = UserService.get_users(admin.id, role="student")
        assert [u.id for u in students] == [student.id]

    def test_delete_user_frees_their_seats(self, make_event, student, admin):
        event = make_event(capacity=3)
        student_id = student.id
        RegistrationService.register(event.id, student_id)

        UserService.delete_user(student_id, admin.id)

        db.session.expire_all()
        assert db.session.get(User, student_id) is None
        assert event.registered_count == 0
        assert EventRegistration.query.filter_by(event_id=event.id).count() == 0

    def test_organizer_with_events_cannot_be_deleted(self, make_event, organizer, admin):
        make_event()

        with pytest.raises(ValidationError, match="still organizes 1 event"):
            UserService.delete_user(organizer.id, admin.id)

        assert db.session.get(User, organizer.id) is not None

    def test_club_president_cannot_be_deleted(self, organizer, admin):
        ClubService.create_club({"name": "Robotics", "faculty_advisor": "Dr. S"}, organizer.id)

        with pytest.raises(ValidationError, match="president of Robotics"):
            UserService.delete_user(organizer.id, admin.id)

        assert db.session.get(User, organizer.id) is not None
        assert member_count(Club.query.filter_by(name="Robotics").one().id) == 1


class TestClubs:
    def test_create_club_makes_creator_a_member(self, organizer):
        club = ClubService.create_club(
            {"name": "Coding Club", "faculty_advisor": "Dr. Rao", "phone_no": "9000000000"},
            organizer.id,
        )

        assert member_count(club.id) == 1
        assert db.session.get(User, organizer.id).club_id == club.id

    def test_students_cannot_create_clubs(self, student):
        with pytest.raises(UnauthorizedError):
            ClubService.create_club({"name": "X", "faculty_advisor": "Y"}, student.id)

    def test_join_and_leave_keep_member_count(self, organizer, student):
        club = ClubService.create_club({"name": "Chess", "faculty_advisor": "Dr. K"}, organizer.id)

        ClubService.join_club(club.id, student.id)
        assert member_count(club.id) == 2

        with pytest.raises(ValidationError, match="already a member"):
            ClubService.join_club(club.id, student.id)
        assert member_count(club.id) == 2

        ClubService.leave_club(club.id, student.id)
        assert member_count(club.id) == 1

        with pytest.raises(NotFoundError):
            ClubService.leave_club(club.id, student.id)

    def test_president_cannot_leave(self, organizer):
        club = ClubService.create_club({"name": "Drama", "faculty_advisor": "Dr. M"}, organizer.id)

        with pytest.raises(ValidationError):
            ClubService.leave_club(club.id, organizer.id)


class TestNotifications:
    def test_list_and_mark_read(self, pending_payment, organizer, student):
        PaymentService.verify(pending_payment.id, organizer.id)

        listing = NotificationService.get_notifications(student.id)
        assert listing["unread_count"] == 1
        notification_id = listing["notifications"][0]["id"]

        NotificationService.mark_as_read(notification_id, student.id)
        assert NotificationService.get_notifications(student.id)["unread_count"] == 0

    def test_other_users_notification(self, student, make_user):
        notification = NotificationService.notify(student.id, "Hi", "Hello")
        db.session.commit()

        with pytest.raises(UnauthorizedError):
            NotificationService.delete_notification(notification.id, make_user().id)

        NotificationService.delete_notification(notification.id, student.id)
        assert NotificationService.get_notifications(student.id)["notifications"] == []


def test_leaderboard_ranks_by_points(make_event, make_user, organizer):
    event = make_event()
    leader, runner_up = make_user(name="Leader"), make_user(name="Runner Up")
    registration = RegistrationService.register(event.id, leader.id)
    RegistrationService.register(event.id, runner_up.id)
    AttendanceService.set_attendance(registration.id, True, organizer.id)

    boards = LeaderboardService.get_leaderboards()

    assert boards["students"][0] == {
        "rank": 1,
        "id": leader.id,
        "name": "Leader",
        "department": None,
        "points": 3,
    }
    assert boards["students"][1]["name"] == "Runner Up"
