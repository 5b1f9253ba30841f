from app.models import User
from app.models.enums import AccountStatus, NotificationType, OutboxKind, UserRole
from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import create_access_token
from app.exceptions import NotFoundError, UnauthorizedError, ValidationError
from app.repositories import (
    ClubRepository,
    EventRegistrationRepository,
    EventRepository,
    NotificationRepository,
    UserRepository,
)
from app.services.notification_service import NotificationService
from app.services.outbox_service import OutboxService
from app.services.registration_service import RegistrationService
from app.utils.transactions import atomic
from datetime import timedelta
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SELF_SERVICE_ROLES = [UserRole.STUDENT, UserRole.CLUB]


class UserService:
    @staticmethod
    def sign_up(user_data):
        existing_user = UserRepository.find_by_email(user_data["email"])
        if existing_user:
            logger.warning(f"Signup attempt with existing email: {user_data['email']}")
            raise ValueError("User already exists")

        try:
            role = UserRole(str(user_data.get("role", "student")).lower())
        except ValueError:
            raise ValueError("Invalid role. Must be either student or club")
        if role not in SELF_SERVICE_ROLES:
            raise ValueError("Invalid role. Must be either student or club")

        # Club accounts wait for an admin; students can log in straight away
        status = AccountStatus.PENDING if role == UserRole.CLUB else AccountStatus.APPROVED

        year = user_data.get("year")
        user = User(
            name=user_data["name"],
            email=user_data["email"],
            password=generate_password_hash(user_data["password"]),
            role=role,
            status=status,
            department=user_data.get("department"),
            year=int(year) if year not in (None, "") else None,
        )
        created_user = UserRepository.sign_up(user)
        logger.info(f"User created successfully: {created_user.email} ({role.value}, {status.value})")

        result = {"user": created_user.to_dict()}
        if status == AccountStatus.APPROVED:
            result["token"] = UserService._token_for(created_user)
        else:
            result["message"] = "Account created. Awaiting admin approval."
        return result

    @staticmethod
    def _token_for(user):
        return create_access_token(identity=str(user.id), expires_delta=timedelta(days=1))

    @staticmethod
    def sign_in(email, password):
        user = UserRepository.find_by_email(email)
        if not user:
            logger.warning(f"Login attempt with non-existent email: {email}")
            raise ValueError("Invalid email")

        if not check_password_hash(user.password, password):
            logger.warning(f"Failed login attempt for user: {email}")
            raise ValueError("Invalid password")

        if user.role != UserRole.ADMIN and user.status != AccountStatus.APPROVED:
            logger.warning(f"Login attempt for unapproved account: {email}")
            raise UnauthorizedError(
                f"Your account is {user.status.value}. Please wait for admin approval."
            )

        logger.info(f"User logged in successfully: {email}")
        return {"token": UserService._token_for(user), "user": user.to_dict()}

    @staticmethod
    def get_user(user_id):
        user = UserRepository.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def require_admin(user_id):
        user = UserService.get_user(user_id)
        if user.role != UserRole.ADMIN:
            raise UnauthorizedError("Admin privileges required")
        return user

    @staticmethod
    def get_users(admin_id, role=None):
        UserService.require_admin(admin_id)
        if role:
            try:
                role = UserRole(role)
            except ValueError:
                raise ValidationError(f"Invalid role: {role}")
        return UserRepository.get_users(role)

    @staticmethod
    def set_account_status(user_id, approved: bool, admin_id):
        """Approves or rejects a pending account and emails the outcome."""
        UserService.require_admin(admin_id)
        user = UserService.get_user(user_id)
        new_status = AccountStatus.APPROVED if approved else AccountStatus.REJECTED

        with atomic("Update account status"):
            user.status = new_status
            message = OutboxService.enqueue(
                OutboxKind.ACCOUNT_STATUS,
                {"email": user.email, "name": user.name, "approved": approved},
            )
            if approved:
                NotificationService.notify(
                    user.id,
                    "Account approved",
                    "Welcome to EventSync! Your account has been approved.",
                    NotificationType.SUCCESS,
                )

        logger.info(f"Account {user.email} set to {new_status.value} by admin {admin_id}")
        delivery = OutboxService.dispatch([message])
        return user, delivery

    @staticmethod
    def delete_user(user_id, admin_id):
        UserService.require_admin(admin_id)
        user = UserService.get_user(user_id)
        if user.id == int(admin_id):
            raise ValidationError("Admins cannot delete their own account")

        organized = EventRepository.count_organized_by(user.id)
        if organized:
            raise ValidationError(
                f"User still organizes {organized} event(s); delete or reassign them first"
            )
        clubs = ClubRepository.find_by_president(user.id)
        if clubs:
            raise ValidationError(
                f"User is president of {', '.join(c.name for c in clubs)} and cannot be deleted"
            )

        with atomic(
            "Delete user",
            on_conflict=ValidationError("User is still referenced by other records and cannot be deleted"),
        ):
            for event_id in EventRegistrationRepository.find_event_ids_for_user(user.id):
                RegistrationService.cancel_in_transaction(event_id, user.id)
            for membership in ClubRepository.find_memberships_for_user(user.id):
                ClubRepository.remove_member(membership)
            NotificationRepository.delete_for_user(user.id)
            UserRepository.delete(user)
        logger.info(f"User {user_id} deleted by admin {admin_id}")
