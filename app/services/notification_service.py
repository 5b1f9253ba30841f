from flask import current_app
from app.exceptions import NotFoundError, UnauthorizedError
from app.models.enums import NotificationType
from app.repositories import NotificationRepository
from app.utils.transactions import atomic
from app.extensions import db


class NotificationService:
    @staticmethod
    def notify(user_id: int, title: str, message: str, type=NotificationType.INFO):
        """Adds an in-app notification to the current transaction."""
        return NotificationRepository.add(user_id, title, message, type)

    @staticmethod
    def get_notifications(user_id: int):
        notifications = NotificationRepository.find_by_user(user_id)
        unread_count = len([n for n in notifications if not n.read])
        return {
            "notifications": [n.to_dict() for n in notifications],
            "unread_count": unread_count,
        }

    @staticmethod
    def _get_owned(notification_id: int, user_id: int):
        notification = NotificationRepository.find_by_id(notification_id)
        if not notification:
            raise NotFoundError(f"Notification with ID {notification_id} not found")
        if notification.user_id != user_id:
            raise UnauthorizedError("This notification belongs to another user")
        return notification

    @staticmethod
    def mark_as_read(notification_id: int, user_id: int):
        with atomic("Mark notification as read"):
            notification = NotificationService._get_owned(notification_id, user_id)
            notification.read = True
        return notification

    @staticmethod
    def mark_all_as_read(user_id: int) -> int:
        with atomic("Mark all notifications as read"):
            updated = NotificationRepository.mark_all_read(user_id)
        current_app.logger.info(f"Marked {updated} notification(s) read for user {user_id}")
        return updated

    @staticmethod
    def delete_notification(notification_id: int, user_id: int):
        with atomic("Delete notification"):
            notification = NotificationService._get_owned(notification_id, user_id)
            db.session.delete(notification)
