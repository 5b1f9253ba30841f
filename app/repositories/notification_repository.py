from typing import List, Optional
from sqlalchemy import update
from app.extensions import db
from app.models import Notification, OutboxMessage
from app.models.enums import NotificationType, OutboxStatus


class NotificationRepository:
    @staticmethod
    def delete_for_user(user_id: int) -> int:
        return Notification.query.filter_by(user_id=user_id).delete(synchronize_session=False)

    @staticmethod
    def add(user_id: int, title: str, message: str, type: NotificationType) -> Notification:
        notification = Notification(user_id=user_id, title=title, message=message, type=type)
        db.session.add(notification)
        return notification

    @staticmethod
    def find_by_id(notification_id: int) -> Optional[Notification]:
        return db.session.get(Notification, notification_id)

    @staticmethod
    def find_by_user(user_id: int) -> List[Notification]:
        return (
            Notification.query.filter_by(user_id=user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .all()
        )

    @staticmethod
    def mark_all_read(user_id: int) -> int:
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        return db.session.execute(stmt).rowcount


class OutboxRepository:
    @staticmethod
    def add(kind, payload: dict) -> OutboxMessage:
        message = OutboxMessage(kind=kind, payload=payload, status=OutboxStatus.PENDING)
        db.session.add(message)
        return message

    @staticmethod
    def find_by_ids(message_ids: List[int]) -> List[OutboxMessage]:
        if not message_ids:
            return []
        return OutboxMessage.query.filter(OutboxMessage.id.in_(message_ids)).all()

    @staticmethod
    def find_undelivered(include_failed: bool = True) -> List[OutboxMessage]:
        statuses = [OutboxStatus.PENDING]
        if include_failed:
            statuses.append(OutboxStatus.FAILED)
        return (
            OutboxMessage.query.filter(OutboxMessage.status.in_(statuses))
            .order_by(OutboxMessage.id.asc())
            .all()
        )
