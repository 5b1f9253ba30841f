from datetime import datetime
from typing import List, Optional
from sqlalchemy import delete, or_, update
from app.extensions import db
from app.models import EventRegistration
from app.models.enums import PaymentStatus, RegistrationStatus


class EventRegistrationRepository:
    @staticmethod
    def find_by_id(registration_id: int) -> Optional[EventRegistration]:
        return db.session.get(EventRegistration, registration_id)

    @staticmethod
    def find_by_event_and_user(event_id: int, user_id: int) -> Optional[EventRegistration]:
        """Find a registration by event_id and user_id"""
        return EventRegistration.query.filter_by(event_id=event_id, user_id=user_id).first()

    @staticmethod
    def find_all_by_event_and_user(event_id: int, user_id: int) -> List[EventRegistration]:
        return EventRegistration.query.filter_by(event_id=event_id, user_id=user_id).all()

    @staticmethod
    def find_by_event(event_id: int, search: str = None) -> List[EventRegistration]:
        query = EventRegistration.query.filter(EventRegistration.event_id == event_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    EventRegistration.name.ilike(pattern),
                    EventRegistration.reg_no.ilike(pattern),
                )
            )
        return query.order_by(EventRegistration.registered_at.asc()).all()

    @staticmethod
    def find_event_ids_for_user(user_id: int) -> List[int]:
        rows = (
            db.session.query(EventRegistration.event_id)
            .filter(EventRegistration.user_id == user_id)
            .all()
        )
        return [row.event_id for row in rows]

    @staticmethod
    def find_pending_payments(event_id: int) -> List[EventRegistration]:
        return (
            EventRegistration.query.filter(
                EventRegistration.event_id == event_id,
                EventRegistration.payment_status == PaymentStatus.PENDING,
            )
            .order_by(EventRegistration.registered_at.asc())
            .all()
        )

    @staticmethod
    def count_by_event(event_id: int) -> int:
        return EventRegistration.query.filter_by(event_id=event_id).count()

    @staticmethod
    def count_by_event_and_status(event_id: int, status: RegistrationStatus) -> int:
        return EventRegistration.query.filter_by(event_id=event_id, status=status).count()

    @staticmethod
    def add(attrs) -> EventRegistration:
        registration = EventRegistration(**attrs)
        db.session.add(registration)
        db.session.flush()
        return registration

    @staticmethod
    def delete_by_ids(registration_ids: List[int]) -> int:
        if not registration_ids:
            return 0
        stmt = (
            delete(EventRegistration)
            .where(EventRegistration.id.in_(registration_ids))
            .execution_options(synchronize_session="fetch")
        )
        return db.session.execute(stmt).rowcount

    @staticmethod
    def delete_pending_payment(registration_id: int) -> int:
        """Deletes the registration only while its payment is still pending."""
        stmt = (
            delete(EventRegistration)
            .where(EventRegistration.id == registration_id)
            .where(EventRegistration.payment_status == PaymentStatus.PENDING)
            .execution_options(synchronize_session="fetch")
        )
        return db.session.execute(stmt).rowcount

    @staticmethod
    def mark_payment_verified(registration_id: int) -> bool:
        """pending -> verified. Returns False when the row was not pending."""
        stmt = (
            update(EventRegistration)
            .where(EventRegistration.id == registration_id)
            .where(EventRegistration.payment_status == PaymentStatus.PENDING)
            .values(payment_status=PaymentStatus.VERIFIED)
            .execution_options(synchronize_session=False)
        )
        return db.session.execute(stmt).rowcount == 1

    @staticmethod
    def mark_attended(registration_id: int, checked_in_at: datetime) -> bool:
        stmt = (
            update(EventRegistration)
            .where(EventRegistration.id == registration_id)
            .where(EventRegistration.status != RegistrationStatus.ATTENDED)
            .values(status=RegistrationStatus.ATTENDED, checked_in_at=checked_in_at)
            .execution_options(synchronize_session=False)
        )
        return db.session.execute(stmt).rowcount == 1

    @staticmethod
    def mark_absent(registration_id: int) -> bool:
        stmt = (
            update(EventRegistration)
            .where(EventRegistration.id == registration_id)
            .where(EventRegistration.status == RegistrationStatus.ATTENDED)
            .values(status=RegistrationStatus.REGISTERED, checked_in_at=None)
            .execution_options(synchronize_session=False)
        )
        return db.session.execute(stmt).rowcount == 1
