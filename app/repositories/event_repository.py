from typing import List, Optional
from sqlalchemy import case, or_, update
from app.extensions import db
from app.models import Event
from app.models.enums import EventStatus


class EventRepository:
    @staticmethod
    def get_events(statuses: Optional[List[EventStatus]] = None, organizer_id: int = None):
        query = Event.query
        if statuses and organizer_id is not None:
            query = query.filter(
                or_(Event.status.in_(statuses), Event.organizer_id == organizer_id)
            )
        elif statuses:
            query = query.filter(Event.status.in_(statuses))
        return query.order_by(Event.start_date.asc()).all()

    @staticmethod
    def get_event(event_id: int) -> Optional[Event]:
        return db.session.get(Event, event_id)

    @staticmethod
    def get_events_by_ids(event_ids: List[int]) -> List[Event]:
        if not event_ids:
            return []
        return Event.query.filter(Event.id.in_(event_ids)).order_by(Event.start_date.asc()).all()

    @staticmethod
    def create_event(attrs):
        event = Event(**attrs)
        db.session.add(event)
        db.session.flush()
        return event

    @staticmethod
    def update_event(event: Event, attrs: dict):
        for key, value in attrs.items():
            if hasattr(event, key):
                setattr(event, key, value)
        db.session.flush()
        return event

    @staticmethod
    def delete_event(event: Event):
        db.session.delete(event)
        db.session.flush()

    @staticmethod
    def claim_seat(event_id: int) -> bool:
        """Increments registered_count if the event is approved and not full.

        The predicate is evaluated by the database against the current row, so
        two transactions racing for the last seat cannot both pass it.
        """
        stmt = (
            update(Event)
            .where(Event.id == event_id)
            .where(Event.status == EventStatus.APPROVED)
            .where(
                or_(
                    Event.capacity.is_(None),
                    Event.registered_count < Event.capacity,
                )
            )
            .values(registered_count=Event.registered_count + 1)
            .execution_options(synchronize_session=False)
        )
        return db.session.execute(stmt).rowcount == 1

    @staticmethod
    def release_seats(event_id: int, count: int = 1) -> None:
        """Decrements registered_count by ``count``, never below zero."""
        if count <= 0:
            return
        stmt = (
            update(Event)
            .where(Event.id == event_id)
            .values(
                registered_count=case(
                    (Event.registered_count > count, Event.registered_count - count),
                    else_=0,
                )
            )
            .execution_options(synchronize_session=False)
        )
        db.session.execute(stmt)

    @staticmethod
    def set_capacity(event_id: int, capacity: Optional[int]) -> bool:
        """Sets capacity unless more seats than that are already taken."""
        stmt = update(Event).where(Event.id == event_id)
        if capacity is not None:
            stmt = stmt.where(Event.registered_count <= capacity)
        stmt = stmt.values(capacity=capacity).execution_options(synchronize_session=False)
        return db.session.execute(stmt).rowcount == 1

    @staticmethod
    def set_payment_terms(event_id: int, terms: dict) -> bool:
        """Changes event_type / event_fee only while nobody is registered."""
        stmt = (
            update(Event)
            .where(Event.id == event_id)
            .where(Event.registered_count == 0)
            .values(**terms)
            .execution_options(synchronize_session=False)
        )
        return db.session.execute(stmt).rowcount == 1

    @staticmethod
    def count_organized_by(user_id: int) -> int:
        return Event.query.filter(
            or_(Event.organizer_id == user_id, Event.created_by == user_id)
        ).count()
