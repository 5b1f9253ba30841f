from decimal import Decimal, InvalidOperation
from flask import current_app
from app.exceptions import (
    MissingFieldsError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from app.models import Event
from app.models.enums import (
    EventStatus,
    EventType,
    OrganizerType,
    OutboxKind,
    UserRole,
)
from app.repositories import (
    ClubRepository,
    EventRegistrationRepository,
    EventRepository,
    UserRepository,
)
from app.services.outbox_service import OutboxService
from app.sse_utils import get_event_feed
from app.utils.dates import parse_iso, utcnow, ensure_utc
from app.utils.transactions import atomic
from typing import List

# Fields an organizer may change after creation
EDITABLE_FIELDS = [
    "title",
    "description",
    "location",
    "start_date",
    "end_date",
    "registration_start_date",
    "registration_deadline",
    "capacity",
    "event_type",
    "event_fee",
    "upi_id",
    "image",
    "tags",
    "president_phone",
    "vice_president_phone",
    "status",
]
DATE_FIELDS = ["start_date", "end_date", "registration_start_date", "registration_deadline"]
PUBLIC_STATUSES = [EventStatus.APPROVED, EventStatus.COMPLETED]
# Registrations already made under these terms would be left inconsistent
PAYMENT_TERM_FIELDS = ["event_type", "event_fee"]
PAYMENT_TERMS_LOCKED = "Event type and fee cannot change once people have registered"


class EventService:
    @staticmethod
    def get_user(user_id):
        user = UserRepository.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def get_event(event_id: int) -> Event:
        event = EventRepository.get_event(event_id)
        if not event:
            raise NotFoundError(f"Event with ID {event_id} not found")
        return event

    @staticmethod
    def can_manage(event: Event, user) -> bool:
        """Admins manage every event; organizers manage their own and their club's."""
        if user is None:
            return False
        if user.role == UserRole.ADMIN:
            return True
        if event.organizer_id == user.id:
            return True
        return bool(user.club_id and event.club_id == user.club_id)

    @staticmethod
    def require_manager(event_id: int, user_id: int):
        event = EventService.get_event(event_id)
        user = EventService.get_user(user_id)
        if not EventService.can_manage(event, user):
            raise UnauthorizedError("You are not an organizer of this event")
        return event, user

    @staticmethod
    def get_events(user_id=None, status=None) -> List[Event]:
        user = UserRepository.find_by_id(user_id) if user_id else None
        if status and status not in [s.value for s in EventStatus]:
            raise ValidationError(f"Invalid status value: {status}")
        if user and user.role == UserRole.ADMIN:
            statuses = [EventStatus(status)] if status else None
            return EventRepository.get_events(statuses)
        if not status:
            return EventRepository.get_events(PUBLIC_STATUSES, organizer_id=user.id if user else None)
        requested = EventStatus(status)
        if requested in PUBLIC_STATUSES:
            return EventRepository.get_events([requested])
        # Unpublished events are only listed to their organizer
        if not user:
            return []
        return [e for e in EventRepository.get_events([requested]) if e.organizer_id == user.id]

    @staticmethod
    def _parse_fields(data: dict) -> dict:
        parsed = {}
        for field in EDITABLE_FIELDS:
            if field not in data:
                continue
            value = data[field]
            if field in DATE_FIELDS:
                try:
                    parsed[field] = parse_iso(value)
                except (TypeError, ValueError):
                    raise ValidationError(f"Invalid date format for {field}")
            elif field == "capacity":
                if value in (None, ""):
                    parsed[field] = None
                    continue
                try:
                    parsed[field] = int(value)
                except (TypeError, ValueError):
                    raise ValidationError("Invalid format for capacity, must be an integer")
                if parsed[field] < 1:
                    raise ValidationError("Capacity must be at least 1")
            elif field == "event_fee":
                if value in (None, ""):
                    parsed[field] = None
                    continue
                try:
                    parsed[field] = Decimal(str(value))
                except InvalidOperation:
                    raise ValidationError("Invalid format for event_fee")
            elif field == "event_type":
                try:
                    parsed[field] = EventType(value)
                except ValueError:
                    raise ValidationError(f"Invalid event type: {value}")
            elif field == "status":
                try:
                    parsed[field] = EventStatus(value)
                except ValueError:
                    raise ValidationError(f"Invalid status value: {value}")
            else:
                parsed[field] = value
        return parsed

    @staticmethod
    def _validate(event_attrs: dict):
        start, end = event_attrs.get("start_date"), event_attrs.get("end_date")
        if start and end and end < start:
            raise ValidationError("Event cannot end before it starts")
        opens = event_attrs.get("registration_start_date")
        closes = event_attrs.get("registration_deadline")
        if opens and closes and closes < opens:
            raise ValidationError("Registration deadline is before registration opens")
        if event_attrs.get("event_type") == EventType.PAID:
            if not event_attrs.get("event_fee") or event_attrs["event_fee"] <= 0:
                raise ValidationError("Paid events need a positive event_fee")
            if not event_attrs.get("upi_id"):
                raise ValidationError("Paid events need a upi_id to receive payments")

    @staticmethod
    def _award_creation_points(event: Event):
        points = current_app.config["EVENT_CREATION_POINTS"]
        UserRepository.add_points(event.organizer_id, points)
        if event.club_id:
            ClubRepository.add_points(event.club_id, points)

    @staticmethod
    def _enqueue_announcement(event: Event):
        students = UserRepository.find_approved_students()
        if not students:
            current_app.logger.info(f"No students to announce event {event.id} to")
            return None
        return OutboxService.enqueue(
            OutboxKind.EVENT_ANNOUNCEMENT,
            {"event": event.to_dict(), "recipients": [s.email for s in students]},
        )

    @staticmethod
    def create_event(data, user_id):
        user = EventService.get_user(user_id)
        if user.role not in [UserRole.CLUB, UserRole.ADMIN]:
            raise UnauthorizedError("Only clubs and admins can create events")

        required_fields = ["title", "location", "start_date", "end_date"]
        missing = [f for f in required_fields if not data.get(f)]
        if missing:
            raise MissingFieldsError(missing)

        attrs = EventService._parse_fields(data)
        attrs.pop("status", None)
        attrs.setdefault("event_type", EventType.FREE)
        EventService._validate(attrs)

        is_admin = user.role == UserRole.ADMIN
        club = ClubRepository.get_club(user.club_id) if user.club_id else None
        attrs.update(
            {
                "created_by": user.id,
                "organizer_id": user.id,
                "organizer_name": club.name if club else user.name,
                "organizer_type": OrganizerType.ADMIN if is_admin else OrganizerType.CLUB,
                "club_id": club.id if club else None,
                "status": EventStatus.APPROVED if is_admin else EventStatus.PENDING,
                "registered_count": 0,
                "tags": attrs.get("tags") or [],
            }
        )

        announcement = None
        with atomic("Create event"):
            event = EventRepository.create_event(attrs)
            if is_admin:
                EventService._award_creation_points(event)
                announcement = EventService._enqueue_announcement(event)

        current_app.logger.info(
            f"Event {event.id} created by user {user.id} with status {event.status.value}"
        )
        delivery = OutboxService.dispatch([announcement]) if announcement else []
        get_event_feed().publish("event_created", event.to_dict())
        return event, delivery

    @staticmethod
    def update_event(event_id: int, data: dict, user_id: int):
        """Applies an organizer's edits.

        Approval and rejection go through approve_event / reject_event. Seat
        capacity and payment terms are written with conditional updates so a
        registration committing meanwhile cannot leave the event overbooked or
        holding registrations made under different payment terms.
        """
        event, _ = EventService.require_manager(event_id, user_id)
        update_data = EventService._parse_fields(data)
        fields = sorted(update_data)

        if update_data.get("status") in (EventStatus.APPROVED, EventStatus.REJECTED):
            raise ValidationError("Use the approve or reject action to change an event's approval")

        if not update_data:
            return event

        merged = {field: getattr(event, field) for field in EDITABLE_FIELDS}
        merged.update(update_data)
        for field in DATE_FIELDS:
            merged[field] = ensure_utc(merged[field])
        EventService._validate(merged)

        has_capacity = "capacity" in update_data
        capacity = update_data.pop("capacity", None)
        if has_capacity and capacity is not None and capacity < event.registered_count:
            raise ValidationError(
                f"Capacity cannot be lower than the {event.registered_count} existing registrations"
            )

        payment_terms = {}
        for field in PAYMENT_TERM_FIELDS:
            if field in update_data:
                value = update_data.pop(field)
                if value != getattr(event, field):
                    payment_terms[field] = value
        if payment_terms and event.registered_count > 0:
            raise ValidationError(PAYMENT_TERMS_LOCKED)

        with atomic("Update event"):
            EventRepository.update_event(event, update_data)
            if has_capacity and not EventRepository.set_capacity(event_id, capacity):
                raise ValidationError("Capacity cannot be lower than the number of existing registrations")
            if payment_terms and not EventRepository.set_payment_terms(event_id, payment_terms):
                raise ValidationError(PAYMENT_TERMS_LOCKED)

        current_app.logger.info(f"Event {event_id} updated by user {user_id}: {fields}")
        get_event_feed().publish("event_updated", event.to_dict())
        return event

    @staticmethod
    def approve_event(event_id: int, user_id: int):
        user = EventService.get_user(user_id)
        if user.role != UserRole.ADMIN:
            raise UnauthorizedError("Admin privileges required")
        event = EventService.get_event(event_id)
        if ensure_utc(event.start_date) < utcnow():
            raise ValidationError("Cannot approve a past event")
        if event.status == EventStatus.APPROVED:
            return event, []

        announcement = None
        with atomic("Approve event"):
            event.status = EventStatus.APPROVED
            EventService._award_creation_points(event)
            if event.organizer_type == OrganizerType.CLUB:
                announcement = EventService._enqueue_announcement(event)

        current_app.logger.info(f"Event {event_id} approved by admin {user_id}")
        delivery = OutboxService.dispatch([announcement]) if announcement else []
        get_event_feed().publish("event_updated", event.to_dict())
        return event, delivery

    @staticmethod
    def reject_event(event_id: int, user_id: int):
        user = EventService.get_user(user_id)
        if user.role != UserRole.ADMIN:
            raise UnauthorizedError("Admin privileges required")
        event = EventService.get_event(event_id)
        with atomic("Reject event"):
            event.status = EventStatus.REJECTED
        current_app.logger.info(f"Event {event_id} rejected by admin {user_id}")
        get_event_feed().publish("event_updated", event.to_dict())
        return event

    @staticmethod
    def delete_event(event_id: int, user_id: int):
        event, _ = EventService.require_manager(event_id, user_id)
        with atomic("Delete event"):
            EventRepository.delete_event(event)
        current_app.logger.info(f"Event {event_id} deleted by user {user_id}")
        get_event_feed().publish("event_deleted", {"id": event_id})

    @staticmethod
    def get_registered_events(user_id: int) -> List[Event]:
        event_ids = EventRegistrationRepository.find_event_ids_for_user(user_id)
        return EventRepository.get_events_by_ids(event_ids)
