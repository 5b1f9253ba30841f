from flask import current_app
from app.exceptions import (
    MissingProofError,
    NotFoundError,
    RegistrationDenied,
)
from app.models import EventRegistration
from app.models.enums import EventStatus, PaymentStatus, RegistrationStatus
from app.repositories import EventRegistrationRepository, EventRepository
from app.services.event_service import EventService
from app.sse_utils import get_event_feed
from app.utils.dates import utcnow
from app.utils.qr import encode_payload
from app.utils.transactions import atomic

DETAIL_FIELDS = ["reg_no", "name", "branch", "department", "phone"]


class RegistrationService:
    @staticmethod
    def register(event_id: int, user_id: int, proof: dict = None, details: dict = None) -> EventRegistration:
        """Registers ``user_id`` for ``event_id``.

        The seat is claimed and the registration row inserted in one
        transaction; either both land or neither does.
        """
        current_app.logger.info(f"Registration attempt: User {user_id} for event {event_id}")
        proof = proof or {}
        details = details or {}

        event = EventService.get_event(event_id)
        user = EventService.get_user(user_id)

        if event.status != EventStatus.APPROVED:
            raise RegistrationDenied("Event is not open for registration")

        closed_reason = event.registration_closed_reason(utcnow())
        if closed_reason:
            current_app.logger.info(f"User {user_id} blocked from event {event_id}: {closed_reason}")
            raise RegistrationDenied(closed_reason)

        if EventRegistrationRepository.find_by_event_and_user(event_id, user_id):
            current_app.logger.warning(f"User {user_id} already registered for event {event_id}")
            raise RegistrationDenied("You are already registered for this event")

        attrs = {
            "event_id": event_id,
            "user_id": user_id,
            "status": RegistrationStatus.REGISTERED,
        }
        for field in DETAIL_FIELDS:
            if details.get(field):
                attrs[field] = details[field]
        attrs.setdefault("name", user.name)
        attrs.setdefault("department", user.department)

        if event.is_paid:
            transaction_id = (proof.get("transaction_id") or "").strip()
            transaction_image = (proof.get("transaction_image") or "").strip()
            if not transaction_id or not transaction_image:
                raise MissingProofError(
                    "Please upload the transaction proof and enter the Transaction ID"
                )
            attrs.update(
                {
                    "transaction_id": transaction_id,
                    "transaction_image": transaction_image,
                    "payment_status": PaymentStatus.PENDING,
                }
            )

        with atomic(
            "Registration",
            on_conflict=RegistrationDenied("You are already registered for this event"),
        ):
            if not EventRepository.claim_seat(event_id):
                current_app.logger.warning(f"User {user_id} blocked from event {event_id}: event full")
                raise RegistrationDenied("Event is full")
            registration = EventRegistrationRepository.add(attrs)

        current_app.logger.info(
            f"Successfully registered user {user_id} for event {event_id} (registration {registration.id})"
        )
        get_event_feed().publish("event_updated", EventRepository.get_event(event_id).to_dict())
        return registration

    @staticmethod
    def cancel(event_id: int, user_id: int) -> int:
        """Removes every registration of ``user_id`` for ``event_id``.

        Returns how many rows were removed; registered_count drops by the same
        amount in the same transaction.
        """
        with atomic("Cancel registration"):
            removed = RegistrationService.cancel_in_transaction(event_id, user_id)

        current_app.logger.info(f"User {user_id} cancelled {removed} registration(s) for event {event_id}")
        event = EventRepository.get_event(event_id)
        if event:
            get_event_feed().publish("event_updated", event.to_dict())
        return removed

    @staticmethod
    def cancel_in_transaction(event_id: int, user_id: int) -> int:
        registrations = EventRegistrationRepository.find_all_by_event_and_user(event_id, user_id)
        if not registrations:
            raise NotFoundError(
                "No registration found to cancel. You may have already cancelled your registration for this event."
            )
        if len(registrations) > 1:
            current_app.logger.warning(
                f"Found {len(registrations)} registrations for user {user_id}, event {event_id} - removing all"
            )
        removed = EventRegistrationRepository.delete_by_ids([r.id for r in registrations])
        EventRepository.release_seats(event_id, removed)
        return removed

    @staticmethod
    def get_registration(event_id: int, user_id: int) -> EventRegistration:
        registration = EventRegistrationRepository.find_by_event_and_user(event_id, user_id)
        if not registration:
            raise NotFoundError("You are not registered for this event")
        return registration

    @staticmethod
    def get_registration_for_manager(registration_id: int, actor_id: int):
        registration = EventRegistrationRepository.find_by_id(registration_id)
        if not registration:
            raise NotFoundError(f"Registration with ID {registration_id} not found")
        event, actor = EventService.require_manager(registration.event_id, actor_id)
        return registration, event, actor

    @staticmethod
    def list_registrations(event_id: int, actor_id: int, search: str = None):
        EventService.require_manager(event_id, actor_id)
        return EventRegistrationRepository.find_by_event(event_id, search)

    @staticmethod
    def get_check_in_credential(event_id: int, user_id: int) -> str:
        """The QR payload a registrant shows at the door."""
        event = EventService.get_event(event_id)
        registration = RegistrationService.get_registration(event_id, user_id)
        if event.is_paid and registration.payment_status != PaymentStatus.VERIFIED:
            raise RegistrationDenied("Your payment has not been verified yet")
        return encode_payload(event_id, user_id)

