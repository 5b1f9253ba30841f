from flask import current_app
from app.exceptions import ValidationError
from app.models.enums import NotificationType, OutboxKind, PaymentStatus
from app.repositories import ClubRepository, EventRegistrationRepository, EventRepository
from app.services.event_service import EventService
from app.services.notification_service import NotificationService
from app.services.outbox_service import OutboxService
from app.services.registration_service import RegistrationService
from app.sse_utils import get_event_feed
from app.utils.transactions import atomic


class PaymentService:
    @staticmethod
    def organizer_contact(event) -> dict:
        """Who a rejected registrant should call about the payment."""
        if event.club_id:
            club = ClubRepository.get_club(event.club_id)
            if club:
                return club.contact_details()
        return {
            "president": event.organizer_name,
            "phone_no": event.president_phone or event.vice_president_phone,
        }

    @staticmethod
    def pending_payments(event_id: int, actor_id: int):
        event, _ = EventService.require_manager(event_id, actor_id)
        if not event.is_paid:
            return []
        return EventRegistrationRepository.find_pending_payments(event_id)

    @staticmethod
    def verify(registration_id: int, actor_id: int):
        """Marks a paid registration's payment as verified.

        Verifying twice is harmless: the second call changes nothing and sends
        no second email.
        """
        registration, event, _ = RegistrationService.get_registration_for_manager(
            registration_id, actor_id
        )
        if not event.is_paid or registration.payment_status is None:
            raise ValidationError("This registration has no payment to verify")

        user = registration.user
        message = None
        with atomic("Verify payment"):
            changed = EventRegistrationRepository.mark_payment_verified(registration_id)
            if changed:
                message = OutboxService.enqueue(
                    OutboxKind.PAYMENT_VERIFIED,
                    {
                        "email": user.email,
                        "name": user.name,
                        "event_name": event.title,
                        "event_id": event.id,
                    },
                )
                NotificationService.notify(
                    user.id,
                    "Payment verified",
                    f'Your payment for "{event.title}" has been verified. Your check-in QR code is ready.',
                    NotificationType.SUCCESS,
                )

        if not changed:
            current_app.logger.info(f"Payment for registration {registration_id} already verified")
            return EventRegistrationRepository.find_by_id(registration_id), []

        current_app.logger.info(f"Payment verified for registration {registration_id} by user {actor_id}")
        delivery = OutboxService.dispatch([message])
        return EventRegistrationRepository.find_by_id(registration_id), delivery

    @staticmethod
    def reject(registration_id: int, reason: str, actor_id: int):
        """Rejects a pending payment: the registrant is told why and the seat is freed.

        No rejected registration is kept; the row is deleted together with the
        counter decrement.
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A reason is required to reject a payment")

        registration, event, _ = RegistrationService.get_registration_for_manager(
            registration_id, actor_id
        )
        if not event.is_paid or registration.payment_status is None:
            raise ValidationError("This registration has no payment to reject")
        if registration.payment_status == PaymentStatus.VERIFIED:
            raise ValidationError("Payment has already been verified and cannot be rejected")

        user = registration.user
        event_id, user_id = event.id, user.id
        with atomic("Reject payment"):
            # A verify that committed since the check above leaves nothing to delete
            removed = EventRegistrationRepository.delete_pending_payment(registration_id)
            if not removed:
                raise ValidationError("Payment is no longer pending and cannot be rejected")
            EventRepository.release_seats(event_id, removed)
            message = OutboxService.enqueue(
                OutboxKind.PAYMENT_REJECTED,
                {
                    "email": user.email,
                    "name": user.name,
                    "event_name": event.title,
                    "reason": reason,
                    "organizer_contact": PaymentService.organizer_contact(event),
                },
            )
            NotificationService.notify(
                user_id,
                "Payment rejected",
                f'Your payment for "{event.title}" was rejected: {reason}',
                NotificationType.ERROR,
            )

        current_app.logger.info(
            f"Payment rejected for registration {registration_id} by user {actor_id}; "
            f"removed {removed} registration(s)"
        )
        delivery = OutboxService.dispatch([message])
        get_event_feed().publish("event_updated", EventRepository.get_event(event_id).to_dict())
        return removed, delivery
