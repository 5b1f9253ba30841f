"""
Registration workflow: capacity counter, registration window, duplicates,
payment proof and cancellation.
"""
from datetime import timedelta

import pytest

from app.exceptions import MissingProofError, NotFoundError, RegistrationDenied, ValidationError
from app.extensions import db
from app.models import Event, EventRegistration
from app.models.enums import EventStatus, PaymentStatus, RegistrationStatus
from app.repositories import EventRegistrationRepository
from app.services import RegistrationService
from app.utils.dates import utcnow
from app.utils.qr import decode_payload


def registered_count(event_id):
    db.session.expire_all()
    return db.session.get(Event, event_id).registered_count


class TestRegister:
    def test_register_increments_counter(self, make_event, student):
        event = make_event(capacity=10, registered_count=4)

        registration = RegistrationService.register(event.id, student.id)

        assert registration.id is not None
        assert registration.status == RegistrationStatus.REGISTERED
        assert registration.payment_status is None
        assert registered_count(event.id) == 5

    def test_last_seat_then_full(self, make_event, make_user):
        event = make_event(capacity=2, registered_count=1)
        first, second = make_user(), make_user()

        RegistrationService.register(event.id, first.id)
        assert registered_count(event.id) == 2

        with pytest.raises(RegistrationDenied, match="Event is full"):
            RegistrationService.register(event.id, second.id)

        assert registered_count(event.id) == 2
        assert EventRegistrationRepository.find_by_event_and_user(event.id, second.id) is None

    def test_unlimited_capacity(self, make_event, make_user):
        event = make_event(capacity=None, registered_count=500)

        RegistrationService.register(event.id, make_user().id)

        assert registered_count(event.id) == 501

    def test_deadline_passed(self, make_event, student):
        event = make_event(registration_deadline=utcnow() - timedelta(minutes=1))

        with pytest.raises(RegistrationDenied, match="deadline has passed"):
            RegistrationService.register(event.id, student.id)
        assert registered_count(event.id) == 0

    def test_not_opened_yet(self, make_event, student):
        event = make_event(registration_start_date=utcnow() + timedelta(days=1))

        with pytest.raises(RegistrationDenied, match="not opened yet"):
            RegistrationService.register(event.id, student.id)

    def test_pending_event_is_closed(self, make_event, student):
        event = make_event(status=EventStatus.PENDING)

        with pytest.raises(RegistrationDenied):
            RegistrationService.register(event.id, student.id)

    def test_duplicate_registration_denied(self, make_event, student):
        event = make_event(capacity=5)
        RegistrationService.register(event.id, student.id)

        with pytest.raises(RegistrationDenied, match="already registered"):
            RegistrationService.register(event.id, student.id)
        assert registered_count(event.id) == 1

    def test_missing_event(self, student):
        with pytest.raises(NotFoundError):
            RegistrationService.register(9999, student.id)

    def test_details_are_stored(self, make_event, student):
        event = make_event()

        registration = RegistrationService.register(
            event.id,
            student.id,
            details={"reg_no": "21CS042", "branch": "CSE", "phone": "9876543210"},
        )

        assert registration.reg_no == "21CS042"
        assert registration.branch == "CSE"
        assert registration.name == student.name


class TestPaidRegistration:
    def test_paid_event_requires_proof(self, paid_event, student):
        with pytest.raises(MissingProofError):
            RegistrationService.register(
                paid_event.id, student.id, proof={"transaction_id": "UPI1"}
            )
        assert registered_count(paid_event.id) == 0

    def test_missing_proof_is_both_validation_and_denial(self):
        assert issubclass(MissingProofError, ValidationError)
        assert issubclass(MissingProofError, RegistrationDenied)

    def test_paid_registration_starts_pending(self, paid_event, student, proof):
        registration = RegistrationService.register(paid_event.id, student.id, proof=proof)

        assert registration.payment_status == PaymentStatus.PENDING
        assert registration.transaction_id == "UPI123456"
        assert registered_count(paid_event.id) == 1

    def test_credential_requires_verified_payment(self, pending_payment):
        with pytest.raises(RegistrationDenied, match="not been verified"):
            RegistrationService.get_check_in_credential(
                pending_payment.event_id, pending_payment.user_id
            )


class TestCancel:
    def test_cancel_frees_the_seat(self, make_event, student):
        event = make_event(capacity=1)
        RegistrationService.register(event.id, student.id)

        removed = RegistrationService.cancel(event.id, student.id)

        assert removed == 1
        assert registered_count(event.id) == 0
        assert EventRegistrationRepository.find_by_event_and_user(event.id, student.id) is None

    def test_cancel_without_registration(self, make_event, student):
        event = make_event()

        with pytest.raises(NotFoundError):
            RegistrationService.cancel(event.id, student.id)

    def test_cancel_decrements_by_rows_removed(self, make_event, student, monkeypatch):
        event = make_event(registered_count=3)
        RegistrationService.register(event.id, student.id)

        # A second legacy row for the same pair is deleted in the same statement
        monkeypatch.setattr(
            EventRegistrationRepository,
            "delete_by_ids",
            staticmethod(
                lambda ids: db.session.query(EventRegistration)
                .filter(EventRegistration.id.in_(ids))
                .delete(synchronize_session="fetch")
                + 1
            ),
        )

        removed = RegistrationService.cancel(event.id, student.id)

        assert removed == 2
        assert registered_count(event.id) == 2

    def test_counter_never_negative(self, make_event, make_registration, student):
        event = make_event(registered_count=0)
        make_registration(event, student)

        RegistrationService.cancel(event.id, student.id)

        assert registered_count(event.id) == 0

    def test_free_event_credential(self, make_event, student):
        event = make_event()
        RegistrationService.register(event.id, student.id)

        payload = decode_payload(RegistrationService.get_check_in_credential(event.id, student.id))

        assert payload.event_id == str(event.id)
        assert payload.user_id == str(student.id)
