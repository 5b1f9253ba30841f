"""
Payment verification: verify is idempotent, reject removes the registration,
and email failures never undo a committed decision.
"""
import pytest

from app.exceptions import UnauthorizedError, ValidationError
from app.extensions import db
from app.models import Event, Notification, OutboxMessage
from app.models.enums import OutboxKind, OutboxStatus, PaymentStatus
from app.repositories import EventRegistrationRepository
from app.services import OutboxService, PaymentService, RegistrationService
from app.utils.email import mail


def test_pending_payments_lists_unverified(pending_payment, organizer):
    pending = PaymentService.pending_payments(pending_payment.event_id, organizer.id)

    assert [r.id for r in pending] == [pending_payment.id]


def test_verify_marks_payment_and_emails_once(pending_payment, organizer, student):
    with mail.record_messages() as outbox:
        registration, delivery = PaymentService.verify(pending_payment.id, organizer.id)
        again, second_delivery = PaymentService.verify(pending_payment.id, organizer.id)

    assert registration.payment_status == PaymentStatus.VERIFIED
    assert again.payment_status == PaymentStatus.VERIFIED
    assert delivery == [
        {"id": delivery[0]["id"], "kind": OutboxKind.PAYMENT_VERIFIED.value, "delivered": True}
    ]
    assert second_delivery == []
    assert len(outbox) == 1
    assert outbox[0].recipients == [student.email]
    assert "Payment Verified" in outbox[0].subject
    assert Notification.query.filter_by(user_id=student.id).count() == 1


def test_verify_requires_organizer(pending_payment, make_user):
    outsider = make_user()

    with pytest.raises(UnauthorizedError):
        PaymentService.verify(pending_payment.id, outsider.id)


def test_verify_free_registration_rejected(make_event, student, organizer):
    event = make_event()
    registration = RegistrationService.register(event.id, student.id)

    with pytest.raises(ValidationError):
        PaymentService.verify(registration.id, organizer.id)


def test_reject_removes_registration_and_frees_seat(pending_payment, organizer, student):
    event_id = pending_payment.event_id

    with mail.record_messages() as outbox:
        removed, delivery = PaymentService.reject(
            pending_payment.id, "Transaction ID not found in statement", organizer.id
        )

    db.session.expire_all()
    assert removed == 1
    assert delivery[0]["delivered"] is True
    assert EventRegistrationRepository.find_by_event_and_user(event_id, student.id) is None
    assert db.session.get(Event, event_id).registered_count == 0
    assert len(outbox) == 1
    assert "Transaction ID not found in statement" in outbox[0].html


def test_reject_requires_reason(pending_payment, organizer):
    with pytest.raises(ValidationError, match="reason"):
        PaymentService.reject(pending_payment.id, "   ", organizer.id)

    assert EventRegistrationRepository.find_by_id(pending_payment.id) is not None


def test_reject_after_verify_refused(pending_payment, organizer):
    PaymentService.verify(pending_payment.id, organizer.id)

    with pytest.raises(ValidationError, match="already been verified"):
        PaymentService.reject(pending_payment.id, "Duplicate", organizer.id)


def test_email_failure_keeps_verification(pending_payment, organizer, monkeypatch):
    def broken_send(message):
        raise ConnectionRefusedError("SMTP server unavailable")

    monkeypatch.setattr(mail, "send", broken_send)

    registration, delivery = PaymentService.verify(pending_payment.id, organizer.id)

    assert registration.payment_status == PaymentStatus.VERIFIED
    assert delivery[0]["delivered"] is False
    assert "SMTP server unavailable" in delivery[0]["error"]

    message = db.session.get(OutboxMessage, delivery[0]["id"])
    assert message.status == OutboxStatus.FAILED
    assert message.attempts == 1
    assert "SMTP server unavailable" in message.last_error


def test_retry_delivers_failed_messages(pending_payment, organizer, monkeypatch):
    def broken_send(message):
        raise OSError("down")

    monkeypatch.setattr(mail, "send", broken_send)
    _, delivery = PaymentService.verify(pending_payment.id, organizer.id)
    monkeypatch.undo()

    with mail.record_messages() as outbox:
        report = OutboxService.retry_undelivered()

    assert [r["id"] for r in report] == [delivery[0]["id"]]
    assert OutboxService.summarize(report) == {"sent": 1, "failed": 0, "errors": []}
    assert len(outbox) == 1
    message = db.session.get(OutboxMessage, delivery[0]["id"])
    assert message.status == OutboxStatus.SENT
    assert message.attempts == 2
