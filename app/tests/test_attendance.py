"""
Attendance: manual toggling, QR check-in and the scan debouncer.
"""
import json

import pytest

from app.exceptions import InvalidPayload, UnauthorizedError, UnknownRegistrant, ValidationError, WrongEvent
from app.extensions import db
from app.models import User
from app.models.enums import EventStatus, RegistrationStatus
from app.services import AttendanceService, PaymentService, RegistrationService
from app.services.attendance_service import ALREADY_CHECKED_IN, CHECKED_IN, ScanDebouncer
from app.utils.qr import encode_payload


def points_of(user_id):
    db.session.expire_all()
    return db.session.get(User, user_id).points


@pytest.fixture
def registration(make_event, student):
    event = make_event()
    return RegistrationService.register(event.id, student.id)


class TestSetAttendance:
    def test_mark_present_awards_points_once(self, registration, organizer, student):
        updated, changed = AttendanceService.set_attendance(registration.id, True, organizer.id)
        _, changed_again = AttendanceService.set_attendance(registration.id, True, organizer.id)

        assert changed is True
        assert changed_again is False
        assert updated.status == RegistrationStatus.ATTENDED
        assert updated.checked_in_at is not None
        assert points_of(student.id) == 3

    def test_mark_absent_revokes_points(self, registration, organizer, student):
        AttendanceService.set_attendance(registration.id, True, organizer.id)

        updated, changed = AttendanceService.set_attendance(registration.id, False, organizer.id)

        assert changed is True
        assert updated.status == RegistrationStatus.REGISTERED
        assert updated.checked_in_at is None
        assert points_of(student.id) == 0

    def test_only_organizer_or_admin(self, registration, make_user, admin):
        with pytest.raises(UnauthorizedError):
            AttendanceService.set_attendance(registration.id, True, make_user().id)

        _, changed = AttendanceService.set_attendance(registration.id, True, admin.id)
        assert changed is True

    def test_closed_event_refused(self, make_event, make_registration, student, organizer):
        event = make_event(status=EventStatus.CANCELLED)
        registration = make_registration(event, student)

        with pytest.raises(ValidationError):
            AttendanceService.set_attendance(registration.id, True, organizer.id)

    def test_summary_counts(self, make_event, make_user, organizer):
        event = make_event()
        attendees = [make_user(name=f"Attendee {i}") for i in range(3)]
        registrations = [RegistrationService.register(event.id, u.id) for u in attendees]
        AttendanceService.set_attendance(registrations[0].id, True, organizer.id)

        summary = AttendanceService.attendance_summary(event.id, organizer.id)

        assert summary["total"] == 3
        assert summary["present"] == 1
        assert summary["absent"] == 2
        assert len(summary["registrations"]) == 3

    def test_summary_search_keeps_totals(self, make_event, make_user, organizer):
        event = make_event()
        for name in ["Asha Rao", "Vikram Sen"]:
            RegistrationService.register(event.id, make_user(name=name).id)

        summary = AttendanceService.attendance_summary(event.id, organizer.id, search="asha")

        assert summary["total"] == 2
        assert [r["name"] for r in summary["registrations"]] == ["Asha Rao"]


class TestCheckIn:
    def test_scan_checks_in_then_reports_already(self, registration, organizer, student):
        payload = encode_payload(registration.event_id, student.id)

        result, updated = AttendanceService.check_in(registration.event_id, payload, organizer.id)
        second, _ = AttendanceService.check_in(registration.event_id, payload, organizer.id)

        assert result == CHECKED_IN
        assert updated.status == RegistrationStatus.ATTENDED
        assert second == ALREADY_CHECKED_IN
        assert points_of(student.id) == 3

    def test_wrong_event(self, registration, make_event, organizer, student):
        other = make_event()
        payload = encode_payload(other.id, student.id)

        with pytest.raises(WrongEvent):
            AttendanceService.check_in(registration.event_id, payload, organizer.id)

    @pytest.mark.parametrize(
        "raw",
        ["not json", "[1, 2]", json.dumps({"eventId": "1"}), json.dumps({"userId": "", "eventId": "1"})],
    )
    def test_invalid_payload(self, registration, organizer, raw):
        with pytest.raises(InvalidPayload):
            AttendanceService.check_in(registration.event_id, raw, organizer.id)

    def test_unknown_registrant(self, registration, make_user, organizer):
        stranger = make_user()
        payload = encode_payload(registration.event_id, stranger.id)

        with pytest.raises(UnknownRegistrant):
            AttendanceService.check_in(registration.event_id, payload, organizer.id)

    def test_non_numeric_user_id(self, registration, organizer):
        payload = json.dumps({"eventId": str(registration.event_id), "userId": "abc"})

        with pytest.raises(UnknownRegistrant):
            AttendanceService.check_in(registration.event_id, payload, organizer.id)

    def test_paid_event_credential_after_verification(self, pending_payment, organizer, student):
        PaymentService.verify(pending_payment.id, organizer.id)
        payload = RegistrationService.get_check_in_credential(pending_payment.event_id, student.id)

        result, _ = AttendanceService.check_in(pending_payment.event_id, payload, organizer.id)

        assert result == CHECKED_IN


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class TestScanDebouncer:
    def test_repeat_inside_window_is_dropped(self):
        clock = FakeClock()
        debouncer = ScanDebouncer(window=3.0, clock=clock)

        assert debouncer.should_process("scanner-1", "payload") is True
        clock.now += 1.0
        assert debouncer.should_process("scanner-1", "payload") is False
        clock.now += 3.0
        assert debouncer.should_process("scanner-1", "payload") is True

    def test_different_payload_or_scanner_passes(self):
        debouncer = ScanDebouncer(window=3.0, clock=FakeClock())

        assert debouncer.should_process("scanner-1", "a") is True
        assert debouncer.should_process("scanner-1", "b") is True
        assert debouncer.should_process("scanner-2", "b") is True
