import threading
import time
from flask import current_app
from app.exceptions import UnknownRegistrant, ValidationError, WrongEvent
from app.models.enums import EventStatus, RegistrationStatus
from app.repositories import EventRegistrationRepository, UserRepository
from app.services.event_service import EventService
from app.services.registration_service import RegistrationService
from app.utils.dates import utcnow
from app.utils.qr import decode_payload
from app.utils.transactions import atomic

CHECKED_IN = "checked_in"
ALREADY_CHECKED_IN = "already_checked_in"

ATTENDANCE_OPEN_STATUSES = [EventStatus.APPROVED, EventStatus.COMPLETED]


class ScanDebouncer:
    """Drops a scan identical to the previous one from the same scanner within ``window`` seconds."""

    def __init__(self, window: float = 3.0, clock=time.monotonic):
        self.window = window
        self._clock = clock
        self._last_scan = {}
        self._lock = threading.Lock()

    def should_process(self, scanner_key, payload: str) -> bool:
        now = self._clock()
        with self._lock:
            last = self._last_scan.get(scanner_key)
            if last and last[0] == payload and now - last[1] < self.window:
                return False
            self._last_scan[scanner_key] = (payload, now)
            return True


def get_scan_debouncer() -> ScanDebouncer:
    return current_app.extensions["scan_debouncer"]


class AttendanceService:
    @staticmethod
    def _ensure_open(event):
        if event.status not in ATTENDANCE_OPEN_STATUSES:
            raise ValidationError(
                f"Attendance can only be taken for approved events (status: {event.status.value})"
            )

    @staticmethod
    def set_attendance(registration_id: int, present: bool, actor_id: int):
        """Marks a registration attended (with a check-in time) or back to registered.

        A single conditional UPDATE decides whether the row transitions, so two
        organizers toggling the same registration cannot double-award points.
        """
        registration, event, _ = RegistrationService.get_registration_for_manager(
            registration_id, actor_id
        )
        AttendanceService._ensure_open(event)
        return AttendanceService._apply(registration.id, registration.user_id, present)

    @staticmethod
    def _apply(registration_id: int, user_id: int, present: bool):
        points = current_app.config["ATTENDANCE_POINTS"]
        with atomic("Update attendance"):
            if present:
                changed = EventRegistrationRepository.mark_attended(registration_id, utcnow())
            else:
                changed = EventRegistrationRepository.mark_absent(registration_id)
            if changed:
                UserRepository.add_points(user_id, points if present else -points)

        current_app.logger.info(
            f"Attendance for registration {registration_id} set to "
            f"{'present' if present else 'absent'} (changed={changed})"
        )
        return EventRegistrationRepository.find_by_id(registration_id), changed

    @staticmethod
    def check_in(event_id: int, raw_payload, actor_id: int):
        """Checks a registrant in from a scanned QR payload.

        Returns (result, registration) where result is ``checked_in`` or
        ``already_checked_in``. Scanning the same code again changes nothing.
        """
        payload = decode_payload(raw_payload)
        event, _ = EventService.require_manager(event_id, actor_id)
        AttendanceService._ensure_open(event)

        if payload.event_id != str(event_id):
            current_app.logger.warning(
                f"QR for event {payload.event_id} scanned at event {event_id}"
            )
            raise WrongEvent("QR code is for a different event")

        try:
            user_id = int(payload.user_id)
        except ValueError:
            raise UnknownRegistrant("Registration not found for this user")
        registration = EventRegistrationRepository.find_by_event_and_user(event_id, user_id)
        if not registration:
            raise UnknownRegistrant("Registration not found for this user")

        if registration.status == RegistrationStatus.ATTENDED:
            return ALREADY_CHECKED_IN, registration

        registration, changed = AttendanceService._apply(registration.id, user_id, True)
        return (CHECKED_IN if changed else ALREADY_CHECKED_IN), registration

    @staticmethod
    def attendance_summary(event_id: int, actor_id: int, search: str = None):
        registrations = RegistrationService.list_registrations(event_id, actor_id)
        total = len(registrations)
        present = len([r for r in registrations if r.status == RegistrationStatus.ATTENDED])
        if search:
            registrations = EventRegistrationRepository.find_by_event(event_id, search)
        return {
            "total": total,
            "present": present,
            "absent": total - present,
            "registrations": [r.to_dict() for r in registrations],
        }
