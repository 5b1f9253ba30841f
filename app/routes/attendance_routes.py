from flask import Blueprint, jsonify, request, current_app
from flask_jwt_extended import jwt_required
from flask_cors import cross_origin
from app.exceptions import MissingFieldsError
from app.routes import current_user_id
from app.services import AttendanceService
from app.services.attendance_service import get_scan_debouncer

attendance_bp = Blueprint("attendance", __name__)


@attendance_bp.route("/registrations/<int:registration_id>/attendance", methods=["PUT", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def set_attendance(registration_id):
    if request.method == "OPTIONS":
        return "", 204

    data = request.get_json(silent=True) or {}
    if "present" not in data:
        raise MissingFieldsError(["present"])

    registration, changed = AttendanceService.set_attendance(
        registration_id, bool(data["present"]), current_user_id()
    )
    return jsonify({"registration": registration.to_dict(), "changed": changed}), 200


@attendance_bp.route("/events/<int:event_id>/check-in", methods=["POST", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def scan_check_in(event_id):
    """Checks in the holder of a scanned QR code.

    The scanner repeats the same decode many times a second; repeats from the
    same organizer inside the debounce window are answered with ``ignored``.
    """
    if request.method == "OPTIONS":
        return "", 204

    data = request.get_json(silent=True) or {}
    raw_payload = data.get("payload")
    if not raw_payload:
        raise MissingFieldsError(["payload"])

    scanner_key = (current_user_id(), event_id)
    if not get_scan_debouncer().should_process(scanner_key, str(raw_payload)):
        current_app.logger.info(f"Ignoring repeated scan at event {event_id}")
        return jsonify({"status": "ignored"}), 200

    result, registration = AttendanceService.check_in(event_id, raw_payload, current_user_id())
    return jsonify({"status": result, "registration": registration.to_dict()}), 200


@attendance_bp.route("/events/<int:event_id>/attendance", methods=["GET", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def get_attendance(event_id):
    if request.method == "OPTIONS":
        return "", 204

    summary = AttendanceService.attendance_summary(
        event_id, current_user_id(), search=request.args.get("search")
    )
    return jsonify(summary), 200
