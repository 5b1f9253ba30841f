from flask import Blueprint, Response, jsonify, request, current_app
from flask_jwt_extended import jwt_required
from flask_cors import cross_origin
from app.extensions import limiter
from app.routes import current_user_id
from app.services import RegistrationService
from app.services.registration_service import DETAIL_FIELDS
from app.utils.qr import render_png

registration_bp = Blueprint("registration", __name__)


@registration_bp.route("/events/<int:event_id>/register", methods=["POST", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
@limiter.limit("30 per minute")
def register_for_event(event_id):
    if request.method == "OPTIONS":
        return "", 204

    data = request.get_json(silent=True) or {}
    proof = {
        "transaction_id": data.get("transaction_id"),
        "transaction_image": data.get("transaction_image"),
    }
    details = {field: data.get(field) for field in DETAIL_FIELDS}

    registration = RegistrationService.register(
        event_id, current_user_id(), proof=proof, details=details
    )
    return (
        jsonify(
            {
                "message": "Successfully registered for event",
                "registration": registration.to_dict(),
            }
        ),
        201,
    )


@registration_bp.route("/events/<int:event_id>/register", methods=["DELETE"])
@cross_origin(supports_credentials=True)
@jwt_required()
def cancel_registration(event_id):
    removed = RegistrationService.cancel(event_id, current_user_id())
    return jsonify({"message": "Registration cancelled", "removed": removed}), 200


@registration_bp.route("/events/<int:event_id>/registration", methods=["GET"])
@jwt_required()
def get_my_registration(event_id):
    registration = RegistrationService.get_registration(event_id, current_user_id())
    return jsonify({"registration": registration.to_dict()}), 200


@registration_bp.route("/events/<int:event_id>/registration/qr", methods=["GET"])
@jwt_required()
def get_check_in_qr(event_id):
    """The check-in QR code. ``?format=png`` returns the rendered image."""
    payload = RegistrationService.get_check_in_credential(event_id, current_user_id())
    if request.args.get("format") == "png":
        current_app.logger.info(f"Rendering check-in QR for user {current_user_id()}, event {event_id}")
        return Response(render_png(payload), mimetype="image/png")
    return jsonify({"payload": payload}), 200


@registration_bp.route("/events/<int:event_id>/registrations", methods=["GET", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def get_event_registrations(event_id):
    if request.method == "OPTIONS":
        return "", 204

    registrations = RegistrationService.list_registrations(
        event_id, current_user_id(), search=request.args.get("search")
    )
    return jsonify({"registrations": [r.to_dict() for r in registrations]}), 200
