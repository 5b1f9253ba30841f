from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from flask_cors import cross_origin
from app.routes import current_user_id
from app.services import OutboxService, PaymentService

payment_bp = Blueprint("payment", __name__)


@payment_bp.route("/events/<int:event_id>/payments/pending", methods=["GET", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def get_pending_payments(event_id):
    if request.method == "OPTIONS":
        return "", 204

    registrations = PaymentService.pending_payments(event_id, current_user_id())
    return jsonify({"registrations": [r.to_dict() for r in registrations]}), 200


@payment_bp.route("/registrations/<int:registration_id>/payment/verify", methods=["POST", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def verify_payment(registration_id):
    if request.method == "OPTIONS":
        return "", 204

    registration, delivery = PaymentService.verify(registration_id, current_user_id())
    return (
        jsonify(
            {
                "message": "Payment verified",
                "registration": registration.to_dict(),
                "notifications": OutboxService.summarize(delivery),
            }
        ),
        200,
    )


@payment_bp.route("/registrations/<int:registration_id>/payment/reject", methods=["POST", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def reject_payment(registration_id):
    if request.method == "OPTIONS":
        return "", 204

    data = request.get_json(silent=True) or {}
    removed, delivery = PaymentService.reject(
        registration_id, data.get("reason"), current_user_id()
    )
    return (
        jsonify(
            {
                "message": "Payment rejected and registration removed",
                "removed": removed,
                "notifications": OutboxService.summarize(delivery),
            }
        ),
        200,
    )
