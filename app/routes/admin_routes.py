from flask import Blueprint, jsonify, request, current_app
from flask_jwt_extended import jwt_required
from flask_cors import cross_origin
from app.routes import current_user_id
from app.services import OutboxService, UserService

admin_bp = Blueprint("admin", __name__)


@admin_bp.route("/admin/check", methods=["GET"])
@jwt_required()
def check_admin():
    user = UserService.require_admin(current_user_id())
    return jsonify({"is_admin": True, "user": user.to_dict()}), 200


@admin_bp.route("/admin/users", methods=["GET", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def get_users():
    if request.method == "OPTIONS":
        return "", 204

    users = UserService.get_users(current_user_id(), role=request.args.get("role"))
    return jsonify({"users": [user.to_dict() for user in users]}), 200


def _set_account_status(user_id, approved):
    user, delivery = UserService.set_account_status(user_id, approved, current_user_id())
    return (
        jsonify(
            {
                "message": f"Account {user.status.value}",
                "user": user.to_dict(),
                "notifications": OutboxService.summarize(delivery),
            }
        ),
        200,
    )


@admin_bp.route("/admin/users/<int:user_id>/approve", methods=["POST", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def approve_user(user_id):
    if request.method == "OPTIONS":
        return "", 204
    return _set_account_status(user_id, True)


@admin_bp.route("/admin/users/<int:user_id>/reject", methods=["POST", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def reject_user(user_id):
    if request.method == "OPTIONS":
        return "", 204
    return _set_account_status(user_id, False)


@admin_bp.route("/admin/users/<int:user_id>", methods=["DELETE", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def delete_user(user_id):
    if request.method == "OPTIONS":
        return "", 204

    UserService.delete_user(user_id, current_user_id())
    return jsonify({"message": "User deleted successfully"}), 200


@admin_bp.route("/admin/outbox/retry", methods=["POST"])
@jwt_required()
def retry_outbox():
    admin = UserService.require_admin(current_user_id())
    report = OutboxService.retry_undelivered()
    current_app.logger.info(f"Admin {admin.id} retried {len(report)} notification(s)")
    return jsonify(OutboxService.summarize(report)), 200
