from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from app.routes import current_user_id
from app.services import NotificationService

notification_bp = Blueprint("notification", __name__)


@notification_bp.route("/notifications", methods=["GET"])
@jwt_required()
def get_notifications():
    return jsonify(NotificationService.get_notifications(current_user_id())), 200


@notification_bp.route("/notifications/<int:notification_id>/read", methods=["PUT"])
@jwt_required()
def mark_as_read(notification_id):
    notification = NotificationService.mark_as_read(notification_id, current_user_id())
    return jsonify({"notification": notification.to_dict()}), 200


@notification_bp.route("/notifications/read-all", methods=["PUT"])
@jwt_required()
def mark_all_as_read():
    updated = NotificationService.mark_all_as_read(current_user_id())
    return jsonify({"updated": updated}), 200


@notification_bp.route("/notifications/<int:notification_id>", methods=["DELETE"])
@jwt_required()
def delete_notification(notification_id):
    NotificationService.delete_notification(notification_id, current_user_id())
    return jsonify({"message": "Notification deleted"}), 200
