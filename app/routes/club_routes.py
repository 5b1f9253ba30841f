from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from flask_cors import cross_origin
from app.routes import current_user_id
from app.services import ClubService

club_bp = Blueprint("club", __name__)


@club_bp.route("/clubs", methods=["GET"])
def get_clubs():
    return jsonify({"clubs": [club.to_dict() for club in ClubService.get_clubs()]}), 200


@club_bp.route("/clubs", methods=["POST", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def create_club():
    if request.method == "OPTIONS":
        return "", 204

    data = request.get_json()
    if not data:
        return jsonify({"error": "No data provided"}), 400

    club = ClubService.create_club(data, current_user_id())
    return jsonify({"club": club.to_dict()}), 201


@club_bp.route("/clubs/<int:club_id>", methods=["GET"])
def get_club(club_id):
    return jsonify({"club": ClubService.get_club(club_id).to_dict()}), 200


@club_bp.route("/clubs/<int:club_id>/join", methods=["POST"])
@jwt_required()
def join_club(club_id):
    club = ClubService.join_club(club_id, current_user_id())
    return jsonify({"message": f"Joined {club.name}", "club": club.to_dict()}), 200


@club_bp.route("/clubs/<int:club_id>/leave", methods=["POST"])
@jwt_required()
def leave_club(club_id):
    club = ClubService.leave_club(club_id, current_user_id())
    return jsonify({"message": f"Left {club.name}", "club": club.to_dict()}), 200
