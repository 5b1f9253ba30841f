from flask import Blueprint, request, jsonify, make_response, current_app
from app.services import UserService
from app.routes import current_user_id
from app.extensions import limiter
from flask_jwt_extended import jwt_required

user_bp = Blueprint("user", __name__)


@user_bp.route("/signup", methods=["POST"])
@limiter.limit("20 per hour")
def sign_up():
    try:
        user_data = request.get_json()
        if not user_data:
            return jsonify({"error": "No data provided"}), 400

        required_fields = ["name", "email", "password"]
        missing_fields = [field for field in required_fields if not user_data.get(field)]

        if missing_fields:
            return (
                jsonify(
                    {
                        "error": "Missing required fields",
                        "missing_fields": missing_fields,
                    }
                ),
                400,
            )

        result = UserService.sign_up(user_data)
        return make_response(jsonify(result), 201)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400


@user_bp.route("/signin", methods=["POST", "OPTIONS"])
@limiter.limit("30 per minute")
def sign_in():
    if request.method == "OPTIONS":
        response = make_response()
        response.headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    try:
        user_data = request.get_json()
        if not user_data:
            return jsonify({"error": "No data provided"}), 400

        required_fields = ["email", "password"]
        missing_fields = [field for field in required_fields if field not in user_data]

        if missing_fields:
            return (
                jsonify(
                    {
                        "error": "Missing required fields",
                        "missing_fields": missing_fields,
                    }
                ),
                400,
            )

        result = UserService.sign_in(user_data["email"], user_data["password"])
        return make_response(jsonify(result), 200)
    except ValueError as e:
        current_app.logger.info(f"Sign in refused: {e}")
        return jsonify({"error": str(e)}), 401


@user_bp.route("/me", methods=["GET"])
@jwt_required()
def get_current_user():
    user = UserService.get_user(current_user_id())
    return jsonify({"user": user.to_dict()}), 200
