import queue
from flask import Blueprint, Response, jsonify, request, current_app, stream_with_context
from flask_jwt_extended import jwt_required, verify_jwt_in_request
from flask_cors import cross_origin
from app.routes import current_user_id
from app.services import EventService, LeaderboardService, OutboxService
from app.sse_utils import get_event_feed

event_bp = Blueprint("event", __name__)

SSE_KEEPALIVE_SECONDS = 25


@event_bp.route("/events", methods=["GET", "OPTIONS"])
@cross_origin(supports_credentials=True)
def get_all_events():
    if request.method == "OPTIONS":
        return "", 204

    verify_jwt_in_request(optional=True)
    user_id = current_user_id()

    events = EventService.get_events(user_id=user_id, status=request.args.get("status"))
    response_data = {"events": [event.to_dict() for event in events]}

    if user_id:
        registered = EventService.get_registered_events(user_id)
        response_data["registered_event_ids"] = [event.id for event in registered]

    return jsonify(response_data), 200


@event_bp.route("/events", methods=["POST", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def create_event():
    if request.method == "OPTIONS":
        return "", 204

    data = request.get_json()
    if not data:
        return jsonify({"error": "No data provided"}), 400

    event, delivery = EventService.create_event(data, current_user_id())
    return (
        jsonify({"event": event.to_dict(), "notifications": OutboxService.summarize(delivery)}),
        201,
    )


@event_bp.route("/events/registered", methods=["GET"])
@jwt_required()
def get_registered_events():
    events = EventService.get_registered_events(current_user_id())
    return jsonify({"events": [event.to_dict() for event in events]}), 200


@event_bp.route("/events/<int:event_id>", methods=["GET", "OPTIONS"])
@cross_origin(supports_credentials=True)
def get_event(event_id):
    if request.method == "OPTIONS":
        return "", 204

    event = EventService.get_event(event_id)
    return jsonify(event.to_dict()), 200


@event_bp.route("/events/<int:event_id>", methods=["PUT", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def update_event(event_id):
    if request.method == "OPTIONS":
        return "", 204

    data = request.get_json()
    if not data:
        return jsonify({"error": "No data provided"}), 400

    event = EventService.update_event(event_id, data, current_user_id())
    return jsonify(event.to_dict()), 200


@event_bp.route("/events/<int:event_id>", methods=["DELETE", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def delete_event(event_id):
    if request.method == "OPTIONS":
        return "", 204

    EventService.delete_event(event_id, current_user_id())
    return jsonify({"message": "Event deleted successfully"}), 200


@event_bp.route("/events/<int:event_id>/approve", methods=["POST", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def approve_event(event_id):
    if request.method == "OPTIONS":
        return "", 204

    event, delivery = EventService.approve_event(event_id, current_user_id())
    return (
        jsonify({"event": event.to_dict(), "notifications": OutboxService.summarize(delivery)}),
        200,
    )


@event_bp.route("/events/<int:event_id>/reject", methods=["POST", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def reject_event(event_id):
    if request.method == "OPTIONS":
        return "", 204

    event = EventService.reject_event(event_id, current_user_id())
    return jsonify({"event": event.to_dict()}), 200


@event_bp.route("/events/stream")
def stream_events():
    """Server-Sent Events feed of event changes."""
    feed = get_event_feed()
    messages, unsubscribe = feed.listen()
    current_app.logger.info(f"SSE client connected. Listeners: {feed.subscriber_count}")

    def generate():
        try:
            while True:
                try:
                    yield messages.get(timeout=SSE_KEEPALIVE_SECONDS)
                except queue.Empty:
                    yield ": keepalive\n\n"
        finally:
            unsubscribe()

    return Response(
        stream_with_context(generate()),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@event_bp.route("/leaderboard", methods=["GET"])
def get_leaderboard():
    return jsonify(LeaderboardService.get_leaderboards()), 200
