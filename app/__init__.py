from flask import Flask, jsonify
from flask_cors import CORS
from dotenv import load_dotenv
import os
from app.extensions import db, migrate, jwt, limiter
from app.exceptions import (
    InvalidPayload,
    MissingFieldsError,
    NotFoundError,
    RegistrationDenied,
    TransientStoreError,
    UnauthorizedError,
    UnknownRegistrant,
    ValidationError,
    WrongEvent,
)
from app.sse_utils import EventFeed
from app.utils.email import mail
from datetime import timedelta
import logging

# Load environment variables
load_dotenv()


def _env_flag(name, default):
    return os.getenv(name, default).lower() in ["true", "1", "t"]


def create_app(config_overrides=None):
    app = Flask(__name__)

    # Set testing mode from environment variable
    app.config["TESTING"] = os.getenv("FLASK_ENV") == "testing"

    # Configure logging
    logging.basicConfig(level=logging.INFO)
    app.logger.setLevel(logging.INFO)

    # Configure database
    app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv(
        "DATABASE_URL", "postgresql://localhost/eventsync"
    )
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    # Configure JWT
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET_KEY", "your-secret-key")
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(days=1)
    app.config["JWT_TOKEN_LOCATION"] = ["headers"]
    app.config["JWT_HEADER_NAME"] = "Authorization"
    app.config["JWT_HEADER_TYPE"] = "Bearer"

    # Email configuration
    app.config["MAIL_SERVER"] = os.getenv("MAIL_SERVER", "localhost")
    app.config["MAIL_PORT"] = int(os.getenv("MAIL_PORT", 587))
    app.config["MAIL_USE_TLS"] = _env_flag("MAIL_USE_TLS", "true")
    app.config["MAIL_USERNAME"] = os.getenv("MAIL_USERNAME")
    app.config["MAIL_PASSWORD"] = os.getenv("MAIL_PASSWORD")
    app.config["MAIL_DEFAULT_SENDER"] = os.getenv(
        "MAIL_DEFAULT_SENDER", "EventSync <noreply@eventsync.local>"
    )
    app.config["CLIENT_URL"] = os.getenv("CLIENT_URL", "http://localhost:5173")

    # Rate limiting
    app.config["RATELIMIT_STORAGE_URI"] = os.getenv("RATELIMIT_STORAGE_URI", "memory://")

    # Workflow settings
    app.config["QR_SCAN_DEBOUNCE_SECONDS"] = float(os.getenv("QR_SCAN_DEBOUNCE_SECONDS", 3))
    app.config["ATTENDANCE_POINTS"] = int(os.getenv("ATTENDANCE_POINTS", 3))
    app.config["EVENT_CREATION_POINTS"] = int(os.getenv("EVENT_CREATION_POINTS", 5))

    if config_overrides:
        app.config.update(config_overrides)

    # Initialize Flask extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)
    limiter.init_app(app)

    # Per-application collaborators
    from app.services.attendance_service import ScanDebouncer

    app.extensions["event_feed"] = EventFeed()
    app.extensions["scan_debouncer"] = ScanDebouncer(app.config["QR_SCAN_DEBOUNCE_SECONDS"])

    # Register blueprints
    from app.routes.user_routes import user_bp
    from app.routes.admin_routes import admin_bp
    from app.routes.event_routes import event_bp
    from app.routes.registration_routes import registration_bp
    from app.routes.payment_routes import payment_bp
    from app.routes.attendance_routes import attendance_bp
    from app.routes.club_routes import club_bp
    from app.routes.notification_routes import notification_bp

    app.register_blueprint(user_bp, url_prefix="/api/user")
    app.register_blueprint(admin_bp, url_prefix="/api")
    app.register_blueprint(event_bp, url_prefix="/api")
    app.register_blueprint(registration_bp, url_prefix="/api")
    app.register_blueprint(payment_bp, url_prefix="/api")
    app.register_blueprint(attendance_bp, url_prefix="/api")
    app.register_blueprint(club_bp, url_prefix="/api")
    app.register_blueprint(notification_bp, url_prefix="/api")

    register_error_handlers(app)

    from app.cli import outbox_cli

    app.cli.add_command(outbox_cli)

    # Set up CORS
    cors_origins = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173",
    ).split(",")
    app.logger.info(f"Initializing CORS with origins: {cors_origins}")

    CORS(
        app,
        resources={
            r"/api/*": {"origins": cors_origins},
        },
        supports_credentials=True,
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
        expose_headers=["Content-Type"],
    )

    return app


def register_error_handlers(app):
    def error_response(status_code):
        def handler(e):
            app.logger.info(f"{type(e).__name__}: {e}")
            return jsonify({"error": str(e), "type": type(e).__name__}), status_code

        return handler

    @app.errorhandler(MissingFieldsError)
    def handle_missing_fields(e):
        return jsonify({"error": str(e), "missing_fields": e.fields}), 400

    @app.errorhandler(TransientStoreError)
    def handle_transient_store_error(e):
        app.logger.error(f"Transient store error: {e}")
        return jsonify({"error": str(e), "retryable": True}), 503

    # Handlers resolve along the MRO, so MissingProofError maps to 400 via ValidationError
    app.register_error_handler(ValidationError, error_response(400))
    app.register_error_handler(InvalidPayload, error_response(400))
    app.register_error_handler(UnauthorizedError, error_response(403))
    app.register_error_handler(NotFoundError, error_response(404))
    app.register_error_handler(UnknownRegistrant, error_response(404))
    app.register_error_handler(RegistrationDenied, error_response(409))
    app.register_error_handler(WrongEvent, error_response(409))
