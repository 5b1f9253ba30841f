from datetime import timedelta
from itertools import count

import pytest
from flask_jwt_extended import create_access_token
from werkzeug.security import generate_password_hash

from app import create_app
from app.extensions import db
from app.models import Event, EventRegistration, User
from app.models.enums import (
    AccountStatus,
    EventStatus,
    EventType,
    OrganizerType,
    PaymentStatus,
    RegistrationStatus,
    UserRole,
)
from app.utils.dates import utcnow

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "JWT_SECRET_KEY": "test-secret-key-that-is-long-enough-for-hs256",
    "RATELIMIT_ENABLED": False,
    "MAIL_SUPPRESS_SEND": True,
    "MAIL_DEFAULT_SENDER": "EventSync <noreply@eventsync.test>",
    "CLIENT_URL": "http://localhost:5173",
}

_sequence = count(1)


@pytest.fixture
def app():
    app = create_app(TEST_CONFIG)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make_user(role=UserRole.STUDENT, status=AccountStatus.APPROVED, **attrs):
        n = next(_sequence)
        user = User(
            name=attrs.pop("name", f"User {n}"),
            email=attrs.pop("email", f"user{n}@campus.test"),
            password=generate_password_hash(attrs.pop("password", "secret123")),
            role=role,
            status=status,
            **attrs,
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user(role=UserRole.ADMIN, name="Admin")


@pytest.fixture
def organizer(make_user):
    return make_user(role=UserRole.CLUB, name="Coding Club")


@pytest.fixture
def student(make_user):
    return make_user(name="Student One", department="CSE")


@pytest.fixture
def make_event(app, organizer):
    def _make_event(**attrs):
        now = utcnow()
        defaults = {
            "title": f"Event {next(_sequence)}",
            "location": "Main Hall",
            "start_date": now + timedelta(days=7),
            "end_date": now + timedelta(days=7, hours=3),
            "registration_start_date": now - timedelta(days=1),
            "registration_deadline": now + timedelta(days=6),
            "capacity": None,
            "registered_count": 0,
            "status": EventStatus.APPROVED,
            "event_type": EventType.FREE,
            "created_by": organizer.id,
            "organizer_id": organizer.id,
            "organizer_name": organizer.name,
            "organizer_type": OrganizerType.CLUB,
            "tags": [],
        }
        defaults.update(attrs)
        event = Event(**defaults)
        db.session.add(event)
        db.session.commit()
        return event

    return _make_event


@pytest.fixture
def paid_event(make_event):
    return make_event(event_type=EventType.PAID, event_fee=100, upi_id="codingclub@upi")


@pytest.fixture
def make_registration(app):
    """Inserts a registration row directly, bypassing the workflow and the counter."""

    def _make_registration(event, user, **attrs):
        registration = EventRegistration(
            event_id=event.id,
            user_id=user.id,
            status=attrs.pop("status", RegistrationStatus.REGISTERED),
            name=user.name,
            **attrs,
        )
        db.session.add(registration)
        db.session.commit()
        return registration

    return _make_registration


@pytest.fixture
def proof():
    return {"transaction_id": "UPI123456", "transaction_image": "https://img.test/proof.png"}


@pytest.fixture
def pending_payment(paid_event, student, proof):
    from app.services import RegistrationService

    registration = RegistrationService.register(paid_event.id, student.id, proof=proof)
    assert registration.payment_status == PaymentStatus.PENDING
    return registration


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user):
        token = create_access_token(identity=str(user.id))
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
