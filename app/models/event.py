from app.extensions import db
from app.utils.dates import ensure_utc, isoformat
from .enums import EventStatus, EventType, OrganizerType


class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    location = db.Column(db.String(255), nullable=False)
    start_date = db.Column(db.TIMESTAMP(timezone=True), nullable=False)
    end_date = db.Column(db.TIMESTAMP(timezone=True), nullable=False)
    registration_start_date = db.Column(db.TIMESTAMP(timezone=True), nullable=True)
    registration_deadline = db.Column(db.TIMESTAMP(timezone=True), nullable=True)
    capacity = db.Column(db.Integer, nullable=True)
    registered_count = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.Enum(EventStatus), nullable=False, default=EventStatus.PENDING)
    event_type = db.Column(db.Enum(EventType), nullable=False, default=EventType.FREE)
    event_fee = db.Column(db.DECIMAL(10, 2), nullable=True)
    upi_id = db.Column(db.String(120), nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    organizer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    organizer_name = db.Column(db.String(255), nullable=False)
    organizer_type = db.Column(db.Enum(OrganizerType), nullable=False)
    club_id = db.Column(db.Integer, db.ForeignKey("clubs.id"), nullable=True)
    image = db.Column(db.String(512), nullable=True)
    tags = db.Column(db.JSON, nullable=False, default=list)
    president_phone = db.Column(db.String(20), nullable=True)
    vice_president_phone = db.Column(db.String(20), nullable=True)
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )
    updated_at = db.Column(
        db.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    registrations = db.relationship(
        "EventRegistration",
        back_populates="event",
        cascade="all, delete-orphan",
    )

    @property
    def is_paid(self):
        return self.event_type == EventType.PAID

    @property
    def seats_left(self):
        if self.capacity is None:
            return None
        return max(self.capacity - (self.registered_count or 0), 0)

    def registration_closed_reason(self, now):
        """Returns why the registration window is closed at ``now``, or None."""
        opens = ensure_utc(self.registration_start_date)
        closes = ensure_utc(self.registration_deadline)
        if opens and now < opens:
            return "Registration has not opened yet"
        if closes and now > closes:
            return "Registration deadline has passed"
        return None

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "start_date": isoformat(self.start_date),
            "end_date": isoformat(self.end_date),
            "registration_start_date": isoformat(self.registration_start_date),
            "registration_deadline": isoformat(self.registration_deadline),
            "capacity": self.capacity,
            "registered_count": self.registered_count,
            "seats_left": self.seats_left,
            "status": self.status.value if self.status else None,
            "event_type": self.event_type.value if self.event_type else None,
            "event_fee": str(self.event_fee) if self.event_fee is not None else None,
            "upi_id": self.upi_id,
            "created_by": self.created_by,
            "organizer_id": self.organizer_id,
            "organizer_name": self.organizer_name,
            "organizer_type": self.organizer_type.value if self.organizer_type else None,
            "club_id": self.club_id,
            "image": self.image,
            "tags": self.tags or [],
            "president_phone": self.president_phone,
            "vice_president_phone": self.vice_president_phone,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def __repr__(self):
        return (
            f"Event("
            f"id={self.id}, "
            f"title='{self.title}', "
            f"status={self.status}, "
            f"registered_count={self.registered_count}, "
            f"capacity={self.capacity}"
            f")"
        )
