from app.extensions import db
from app.utils.dates import isoformat
from .enums import PaymentStatus, RegistrationStatus


class EventRegistration(db.Model):
    __tablename__ = "event_registrations"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(
        db.Integer, db.ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    status = db.Column(
        db.Enum(RegistrationStatus),
        nullable=False,
        default=RegistrationStatus.REGISTERED,
    )
    registered_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )
    checked_in_at = db.Column(db.TIMESTAMP(timezone=True), nullable=True)

    # Details the registrant fills in on the event page
    reg_no = db.Column(db.String(50), nullable=True)
    name = db.Column(db.String(120), nullable=True)
    branch = db.Column(db.String(120), nullable=True)
    department = db.Column(db.String(120), nullable=True)
    phone = db.Column(db.String(20), nullable=True)

    # Paid events only
    transaction_id = db.Column(db.String(120), nullable=True)
    transaction_image = db.Column(db.String(512), nullable=True)
    payment_status = db.Column(db.Enum(PaymentStatus), nullable=True)

    event = db.relationship("Event", back_populates="registrations")
    user = db.relationship("User")

    __table_args__ = (
        db.UniqueConstraint("event_id", "user_id", name="uq_event_user_registration"),
    )

    @property
    def is_attended(self):
        return self.status == RegistrationStatus.ATTENDED

    def to_dict(self):
        return {
            "id": self.id,
            "event_id": self.event_id,
            "user_id": self.user_id,
            "status": self.status.value if self.status else None,
            "registered_at": isoformat(self.registered_at),
            "checked_in_at": isoformat(self.checked_in_at),
            "reg_no": self.reg_no,
            "name": self.name,
            "branch": self.branch,
            "department": self.department,
            "phone": self.phone,
            "transaction_id": self.transaction_id,
            "transaction_image": self.transaction_image,
            "payment_status": self.payment_status.value if self.payment_status else None,
        }

    def __repr__(self):
        return (
            f"EventRegistration("
            f"id={self.id}, "
            f"event_id={self.event_id}, "
            f"user_id={self.user_id}, "
            f"status={self.status}, "
            f"payment_status={self.payment_status}, "
            f"checked_in_at={self.checked_in_at}"
            f")"
        )
