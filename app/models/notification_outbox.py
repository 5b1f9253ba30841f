from app.extensions import db
from app.utils.dates import isoformat
from .enums import OutboxKind, OutboxStatus


class OutboxMessage(db.Model):
    """An email waiting to go out once the transaction that produced it commits."""

    __tablename__ = "notification_outbox"

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.Enum(OutboxKind), nullable=False)
    payload = db.Column(db.JSON, nullable=False)
    status = db.Column(db.Enum(OutboxStatus), nullable=False, default=OutboxStatus.PENDING)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    last_error = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )
    sent_at = db.Column(db.TIMESTAMP(timezone=True), nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "kind": self.kind.value,
            "status": self.status.value,
            "attempts": self.attempts,
            "last_error": self.last_error,
            "created_at": isoformat(self.created_at),
            "sent_at": isoformat(self.sent_at),
        }

    def __repr__(self):
        return f"<OutboxMessage id={self.id} kind={self.kind} status={self.status}>"
