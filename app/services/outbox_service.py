from typing import List
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from app.extensions import db
from app.exceptions import NotificationDeliveryError
from app.models import OutboxMessage
from app.models.enums import OutboxKind, OutboxStatus
from app.repositories import OutboxRepository
from app.utils import email
from app.utils.dates import utcnow


def _send_payment_verified(payload):
    email.send_payment_verified_email(
        payload["email"], payload["name"], payload["event_name"], payload["event_id"]
    )


def _send_payment_rejected(payload):
    email.send_payment_rejected_email(
        payload["email"],
        payload["name"],
        payload["event_name"],
        payload["reason"],
        payload.get("organizer_contact"),
    )


def _send_event_announcement(payload):
    email.send_event_announcement(payload["event"], payload["recipients"])


def _send_account_status(payload):
    email.send_account_status_email(payload["email"], payload["name"], payload["approved"])


SENDERS = {
    OutboxKind.PAYMENT_VERIFIED: _send_payment_verified,
    OutboxKind.PAYMENT_REJECTED: _send_payment_rejected,
    OutboxKind.EVENT_ANNOUNCEMENT: _send_event_announcement,
    OutboxKind.ACCOUNT_STATUS: _send_account_status,
}


class OutboxService:
    @staticmethod
    def enqueue(kind: OutboxKind, payload: dict) -> OutboxMessage:
        """Stages an email in the caller's transaction. Nothing is sent until dispatch."""
        return OutboxRepository.add(kind, payload)

    @staticmethod
    def dispatch(messages: List[OutboxMessage]) -> List[dict]:
        """Sends already committed outbox messages.

        Delivery failures are recorded on the message and reported back, never
        raised: the data change that produced the email is already committed.
        """
        report = []
        for message in messages:
            message.attempts = (message.attempts or 0) + 1
            try:
                SENDERS[message.kind](message.payload)
                message.status = OutboxStatus.SENT
                message.sent_at = utcnow()
                message.last_error = None
                report.append({"id": message.id, "kind": message.kind.value, "delivered": True})
            except NotificationDeliveryError as e:
                message.status = OutboxStatus.FAILED
                message.last_error = str(e)
                current_app.logger.error(
                    f"Notification {message.id} ({message.kind.value}) not delivered: {e}"
                )
                report.append(
                    {
                        "id": message.id,
                        "kind": message.kind.value,
                        "delivered": False,
                        "error": str(e),
                    }
                )
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Could not record outbox delivery status: {e}")
        return report

    @staticmethod
    def retry_undelivered() -> List[dict]:
        messages = OutboxRepository.find_undelivered(include_failed=True)
        current_app.logger.info(f"Retrying {len(messages)} undelivered notification(s)")
        return OutboxService.dispatch(messages)

    @staticmethod
    def summarize(report: List[dict]) -> dict:
        failed = [r for r in report if not r["delivered"]]
        return {
            "sent": len(report) - len(failed),
            "failed": len(failed),
            "errors": [r["error"] for r in failed],
        }
