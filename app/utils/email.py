from datetime import datetime
from flask import current_app, render_template
from flask_mail import Message, Mail
from app.exceptions import NotificationDeliveryError
from app.utils.dates import parse_iso

mail = Mail()


def _event_url(event_id):
    return f"{current_app.config.get('CLIENT_URL')}/events/{event_id}"


def _format_datetime(value):
    if not value:
        return "TBA"
    if not isinstance(value, datetime):
        value = parse_iso(value)
    return value.strftime("%A, %B %d, %Y at %I:%M %p UTC")


def _deliver(msg: Message):
    app = current_app._get_current_object()

    if app.config.get("MAIL_SUPPRESS_SEND"):
        app.logger.info("--- MOCK EMAIL ---")
        app.logger.info(f"To: {', '.join(msg.recipients or [])}")
        app.logger.info(f"Bcc: {len(msg.bcc or [])} recipient(s)")
        app.logger.info(f"Subject: {msg.subject}")
        app.logger.info("--- END MOCK EMAIL ---")

    try:
        mail.send(msg)
    except Exception as e:
        app.logger.error(f"Failed to send email '{msg.subject}': {e}")
        raise NotificationDeliveryError(str(e)) from e


def send_payment_verified_email(email, name, event_name, event_id):
    event_url = _event_url(event_id)
    msg = Message(
        f"Payment Verified for {event_name}",
        sender=current_app.config.get("MAIL_DEFAULT_SENDER"),
        recipients=[email],
    )
    msg.body = (
        f"Hello {name},\n\n"
        f'Your payment for "{event_name}" has been verified. '
        f"You can now get your QR code from the event page: {event_url}\n\n"
        "See you there!"
    )
    msg.html = render_template(
        "email/payment_verified.html",
        name=name,
        event_name=event_name,
        event_url=event_url,
    )
    _deliver(msg)


def send_payment_rejected_email(email, name, event_name, reason, organizer_contact=None):
    reason_text = reason or "Please check your transaction details and try again."
    msg = Message(
        f"Payment Rejected for {event_name}",
        sender=current_app.config.get("MAIL_DEFAULT_SENDER"),
        recipients=[email],
    )
    msg.body = (
        f"Hello {name},\n\n"
        f'We regret to inform you that your payment for the event "{event_name}" has been rejected.\n\n'
        f"Reason: {reason_text}\n\n"
        "If you believe this is a mistake, please reach out to the event organizers."
    )
    if organizer_contact:
        msg.body += (
            f"\n\nPresident: {organizer_contact.get('president') or 'Not specified'}"
            f"\nPhone: {organizer_contact.get('phone_no') or 'Not specified'}"
        )
    msg.html = render_template(
        "email/payment_rejected.html",
        name=name,
        event_name=event_name,
        reason=reason_text,
        organizer_contact=organizer_contact,
    )
    _deliver(msg)


def send_event_announcement(event, recipients):
    """Announces ``event`` (a serialized event dict) to every address in ``recipients``.

    Recipients go in BCC so students do not see each other's addresses.
    """
    emails = [r["email"] if isinstance(r, dict) else r for r in recipients]
    if not emails:
        return
    event_url = _event_url(event["id"])
    starts_at = _format_datetime(event.get("start_date"))
    msg = Message(
        f"New Event Announcement: {event['title']}",
        sender=current_app.config.get("MAIL_DEFAULT_SENDER"),
        bcc=emails,
    )
    msg.body = (
        "Hello!\n\n"
        "A new event has been published on EventSync!\n\n"
        f"Event: {event['title']}\n"
        f"Description: {event.get('description') or ''}\n"
        f"Date: {starts_at}\n"
        f"Location: {event.get('location')}\n\n"
        f"For more information and to register, visit: {event_url}\n\n"
        "See you there!\nEventSync Team"
    )
    msg.html = render_template(
        "email/event_announcement.html",
        event=event,
        starts_at=starts_at,
        event_url=event_url,
    )
    _deliver(msg)


def send_account_status_email(email, name, approved):
    login_url = f"{current_app.config.get('CLIENT_URL')}/login"
    if approved:
        subject = "Welcome to EventSync! Your Account is Approved"
        body = (
            f"Hello {name},\n\nYour account has been approved by the admin. "
            f"You can now log in and use the portal: {login_url}\n\nThank you!"
        )
    else:
        subject = "Your EventSync Account Request"
        body = (
            f"Hello {name},\n\nWe regret to inform you that your account request "
            "has been rejected by the admin.\n\nThank you!"
        )
    msg = Message(
        subject,
        sender=current_app.config.get("MAIL_DEFAULT_SENDER"),
        recipients=[email],
    )
    msg.body = body
    msg.html = render_template(
        "email/account_status.html",
        name=name,
        approved=approved,
        login_url=login_url,
    )
    _deliver(msg)
