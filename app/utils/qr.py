import io
import json
from collections import namedtuple

import qrcode

from app.exceptions import InvalidPayload

QRPayload = namedtuple("QRPayload", ["event_id", "user_id"])


def encode_payload(event_id, user_id) -> str:
    return json.dumps({"eventId": str(event_id), "userId": str(user_id)})


def decode_payload(raw) -> QRPayload:
    """Parses the text read from a check-in QR code.

    Raises InvalidPayload for anything that is not a JSON object carrying
    both ids.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidPayload("QR code is not valid UTF-8 text") from e
    if isinstance(raw, dict):
        data = raw
    else:
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise InvalidPayload("Invalid QR code format") from e
    if not isinstance(data, dict):
        raise InvalidPayload("Invalid QR code format")

    event_id = data.get("eventId")
    user_id = data.get("userId")
    if event_id in (None, "") or user_id in (None, ""):
        raise InvalidPayload("QR code is missing eventId or userId")
    return QRPayload(event_id=str(event_id), user_id=str(user_id))


def render_png(text: str) -> bytes:
    image = qrcode.make(text)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
