import json
import logging
import queue
import threading
from flask import current_app

logger = logging.getLogger(__name__)


class EventFeed:
    """
    Live feed of committed event changes.
    Subscribers are plain callables receiving (kind, data); SSE listeners
    get a bounded queue wired to the same mechanism.
    """

    def __init__(self):
        self._subscribers = []
        self._lock = threading.Lock()

    def subscribe(self, callback):
        """Registers ``callback`` and returns a function that unregisters it."""
        with self._lock:
            self._subscribers.append(callback)
        logger.info(f"Event feed subscriber added. Total subscribers: {len(self._subscribers)}")

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)
            logger.info(f"Event feed subscriber removed. Total subscribers: {len(self._subscribers)}")

        return unsubscribe

    @property
    def subscriber_count(self):
        return len(self._subscribers)

    def publish(self, kind: str, data: dict):
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(kind, data)
            except Exception as e:
                # One broken subscriber must not block the others
                logger.error(f"Event feed subscriber failed on '{kind}': {e}")

    def listen(self, maxsize: int = 10):
        """
        Returns (queue, unsubscribe) for an SSE client.
        A listener whose queue fills up is assumed gone and dropped.
        """
        q = queue.Queue(maxsize=maxsize)
        holder = {}

        def enqueue(kind, data):
            try:
                q.put_nowait(format_sse(data, event=kind))
            except queue.Full:
                holder["unsubscribe"]()

        holder["unsubscribe"] = self.subscribe(enqueue)
        return q, holder["unsubscribe"]


def get_event_feed() -> EventFeed:
    return current_app.extensions["event_feed"]


def format_sse(data: dict, event: str = None) -> str:
    """
    Formats data into the Server-Sent Event message format.

    Args:
        data: The dictionary payload for the event.
        event: Optional event type name.

    Returns:
        A string formatted according to the SSE specification.
    """
    try:
        json_data = json.dumps(data)
        msg = f"data: {json_data}\n\n"
        if event is not None:
            msg = f"event: {event}\n{msg}"
        return msg
    except TypeError as e:
        logger.error(f"Error formatting SSE data: {e}. Data: {data}")
        error_data = json.dumps({"error": "Failed to serialize event data", "details": str(e)})
        return f"event: error\ndata: {error_data}\n\n"
