from aupgrab.errors import ValidationError
from aupgrab.models.base import as_utc, parse_iso_datetime, utcnow

SENDER_TYPES = {"rider", "customer"}


class ChatService:
    """Append-only rider/customer messages keyed by order id."""

    def __init__(self, messages, session):
        self.messages = messages
        self.session = session

    def send_message(self, order_id, text, sender_type=None, sender_id=None):
        text = (text or "").strip()
        if not order_id or not text:
            raise ValidationError("Missing order_id or text")
        sender_type = (sender_type or "rider").strip().lower()
        if sender_type not in SENDER_TYPES:
            raise ValidationError(f"Invalid sender_type: {sender_type}")

        message = self.messages.add(
            timestamp=utcnow(),
            order_id=order_id,
            sender_type=sender_type,
            sender_id=sender_id or "",
            text=text,
        )
        self.session.commit()
        return message

    def list_messages(self, order_id, since=None):
        """Messages for an order in insertion order, strictly after ``since``."""
        if not order_id:
            raise ValidationError("Missing order_id")
        try:
            cursor = parse_iso_datetime(since)
        except ValueError as exc:
            raise ValidationError(f"Invalid since timestamp: {since}") from exc
        rows = self.messages.list_for_order(order_id)
        if cursor is None:
            return rows
        return [row for row in rows if row.timestamp and as_utc(row.timestamp) > cursor]
