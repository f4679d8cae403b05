from datetime import timedelta

import pytest

from aupgrab.errors import ValidationError
from aupgrab.extensions import db
from aupgrab.models.base import isoformat_utc, utcnow


def _seed(services, order_id, count):
    base = utcnow() - timedelta(minutes=10)
    for i in range(count):
        services.messages.add(
            timestamp=base + timedelta(minutes=i),
            order_id=order_id,
            sender_type="rider" if i % 2 == 0 else "customer",
            sender_id="R001" if i % 2 == 0 else "S1",
            text=f"message {i}",
        )
    db.session.commit()
    return base


def test_send_message_stores_and_defaults_sender(services):
    message = services.chat.send_message("ORD-1", "  on my way  ")
    assert message.text == "on my way"
    assert message.sender_type == "rider"
    assert message.sender_id == ""


def test_send_message_requires_order_and_text(services):
    with pytest.raises(ValidationError, match="Missing order_id or text"):
        services.chat.send_message("ORD-1", "   ")
    with pytest.raises(ValidationError, match="Missing order_id or text"):
        services.chat.send_message("", "hello")


def test_send_message_rejects_unknown_sender(services):
    with pytest.raises(ValidationError, match="sender_type"):
        services.chat.send_message("ORD-1", "hi", sender_type="admin")


def test_list_messages_full_history_in_order(services):
    _seed(services, "ORD-1", 3)
    _seed(services, "ORD-2", 1)

    texts = [m.text for m in services.chat.list_messages("ORD-1")]
    assert texts == ["message 0", "message 1", "message 2"]


def test_list_messages_since_is_strict(services):
    base = _seed(services, "ORD-1", 4)
    cursor = isoformat_utc(base + timedelta(minutes=1))

    texts = [m.text for m in services.chat.list_messages("ORD-1", since=cursor)]
    assert texts == ["message 2", "message 3"]


def test_list_messages_rejects_bad_cursor(services):
    with pytest.raises(ValidationError, match="since"):
        services.chat.list_messages("ORD-1", since="yesterday")
