from aupgrab.extensions import db
from aupgrab.models.base import PKType, utcnow


class Message(db.Model):
    __tablename__ = "messages"

    ROW_FIELDS = ("timestamp", "order_id", "sender_type", "sender_id", "text")

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    order_id = db.Column(db.String(40), nullable=False, index=True)
    sender_type = db.Column(db.String(16), nullable=False, default="rider")
    sender_id = db.Column(db.String(40), nullable=True)
    text = db.Column(db.Text, nullable=False)
