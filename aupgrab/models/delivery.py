import json

from aupgrab.extensions import db
from aupgrab.models.base import PKType, utcnow


class Delivery(db.Model):
    __tablename__ = "deliveries"

    ROW_FIELDS = (
        "order_id",
        "session_id",
        "status",
        "created_at",
        "rider_id",
        "rider_location",
        "estimated_arrival",
        "notes",
        "last_updated",
    )

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    order_id = db.Column(db.String(40), nullable=False, unique=True, index=True)
    session_id = db.Column(db.String(120), nullable=True)
    status = db.Column(db.String(24), nullable=False, default="waiting_for_rider")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    rider_id = db.Column(db.String(40), nullable=True)
    rider_location = db.Column(db.Text, nullable=True)
    estimated_arrival = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    last_updated = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def location(self):
        if not self.rider_location:
            return None
        try:
            return json.loads(self.rider_location)
        except ValueError:
            return None
