import json
from decimal import Decimal

from aupgrab.extensions import db
from aupgrab.models.base import PKType, utcnow


class BookingRowMixin:
    """Columns shared by the three booking tables.

    Declaration order is the positional sheet layout: the first fifteen
    columns are the original booking sheet, ``rider_phone`` and
    ``assigned_at`` were appended later as columns 16 and 17.
    """

    category = None

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    order_id = db.Column(db.String(40), nullable=False, unique=True, index=True)
    session_id = db.Column(db.String(120), nullable=True, index=True)
    name = db.Column(db.String(120), nullable=True)
    phone = db.Column(db.String(40), nullable=True)
    item_type = db.Column(db.String(120), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    special_requests = db.Column(db.Text, nullable=True)
    delivery_location = db.Column(db.String(255), nullable=True)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    status = db.Column(db.String(24), nullable=False, default="pending", index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    rider_id = db.Column(db.String(40), nullable=True)
    rider_name = db.Column(db.String(120), nullable=True)
    estimated_delivery = db.Column(db.DateTime(timezone=True), nullable=True)
    delivery_status = db.Column(db.String(24), nullable=False, default="waiting_for_rider")
    rider_phone = db.Column(db.String(40), nullable=True)
    assigned_at = db.Column(db.DateTime(timezone=True), nullable=True)

    ROW_FIELDS = (
        "order_id",
        "session_id",
        "name",
        "phone",
        "item_type",
        "quantity",
        "special_requests",
        "delivery_location",
        "total_amount",
        "status",
        "created_at",
        "rider_id",
        "rider_name",
        "estimated_delivery",
        "delivery_status",
        "rider_phone",
        "assigned_at",
    )

    @property
    def extra_fields(self):
        """The category-specific JSON blob, or ``{}`` when it is free text."""
        raw = (self.special_requests or "").strip()
        if not raw.startswith("{"):
            return {}
        try:
            parsed = json.loads(raw)
        except ValueError:
            return {}
        return parsed if isinstance(parsed, dict) else {}

    @property
    def amount(self):
        return Decimal(str(self.total_amount or 0))


class FoodBooking(BookingRowMixin, db.Model):
    __tablename__ = "food_bookings"
    category = "food"


class ParcelBooking(BookingRowMixin, db.Model):
    __tablename__ = "parcel_bookings"
    category = "parcel"


class LaundryBooking(BookingRowMixin, db.Model):
    __tablename__ = "laundry_bookings"
    category = "laundry"


# Search order for lookups that span every category.
BOOKING_MODELS = {
    "food": FoodBooking,
    "parcel": ParcelBooking,
    "laundry": LaundryBooking,
}
