from aupgrab.models import BOOKING_MODELS
from aupgrab.models.base import as_utc


class OrderRepository:
    """Booking rows across the food, parcel and laundry tables."""

    def __init__(self, session):
        self.session = session

    @staticmethod
    def model_for(category):
        return BOOKING_MODELS[category]

    def order_id_exists(self, order_id):
        return self.find_by_order_id(order_id) is not None

    def add(self, category, **fields):
        booking = self.model_for(category)(**fields)
        self.session.add(booking)
        self.session.flush()
        return booking

    def find_by_order_id(self, order_id):
        if not order_id:
            return None
        for model in BOOKING_MODELS.values():
            booking = self.session.query(model).filter_by(order_id=order_id).first()
            if booking is not None:
                return booking
        return None

    def find_latest_by_session_id(self, session_id):
        if not session_id:
            return None
        latest = None
        for model in BOOKING_MODELS.values():
            candidate = (
                self.session.query(model)
                .filter_by(session_id=session_id)
                .order_by(model.id.desc())
                .first()
            )
            if candidate is None:
                continue
            if latest is None or as_utc(candidate.created_at) >= as_utc(latest.created_at):
                latest = candidate
        return latest

    def list_bookings(self, categories=None):
        rows = []
        for category in categories or BOOKING_MODELS.keys():
            model = self.model_for(category)
            rows.extend(self.session.query(model).order_by(model.id.asc()).all())
        return rows

    def open_bookings(self):
        rows = []
        for model in BOOKING_MODELS.values():
            rows.extend(
                self.session.query(model)
                .filter(model.status.in_(("pending", "confirmed")))
                .order_by(model.id.asc())
                .all()
            )
        return rows
